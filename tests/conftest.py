from typing import Any, Dict, List, Tuple

import pytest

from fakes import (
    EXECUTOR,
    ROLES_MASTER_COPY,
    SAFE_PROXY_FACTORY,
    SAFE_SINGLETON,
    YIELD_PROXY_FACTORY,
    FakeChain,
)
from safe_onboarding.core.execution.nonce_manager import NonceSequencer
from safe_onboarding.core.observer import OnboardingObserver
from safe_onboarding.core.onboarding.client import OnboardingConfig


class RecordingObserver(OnboardingObserver):
    """Collects every event for assertions."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def on_event(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def nonces(chain: FakeChain) -> NonceSequencer:
    return NonceSequencer(chain.address, chain.starting_nonce)


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def make_config(chain: FakeChain, observer: RecordingObserver):
    """Factory for an OnboardingConfig wired to the fake chain."""

    def _make(**overrides: Any) -> OnboardingConfig:
        values: Dict[str, Any] = dict(
            reader=chain,
            writer=chain,
            executor_address=EXECUTOR,
            yield_proxy_factory_address=YIELD_PROXY_FACTORY,
            roles_master_copy_address=ROLES_MASTER_COPY,
            safe_singleton_address=SAFE_SINGLETON,
            safe_proxy_factory_address=SAFE_PROXY_FACTORY,
            safe_salt_nonce=1,
            roles_salt_nonce=2,
            observer=observer,
        )
        values.update(overrides)
        return OnboardingConfig(**values)

    return _make
