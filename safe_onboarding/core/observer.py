"""
Instrumentation hook for onboarding runs.

Every stage reports progress through an injected observer instead of a
module-level logger, so callers decide where (and whether) events go.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog


class OnboardingObserver:
    """No-op observer. Subclass and override ``on_event`` to receive events."""

    def on_event(self, event: str, **fields: Any) -> None:
        return None


class StructlogObserver(OnboardingObserver):
    """Forwards onboarding events to a structlog logger."""

    def __init__(self, logger: Optional[Any] = None) -> None:
        self._logger = logger or structlog.get_logger("safe_onboarding")

    def on_event(self, event: str, **fields: Any) -> None:
        self._logger.info(event, **fields)


NULL_OBSERVER = OnboardingObserver()
