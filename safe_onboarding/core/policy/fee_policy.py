"""
Fee Policy

Resolves the client's fee split (basis points of deposit and of profit) that
parameterizes the yield-proxy address.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import httpx

from ..errors import ConfigurationError, FeeBasisPointsError, RemoteDependencyError
from ..observer import NULL_OBSERVER, OnboardingObserver
from ...providers.fee_api import FeeApiProvider

MAX_BASIS_POINTS = 10_000

PLACEHOLDER_ENDPOINTS = ("", "dummy")


@dataclass(frozen=True)
class FeeConfig:
    """Client fee split in basis points. ``source`` is informational only."""
    deposit_bps: int
    profit_bps: int
    source: str = field(default="remote", compare=False)

    def validate(self) -> "FeeConfig":
        for name, value in (("deposit", self.deposit_bps), ("profit", self.profit_bps)):
            if not 0 <= value <= MAX_BASIS_POINTS:
                raise FeeBasisPointsError(
                    f"Basis points of {name} must be within [0, {MAX_BASIS_POINTS}], got {value}",
                    details={"deposit_bps": self.deposit_bps, "profit_bps": self.profit_bps},
                )
        return self

    def to_dict(self) -> Dict[str, int]:
        return {
            "clientBasisPointsOfDeposit": self.deposit_bps,
            "clientBasisPointsOfProfit": self.profit_bps,
        }

    @classmethod
    def from_payload(cls, payload: Any, source: str = "remote") -> "FeeConfig":
        """
        Parse ``{"clientBasisPointsOfDeposit": int, "clientBasisPointsOfProfit": int}``.

        Raises ValueError for anything else. Range is not checked here.
        """
        if not isinstance(payload, dict):
            raise ValueError(f"Fee payload must be an object, got {type(payload).__name__}")
        return cls(
            deposit_bps=_basis_points(payload, "clientBasisPointsOfDeposit"),
            profit_bps=_basis_points(payload, "clientBasisPointsOfProfit"),
            source=source,
        )


def _basis_points(payload: Dict[str, Any], key: str) -> int:
    value = payload.get(key)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{key} must be integral, got {value!r}")
    return int(value)


FALLBACK_FEE_CONFIG = FeeConfig(deposit_bps=10_000, profit_bps=9_700, source="fallback")


class FeeFallbackMode(str, Enum):
    """What to do when the fee API cannot provide a usable answer."""
    SUBSTITUTE = "substitute"   # Use the fallback split
    STRICT = "strict"           # Raise RemoteDependencyError


FeeConfigFetcher = Callable[[str], Awaitable[Union[FeeConfig, Dict[str, Any]]]]


def is_configured_endpoint(url: Optional[str]) -> bool:
    return (url or "").strip().lower() not in PLACEHOLDER_ENDPOINTS


class FeePolicyResolver:
    """
    Resolves a FeeConfig for a client address.

    Priority:
    - An override fetcher, when given, is always used
    - Otherwise the fee API, subject to the fallback mode
    """

    def __init__(
        self,
        *,
        api: Optional[FeeApiProvider] = None,
        override: Optional[FeeConfigFetcher] = None,
        fallback_mode: FeeFallbackMode = FeeFallbackMode.SUBSTITUTE,
        fallback: FeeConfig = FALLBACK_FEE_CONFIG,
        observer: OnboardingObserver = NULL_OBSERVER,
    ):
        self.api = api
        self.override = override
        self.fallback_mode = FeeFallbackMode(fallback_mode)
        self.fallback = fallback
        self.observer = observer

        if (
            self.override is None
            and not self.endpoint_configured
            and self.fallback_mode is FeeFallbackMode.STRICT
        ):
            raise ConfigurationError(
                "Fee API endpoint is not configured and the strict fee policy forbids the fallback"
            )

    @property
    def endpoint_configured(self) -> bool:
        return self.api is not None and is_configured_endpoint(self.api.base_url)

    async def resolve(self, client_address: str) -> FeeConfig:
        if self.override is not None:
            result = await self.override(client_address)
            if not isinstance(result, FeeConfig):
                result = FeeConfig.from_payload(result, source="override")
            self.observer.on_event("fee_policy.resolved", source="override", **result.to_dict())
            return result

        if not self.endpoint_configured:
            return self._substitute(client_address, "fee API endpoint not configured")

        try:
            payload = await self.api.fetch_fee_config(client_address)
            config = FeeConfig.from_payload(payload, source="remote")
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            if self.fallback_mode is FeeFallbackMode.STRICT:
                raise RemoteDependencyError(
                    f"Fee policy fetch failed for {client_address}: {exc}",
                    details={"client": client_address},
                ) from exc
            return self._substitute(client_address, str(exc) or type(exc).__name__)

        self.observer.on_event("fee_policy.resolved", source="remote", **config.to_dict())
        return config

    def _substitute(self, client_address: str, reason: str) -> FeeConfig:
        config = replace(self.fallback, source="fallback")
        self.observer.on_event(
            "fee_policy.fallback",
            client=client_address,
            reason=reason,
            **config.to_dict(),
        )
        return config
