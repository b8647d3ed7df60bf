"""Fee policy resolution and yield-proxy address prediction."""

from .fee_policy import (
    FALLBACK_FEE_CONFIG,
    MAX_BASIS_POINTS,
    FeeConfig,
    FeeFallbackMode,
    FeePolicyResolver,
)
from .yield_proxy import predict_yield_proxy_address

__all__ = [
    "FALLBACK_FEE_CONFIG",
    "MAX_BASIS_POINTS",
    "FeeConfig",
    "FeeFallbackMode",
    "FeePolicyResolver",
    "predict_yield_proxy_address",
]
