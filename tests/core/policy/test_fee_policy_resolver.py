"""
Tests for fee policy resolution: remote fetch, fallback, strict mode, overrides.
"""

from typing import Any, Dict, List

import httpx
import pytest

from safe_onboarding.core.errors import ConfigurationError, FeeBasisPointsError, RemoteDependencyError
from safe_onboarding.core.policy.fee_policy import (
    FALLBACK_FEE_CONFIG,
    FeeConfig,
    FeeFallbackMode,
    FeePolicyResolver,
    is_configured_endpoint,
)
from safe_onboarding.providers.fee_api import FeeApiProvider

from fakes import OTHER_CLIENT


FEE_URL = "https://fees.test/api/v1/fee-config"


def fee_api(handler, **kwargs: Any) -> FeeApiProvider:
    return FeeApiProvider(FEE_URL, transport=httpx.MockTransport(handler), **kwargs)


def json_handler(payload: Any, status: int = 200, seen: List[httpx.Request] = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload)

    return handler


# =============================================================================
# FeeConfig
# =============================================================================

def test_fallback_split():
    assert FALLBACK_FEE_CONFIG.deposit_bps == 10_000
    assert FALLBACK_FEE_CONFIG.profit_bps == 9_700


def test_from_payload_accepts_integral_numbers():
    config = FeeConfig.from_payload({"clientBasisPointsOfDeposit": 9_500, "clientBasisPointsOfProfit": 8000.0})
    assert (config.deposit_bps, config.profit_bps) == (9_500, 8_000)
    assert config.source == "remote"


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"clientBasisPointsOfDeposit": 1},
        {"clientBasisPointsOfDeposit": True, "clientBasisPointsOfProfit": 1},
        {"clientBasisPointsOfDeposit": "100", "clientBasisPointsOfProfit": 1},
        {"clientBasisPointsOfDeposit": 1.5, "clientBasisPointsOfProfit": 1},
    ],
)
def test_from_payload_rejects_malformed(payload):
    with pytest.raises(ValueError):
        FeeConfig.from_payload(payload)


@pytest.mark.parametrize("deposit,profit", [(10_001, 0), (0, -1)])
def test_validate_rejects_out_of_range(deposit, profit):
    with pytest.raises(FeeBasisPointsError):
        FeeConfig(deposit, profit).validate()


def test_source_does_not_affect_equality():
    assert FeeConfig(1, 2, source="remote") == FeeConfig(1, 2, source="fallback")


@pytest.mark.parametrize("url,configured", [(None, False), ("", False), (" DUMMY ", False), (FEE_URL, True)])
def test_is_configured_endpoint(url, configured):
    assert is_configured_endpoint(url) is configured


# =============================================================================
# Resolution
# =============================================================================

@pytest.mark.asyncio
async def test_remote_config_is_used(observer):
    seen: List[httpx.Request] = []
    api = fee_api(
        json_handler({"clientBasisPointsOfDeposit": 9_000, "clientBasisPointsOfProfit": 8_500}, seen=seen),
        api_token="secret",
    )
    resolver = FeePolicyResolver(api=api, observer=observer)

    config = await resolver.resolve(OTHER_CLIENT.lower())

    assert config == FeeConfig(9_000, 8_500)
    assert config.source == "remote"
    assert seen[0].url.params["client"] == OTHER_CLIENT
    assert seen[0].headers["authorization"] == "Bearer secret"
    assert observer.names() == ["fee_policy.resolved"]


@pytest.mark.asyncio
async def test_no_authorization_header_without_token():
    seen: List[httpx.Request] = []
    api = fee_api(json_handler({"clientBasisPointsOfDeposit": 1, "clientBasisPointsOfProfit": 1}, seen=seen))

    await FeePolicyResolver(api=api).resolve(OTHER_CLIENT)

    assert "authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_out_of_range_remote_values_are_returned_unvalidated():
    api = fee_api(json_handler({"clientBasisPointsOfDeposit": 20_000, "clientBasisPointsOfProfit": 1}))
    config = await FeePolicyResolver(api=api).resolve(OTHER_CLIENT)
    assert config.deposit_bps == 20_000


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "handler",
    [
        json_handler({"error": "boom"}, status=500),
        lambda request: httpx.Response(200, text="not json"),
        json_handler({"clientBasisPointsOfDeposit": False, "clientBasisPointsOfProfit": 1}),
    ],
    ids=["http-500", "non-json", "wrong-type"],
)
async def test_failures_fall_back_by_default(handler, observer):
    resolver = FeePolicyResolver(api=fee_api(handler), observer=observer)

    config = await resolver.resolve(OTHER_CLIENT)

    assert config == FALLBACK_FEE_CONFIG
    assert config.source == "fallback"
    assert observer.names() == ["fee_policy.fallback"]


@pytest.mark.asyncio
async def test_transport_error_falls_back():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    config = await FeePolicyResolver(api=fee_api(handler)).resolve(OTHER_CLIENT)
    assert config == FALLBACK_FEE_CONFIG


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["", "dummy"])
async def test_placeholder_endpoint_skips_network(url):
    calls: List[httpx.Request] = []
    api = FeeApiProvider(url, transport=httpx.MockTransport(json_handler({}, seen=calls)))

    resolver = FeePolicyResolver(api=api)

    assert not resolver.endpoint_configured
    assert await resolver.resolve(OTHER_CLIENT) == FALLBACK_FEE_CONFIG
    assert calls == []


@pytest.mark.asyncio
async def test_missing_api_falls_back():
    assert await FeePolicyResolver().resolve(OTHER_CLIENT) == FALLBACK_FEE_CONFIG


@pytest.mark.asyncio
async def test_strict_mode_raises_on_failure():
    resolver = FeePolicyResolver(
        api=fee_api(json_handler({}, status=503)),
        fallback_mode=FeeFallbackMode.STRICT,
    )

    with pytest.raises(RemoteDependencyError) as exc_info:
        await resolver.resolve(OTHER_CLIENT)

    assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)


def test_strict_mode_requires_endpoint():
    with pytest.raises(ConfigurationError):
        FeePolicyResolver(api=FeeApiProvider("dummy"), fallback_mode="strict")


@pytest.mark.asyncio
async def test_override_takes_priority_over_api(observer):
    def fail(request: httpx.Request) -> httpx.Response:
        raise AssertionError("fee API must not be called")

    async def override(client: str) -> Dict[str, int]:
        return {"clientBasisPointsOfDeposit": 100, "clientBasisPointsOfProfit": 200}

    resolver = FeePolicyResolver(api=fee_api(fail), override=override, observer=observer)
    config = await resolver.resolve(OTHER_CLIENT)

    assert config == FeeConfig(100, 200)
    assert config.source == "override"
    assert observer.events[0][1]["source"] == "override"


@pytest.mark.asyncio
async def test_override_satisfies_strict_mode_without_endpoint():
    async def override(client: str) -> FeeConfig:
        return FeeConfig(1, 2, source="custom")

    resolver = FeePolicyResolver(override=override, fallback_mode=FeeFallbackMode.STRICT)
    assert (await resolver.resolve(OTHER_CLIENT)).source == "custom"


@pytest.mark.asyncio
async def test_malformed_endpoint_url_falls_back(observer):
    resolver = FeePolicyResolver(api=FeeApiProvider("http://[::1"), observer=observer)

    assert resolver.endpoint_configured
    assert await resolver.resolve(OTHER_CLIENT) == FALLBACK_FEE_CONFIG
    assert observer.names() == ["fee_policy.fallback"]


@pytest.mark.asyncio
async def test_malformed_endpoint_url_in_strict_mode_raises():
    resolver = FeePolicyResolver(api=FeeApiProvider("http://[::1"), fallback_mode=FeeFallbackMode.STRICT)

    with pytest.raises(RemoteDependencyError) as exc_info:
        await resolver.resolve(OTHER_CLIENT)

    assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)
