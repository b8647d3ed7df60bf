import pytest
from eth_utils import to_checksum_address

from safe_onboarding.config import Settings, load_settings
from safe_onboarding.core.contracts import DEFAULT_MODULE_PROXY_FACTORY
from safe_onboarding.core.errors import ConfigurationError
from safe_onboarding.core.policy.fee_policy import FeeFallbackMode


EXECUTOR = "0x3333333333333333333333333333333333333333"
FACTORY_LOWER = "0x4e1dcf7ad4e460cfd30791ccc4f9c8a4f820ec67"
FACTORY_CHECKSUM = to_checksum_address(FACTORY_LOWER)


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.roles_module_proxy_factory_address == DEFAULT_MODULE_PROXY_FACTORY
    assert settings.fee_fallback_mode is FeeFallbackMode.SUBSTITUTE
    assert settings.role_label == "P2P_SUPERFORM_ROLE"
    assert settings.safe_salt_nonce is None


def test_addresses_load_from_env_and_are_checksummed(monkeypatch):
    monkeypatch.setenv("SAFE_PROXY_FACTORY_ADDRESS", FACTORY_LOWER)

    settings = Settings(_env_file=None)

    assert settings.safe_proxy_factory_address == FACTORY_CHECKSUM


def test_executor_alias(monkeypatch):
    """The executor address also loads from EXECUTOR_ADDRESS."""

    monkeypatch.delenv("P2P_ADDRESS", raising=False)
    monkeypatch.setenv("EXECUTOR_ADDRESS", EXECUTOR)

    settings = Settings(_env_file=None)

    assert settings.p2p_address == EXECUTOR


def test_empty_salt_nonce_is_unset(monkeypatch):
    monkeypatch.setenv("SAFE_SALT_NONCE", "")
    monkeypatch.setenv("ROLES_SALT_NONCE", "42")

    settings = Settings(_env_file=None)

    assert settings.safe_salt_nonce is None
    assert settings.roles_salt_nonce == 42


def test_fee_mode_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("FEE_FALLBACK_MODE", "STRICT")
    assert Settings(_env_file=None).fee_fallback_mode is FeeFallbackMode.STRICT


def test_require_lists_missing_settings():
    with pytest.raises(ConfigurationError) as exc_info:
        Settings(_env_file=None).require("rpc_url", "private_key")

    assert exc_info.value.context.details["missing"] == ["rpc_url", "private_key"]
    assert "RPC_URL" in str(exc_info.value)


def test_invalid_address_becomes_configuration_error():
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(_env_file=None, safe_singleton_address="0x1234")

    assert "safe_singleton_address" in str(exc_info.value)


def test_invalid_private_key_is_not_echoed():
    secret = "0x" + "ab" * 31
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings(_env_file=None, private_key=secret)

    assert secret not in str(exc_info.value)
    assert secret not in repr(exc_info.value.context.details)


def test_secrets_hidden_from_repr():
    settings = Settings(_env_file=None, private_key="0x" + "11" * 32, p2p_api_token="token-value")
    assert "11" * 32 not in repr(settings)
    assert "token-value" not in repr(settings)
