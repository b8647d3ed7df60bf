import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from eth_utils import to_checksum_address

from .core.errors import ConfigurationError
from .core.policy.fee_policy import FeeFallbackMode
from .core.roles.permissions import DEFAULT_ROLE_LABEL
from .core.contracts import DEFAULT_MODULE_PROXY_FACTORY


BASE_DIR = Path(__file__).resolve().parents[1]

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")

ADDRESS_FIELDS = (
    "p2p_address",
    "p2p_superform_proxy_factory_address",
    "roles_master_copy_address",
    "roles_module_proxy_factory_address",
    "safe_singleton_address",
    "safe_proxy_factory_address",
    "safe_multi_send_call_only_address",
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Chain access
    rpc_url: str = Field(default="", description="JSON-RPC endpoint of the target chain")
    private_key: str = Field(
        default="",
        description="Signer private key (0x-prefixed, 32 bytes)",
        repr=False,
    )
    chain_id: Optional[int] = Field(
        default=None,
        description="Chain ID; fetched from the node when unset",
    )

    # Fee policy API
    p2p_api_url: str = Field(default="", description="Fee policy endpoint ('' or 'dummy' = not configured)")
    p2p_api_token: str = Field(default="", description="Bearer token for the fee policy endpoint", repr=False)
    fee_fallback_mode: FeeFallbackMode = Field(
        default=FeeFallbackMode.SUBSTITUTE,
        description="'substitute' uses the fallback fee split on API failure, 'strict' aborts",
    )

    # Contract addresses
    p2p_address: str = Field(
        default="",
        validation_alias=AliasChoices("p2p_address", "executor_address"),
        description="Executor module that receives the role",
    )
    p2p_superform_proxy_factory_address: str = Field(
        default="",
        validation_alias=AliasChoices("p2p_superform_proxy_factory_address", "yield_proxy_factory_address"),
        description="Yield-proxy factory",
    )
    roles_master_copy_address: str = Field(default="", description="Zodiac Roles mastercopy")
    roles_module_proxy_factory_address: str = Field(
        default=DEFAULT_MODULE_PROXY_FACTORY,
        description="Zodiac ModuleProxyFactory",
    )
    safe_singleton_address: str = Field(default="", description="Safe singleton")
    safe_proxy_factory_address: str = Field(default="", description="Safe proxy factory")
    safe_multi_send_call_only_address: str = Field(default="", description="Safe MultiSendCallOnly")

    # Deterministic deployments
    safe_salt_nonce: Optional[int] = Field(default=None, ge=0, description="Fixed Safe salt nonce")
    roles_salt_nonce: Optional[int] = Field(default=None, ge=0, description="Fixed Roles salt nonce")
    role_label: str = Field(default=DEFAULT_ROLE_LABEL, min_length=1, description="Role key label")

    # Transport
    log_level: str = Field(default="INFO", description="Logging level")
    request_timeout_seconds: float = Field(default=30, gt=0, description="HTTP request timeout")
    receipt_timeout_seconds: float = Field(default=300, gt=0, description="Max wait for a receipt")
    receipt_poll_interval_seconds: float = Field(default=2, gt=0, description="Receipt polling interval")
    gas_multiplier: float = Field(default=1.2, ge=1, description="Safety multiplier on gas estimates")

    @field_validator(*ADDRESS_FIELDS)
    @classmethod
    def _validate_address(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            return ""
        if not _ADDRESS_RE.match(value):
            raise ValueError("must be a 0x-prefixed 20-byte hex address")
        return to_checksum_address(value)

    @field_validator("private_key")
    @classmethod
    def _validate_private_key(cls, value: str) -> str:
        value = (value or "").strip()
        if value and not _PRIVATE_KEY_RE.match(value):
            raise ValueError("must be a 0x-prefixed 32-byte hex string")
        return value

    @field_validator("safe_salt_nonce", "roles_salt_nonce", "chain_id", mode="before")
    @classmethod
    def _empty_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("fee_fallback_mode", mode="before")
    @classmethod
    def _lower_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def require(self, *names: str) -> "Settings":
        """Raise ConfigurationError listing every named setting that is empty."""
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Missing required settings: {', '.join(name.upper() for name in missing)}",
                details={"missing": missing},
            )
        return self


def load_settings(**overrides: Any) -> Settings:
    """Build Settings from the environment, reporting problems as ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        # Only field names and messages: inputs may hold secrets.
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ConfigurationError(
            f"Invalid configuration: {'; '.join(problems)}",
            details={"errors": problems},
        ) from exc


@lru_cache
def get_settings() -> Settings:
    return load_settings()
