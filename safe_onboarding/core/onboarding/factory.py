"""
Build an OnboardingClient from environment settings.
"""

from dataclasses import replace
from typing import Optional

from eth_account import Account

from ...config import Settings, get_settings
from ...providers.fee_api import FeeApiProvider
from ...providers.rpc import JsonRpcProvider
from ..execution.executor import TransactionExecutor
from ..observer import OnboardingObserver, StructlogObserver
from ..policy.fee_policy import FeeConfigFetcher, FeeFallbackMode, FeePolicyResolver, is_configured_endpoint
from .client import OnboardingClient, OnboardingConfig

REQUIRED_SETTINGS = (
    "rpc_url",
    "private_key",
    "p2p_address",
    "p2p_superform_proxy_factory_address",
    "roles_master_copy_address",
    "safe_singleton_address",
    "safe_proxy_factory_address",
)


def create_onboarding_client_from_env(
    settings: Optional[Settings] = None,
    *,
    observer: Optional[OnboardingObserver] = None,
    fee_override: Optional[FeeConfigFetcher] = None,
    fee_fallback_mode: Optional[FeeFallbackMode] = None,
    safe_salt_nonce: Optional[int] = None,
    roles_salt_nonce: Optional[int] = None,
) -> OnboardingClient:
    """
    Wire the JSON-RPC provider, local signer and fee API from settings.

    Keyword arguments override the corresponding settings for this client.

    Raises:
        ConfigurationError: If a required setting is missing or invalid
    """
    settings = (settings or get_settings()).require(*REQUIRED_SETTINGS)

    fee_api = None
    if is_configured_endpoint(settings.p2p_api_url):
        fee_api = FeeApiProvider(
            settings.p2p_api_url,
            api_token=settings.p2p_api_token or None,
            timeout_s=settings.request_timeout_seconds,
        )
    observer = observer or StructlogObserver()
    # reader and writer are attached once nothing else can fail
    config = OnboardingConfig(
        reader=None,
        writer=None,
        executor_address=settings.p2p_address,
        yield_proxy_factory_address=settings.p2p_superform_proxy_factory_address,
        roles_master_copy_address=settings.roles_master_copy_address,
        safe_singleton_address=settings.safe_singleton_address,
        safe_proxy_factory_address=settings.safe_proxy_factory_address,
        module_proxy_factory_address=settings.roles_module_proxy_factory_address,
        safe_multi_send_address=settings.safe_multi_send_call_only_address or None,
        fee_api=fee_api,
        fee_override=fee_override,
        fee_fallback_mode=fee_fallback_mode or settings.fee_fallback_mode,
        safe_salt_nonce=safe_salt_nonce if safe_salt_nonce is not None else settings.safe_salt_nonce,
        roles_salt_nonce=roles_salt_nonce if roles_salt_nonce is not None else settings.roles_salt_nonce,
        role_label=settings.role_label,
        observer=observer,
    ).validate()
    account = Account.from_key(settings.private_key)
    fee_policy = FeePolicyResolver(
        api=fee_api,
        override=fee_override,
        fallback_mode=config.fee_fallback_mode,
        observer=observer,
    )

    rpc = JsonRpcProvider(
        settings.rpc_url,
        timeout_s=settings.request_timeout_seconds,
        poll_interval_s=settings.receipt_poll_interval_seconds,
        receipt_timeout_s=settings.receipt_timeout_seconds,
    )
    writer = TransactionExecutor(
        rpc,
        account,
        chain_id=settings.chain_id,
        gas_multiplier=settings.gas_multiplier,
    )

    return OnboardingClient(replace(config, reader=rpc, writer=writer), fee_policy=fee_policy)
