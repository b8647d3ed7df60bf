"""
Onboarding orchestrator.

Provisions a client end to end:

    deploy Safe -> deploy Roles module -> resolve fee policy
    -> predict yield proxy -> configure six permissions -> enable module

Each stage consumes the previous stage's output; a failure anywhere stops the
run and is reported with the state it happened in. Nothing already applied on
chain is rolled back.
"""

from dataclasses import dataclass
from typing import Any, Optional

from eth_utils import is_address, to_checksum_address

from ..contracts import DEFAULT_MODULE_PROXY_FACTORY, SAFE_ENABLE_MODULE
from ..errors import ConfigurationError, OnboardingFailedError
from ..execution.nonce_manager import NonceSequencer
from ..observer import NULL_OBSERVER, OnboardingObserver
from ..policy.fee_policy import FeeConfigFetcher, FeeFallbackMode, FeePolicyResolver
from ..policy.yield_proxy import predict_yield_proxy_address
from ..roles.deployment import RolesModuleDeployer
from ..roles.permissions import DEFAULT_ROLE_LABEL, PermissionConfigurator, role_key_from_label
from ..safe.transactions import SafeTransactionService
from ...logging_config import bind_onboarding_state, onboarding_log_context
from ...providers.base import ChainReader, ChainWriter
from ...providers.fee_api import FeeApiProvider
from .models import OnboardingResult, OnboardingState, OnboardingTransactions
from .state_machine import OnboardingStateMachine


@dataclass
class OnboardingConfig:
    """Fixed inputs of the onboarding pipeline."""

    reader: ChainReader
    writer: ChainWriter

    executor_address: str                   # Module that receives the role
    yield_proxy_factory_address: str
    roles_master_copy_address: str
    safe_singleton_address: str
    safe_proxy_factory_address: str
    module_proxy_factory_address: str = DEFAULT_MODULE_PROXY_FACTORY
    safe_multi_send_address: Optional[str] = None

    fee_api: Optional[FeeApiProvider] = None
    fee_override: Optional[FeeConfigFetcher] = None
    fee_fallback_mode: FeeFallbackMode = FeeFallbackMode.SUBSTITUTE

    safe_salt_nonce: Optional[int] = None
    roles_salt_nonce: Optional[int] = None
    role_label: str = DEFAULT_ROLE_LABEL

    observer: OnboardingObserver = NULL_OBSERVER

    def validate(self) -> "OnboardingConfig":
        """Check every address and salt nonce up front."""
        required = {
            "executor_address": self.executor_address,
            "yield_proxy_factory_address": self.yield_proxy_factory_address,
            "roles_master_copy_address": self.roles_master_copy_address,
            "safe_singleton_address": self.safe_singleton_address,
            "safe_proxy_factory_address": self.safe_proxy_factory_address,
            "module_proxy_factory_address": self.module_proxy_factory_address,
        }
        if self.safe_multi_send_address is not None:
            required["safe_multi_send_address"] = self.safe_multi_send_address

        invalid = [name for name, value in required.items() if not value or not is_address(value)]
        if invalid:
            raise ConfigurationError(
                f"Invalid or missing addresses: {', '.join(invalid)}",
                details={"fields": invalid},
            )
        for name in ("safe_salt_nonce", "roles_salt_nonce"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ConfigurationError(f"{name} must be non-negative")
        if not self.role_label:
            raise ConfigurationError("role_label must not be empty")
        return self


class OnboardingClient:
    """
    Runs onboarding for clients with one signer.

    Runs for the same signer must not overlap: each run seeds its own nonce
    sequence from the chain.
    """

    def __init__(self, config: OnboardingConfig, *, fee_policy: Optional[FeePolicyResolver] = None):
        self.config = config.validate()
        self.observer = config.observer
        self.role_key = role_key_from_label(config.role_label)
        self.fee_policy = fee_policy or FeePolicyResolver(
            api=config.fee_api,
            override=config.fee_override,
            fallback_mode=config.fee_fallback_mode,
            observer=config.observer,
        )

    async def __aenter__(self) -> "OnboardingClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self.config.reader.close()

    async def onboard_client(self, client_address: Optional[str] = None) -> OnboardingResult:
        """
        Provision a Safe and a scoped Roles module for ``client_address``.

        The client (the signer when omitted) owns both the Safe and the Roles
        module.

        Raises:
            ConfigurationError: If ``client_address`` is not an address
            OnboardingFailedError: If any stage fails; ``step`` names the state
        """
        writer = self.config.writer
        if client_address is not None and not is_address(client_address):
            raise ConfigurationError(f"Invalid client address: {client_address}")
        client = to_checksum_address(client_address or writer.address)

        with onboarding_log_context(client, writer.address) as run_id:
            self.observer.on_event(
                "onboarding.started", client=client, signer=writer.address, run_id=run_id
            )
            return await self._run(client)

    async def _run(self, client: str) -> OnboardingResult:
        cfg = self.config
        reader, writer = cfg.reader, cfg.writer
        machine = OnboardingStateMachine(self.observer, on_transition=bind_onboarding_state)

        try:
            nonces = await NonceSequencer.from_chain(reader, writer.address)
            safe_service = SafeTransactionService(reader, writer, nonces, self.observer)

            machine.transition_to(OnboardingState.WALLET_DEPLOYING)
            wallet = await safe_service.deploy(
                client,
                cfg.safe_singleton_address,
                cfg.safe_proxy_factory_address,
                cfg.safe_salt_nonce,
            )
            machine.transition_to(OnboardingState.WALLET_DEPLOYED)

            machine.transition_to(OnboardingState.MODULE_DEPLOYING)
            module = await RolesModuleDeployer(reader, writer, nonces, self.observer).deploy(
                cfg.roles_master_copy_address,
                client,
                wallet.safe_address,
                cfg.module_proxy_factory_address,
                cfg.roles_salt_nonce,
            )
            machine.transition_to(OnboardingState.MODULE_DEPLOYED)

            machine.transition_to(OnboardingState.FEE_POLICY_RESOLVING)
            fee_config = await self.fee_policy.resolve(client)
            predicted_proxy = await predict_yield_proxy_address(
                reader, cfg.yield_proxy_factory_address, wallet.safe_address, fee_config
            )
            machine.transition_to(OnboardingState.PROXY_ADDRESS_PREDICTED)
            self.observer.on_event(
                "onboarding.proxy_predicted",
                predicted_proxy=predicted_proxy,
                **fee_config.to_dict(),
            )

            permission_hashes = await PermissionConfigurator(
                reader, writer, nonces, self.observer
            ).configure(
                self.role_key,
                module.roles_address,
                cfg.executor_address,
                cfg.yield_proxy_factory_address,
                predicted_proxy,
                on_step=lambda index: machine.transition_to(
                    OnboardingState.PERMISSIONS_CONFIGURING, step=index
                ),
            )

            machine.transition_to(OnboardingState.MODULE_ENABLING)
            enable_tx = await safe_service.prepare(
                wallet.safe_address,
                wallet.safe_address,
                SAFE_ENABLE_MODULE.encode(module.roles_address),
            )
            enable_hash = await safe_service.execute(wallet.safe_address, enable_tx)
            machine.transition_to(OnboardingState.COMPLETE)
        except Exception as exc:
            step = machine.step_label
            if not machine.is_terminal:
                machine.fail(reason=str(exc))
            self.observer.on_event(
                "onboarding.failed",
                step=step,
                error=type(exc).__name__,
                message=str(exc),
            )
            raise OnboardingFailedError(step, exc) from exc

        result = OnboardingResult(
            wallet_address=wallet.safe_address,
            role_module_address=module.roles_address,
            predicted_proxy_address=predicted_proxy,
            role_key=self.role_key,
            wallet_salt_nonce=wallet.salt_nonce,
            role_module_salt_nonce=module.salt_nonce,
            fee_config=fee_config,
            transactions=OnboardingTransactions(
                wallet_deployment_hash=wallet.transaction_hash,
                role_module_deployment_hash=module.transaction_hash,
                module_enable_hash=enable_hash,
                permission_configuration_hashes=permission_hashes,
            ),
        )
        self.observer.on_event("onboarding.complete", **result.to_dict())
        return result
