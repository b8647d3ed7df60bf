"""
Onboarding Models

Defines the states, transition records and result types for an onboarding run.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from ..policy.fee_policy import FeeConfig


class OnboardingState(str, Enum):
    """States an onboarding run moves through."""

    IDLE = "idle"
    WALLET_DEPLOYING = "wallet_deploying"
    WALLET_DEPLOYED = "wallet_deployed"
    MODULE_DEPLOYING = "module_deploying"
    MODULE_DEPLOYED = "module_deployed"
    FEE_POLICY_RESOLVING = "fee_policy_resolving"
    PROXY_ADDRESS_PREDICTED = "proxy_address_predicted"
    PERMISSIONS_CONFIGURING = "permissions_configuring"   # Sub-steps 1..6
    MODULE_ENABLING = "module_enabling"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OnboardingState.COMPLETE, OnboardingState.FAILED)


@dataclass
class StateTransition:
    """Record of a state transition."""

    from_state: OnboardingState
    to_state: OnboardingState
    step: Optional[int] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromState": self.from_state.value,
            "toState": self.to_state.value,
            "step": self.step,
            "timestamp": self.timestamp.isoformat(),
            "reason": self.reason,
        }


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(
        self,
        from_state: OnboardingState,
        to_state: OnboardingState,
        message: Optional[str] = None,
    ):
        self.from_state = from_state
        self.to_state = to_state
        self.message = message or f"Cannot transition from {from_state.value} to {to_state.value}"
        super().__init__(self.message)


@dataclass
class OnboardingTransactions:
    """Hashes of every transaction a run submitted."""

    wallet_deployment_hash: str
    role_module_deployment_hash: str
    module_enable_hash: str
    permission_configuration_hashes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "walletDeploymentHash": self.wallet_deployment_hash,
            "roleModuleDeploymentHash": self.role_module_deployment_hash,
            "moduleEnableHash": self.module_enable_hash,
            "permissionConfigurationHashes": list(self.permission_configuration_hashes),
        }


@dataclass
class OnboardingResult:
    """Everything needed to locate and audit a provisioned client."""

    wallet_address: str
    role_module_address: str
    predicted_proxy_address: str
    role_key: bytes
    wallet_salt_nonce: int
    role_module_salt_nonce: int
    fee_config: FeeConfig
    transactions: OnboardingTransactions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "walletAddress": self.wallet_address,
            "roleModuleAddress": self.role_module_address,
            "predictedProxyAddress": self.predicted_proxy_address,
            "roleKey": "0x" + self.role_key.hex(),
            # Salt nonces exceed 2**53; keep them exact in JSON consumers.
            "walletSaltNonce": str(self.wallet_salt_nonce),
            "roleModuleSaltNonce": str(self.role_module_salt_nonce),
            "feeConfig": self.fee_config.to_dict(),
            "transactions": self.transactions.to_dict(),
        }
