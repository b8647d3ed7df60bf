"""
Error Classification

Defines the error taxonomy for onboarding runs.
Every error carries the category that decides how the run reacts to it:
configuration and protocol problems are fatal, chain errors are surfaced with
the failing step, and remote dependency errors may be absorbed by the fee
fallback policy.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of onboarding errors."""

    CONFIGURATION = "configuration"                 # Missing/invalid address or credential
    PREDICTION_INTEGRITY = "prediction_integrity"   # CREATE2 prediction disagrees with chain
    REMOTE_DEPENDENCY = "remote_dependency"         # Fee policy API failure
    PROTOCOL = "protocol"                           # Malformed signature, missing event, bad bps
    CHAIN = "chain"                                 # Revert, dropped tx, RPC failure
    INTERNAL = "internal"                           # Unexpected non-onboarding exception


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory
    recoverable: bool = False
    step: Optional[str] = None
    tx_hash: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


class OnboardingError(Exception):
    """Base class for every error raised by the onboarding pipeline."""

    category: ErrorCategory = ErrorCategory.PROTOCOL
    recoverable: bool = False

    def __init__(
        self,
        message: str,
        *,
        step: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = ErrorContext(
            category=self.category,
            recoverable=self.recoverable,
            step=step,
            tx_hash=tx_hash,
            details=dict(details or {}),
        )

    @property
    def step(self) -> Optional[str]:
        return self.context.step

    @property
    def tx_hash(self) -> Optional[str]:
        return self.context.tx_hash


class ConfigurationError(OnboardingError):
    """Missing or invalid required address or credential."""

    category = ErrorCategory.CONFIGURATION


class PredictionIntegrityError(OnboardingError):
    """Observed creation address disagrees with the CREATE2 prediction."""

    category = ErrorCategory.PREDICTION_INTEGRITY

    def __init__(
        self,
        message: str = "Predicted address does not match created address",
        *,
        predicted: Optional[str] = None,
        observed: Optional[str] = None,
        step: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ):
        super().__init__(
            message,
            step=step,
            tx_hash=tx_hash,
            details={"predicted": predicted, "observed": observed},
        )
        self.predicted = predicted
        self.observed = observed


class RemoteDependencyError(OnboardingError):
    """
    Fee policy fetch failed.

    Recoverable because the default policy substitutes a documented fallback;
    it only surfaces when the strict policy is selected.
    """

    category = ErrorCategory.REMOTE_DEPENDENCY
    recoverable = True


class ProtocolError(OnboardingError):
    """Malformed or unexpected protocol data. Retrying reproduces the failure."""

    category = ErrorCategory.PROTOCOL


class InvalidSignatureError(ProtocolError):
    """Signature has the wrong length or recovery id."""


class CreationEventNotFoundError(ProtocolError):
    """Deployment receipt carries no creation event from the expected factory."""

    def __init__(
        self,
        message: str = "Creation event not found in transaction receipt",
        *,
        emitter: Optional[str] = None,
        event: Optional[str] = None,
        step: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ):
        super().__init__(
            message,
            step=step,
            tx_hash=tx_hash,
            details={"emitter": emitter, "event": event},
        )


class FeeBasisPointsError(ProtocolError):
    """Fee basis points outside [0, 10000]."""


class ChainError(OnboardingError):
    """Chain interaction failed. Retry policy belongs to the transport layer."""

    category = ErrorCategory.CHAIN


class RpcError(ChainError):
    """JSON-RPC transport or node error."""

    def __init__(
        self,
        message: str,
        *,
        method: Optional[str] = None,
        code: Optional[int] = None,
        data: Any = None,
        step: Optional[str] = None,
    ):
        super().__init__(
            message,
            step=step,
            details={"method": method, "code": code, "data": data},
        )
        self.method = method
        self.code = code


class TransactionRevertedError(ChainError):
    """Transaction was mined with a failed status."""


class ReceiptTimeoutError(ChainError):
    """No receipt observed before the configured timeout."""


class OnboardingFailedError(OnboardingError):
    """
    An onboarding run failed at a specific step.

    ``cause`` is the original exception; the category and recoverability
    mirror it when it is an ``OnboardingError``; any other cause is
    categorized as ``INTERNAL``.
    """

    def __init__(self, step: str, cause: BaseException):
        self.cause = cause
        if isinstance(cause, OnboardingError):
            self.category = cause.category
            self.recoverable = cause.recoverable
            tx_hash = cause.tx_hash
            details = dict(cause.context.details)
        else:
            self.category = ErrorCategory.INTERNAL
            self.recoverable = False
            tx_hash = None
            details = {}
        details["cause"] = type(cause).__name__
        super().__init__(
            f"Onboarding failed at {step}: {cause}",
            step=step,
            tx_hash=tx_hash,
            details=details,
        )
