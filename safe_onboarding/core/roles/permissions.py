"""
Roles permission configuration.

Scopes the executor's role to exactly two targets:

1. the yield-proxy factory, where only ``deposit`` may be called (value allowed)
2. the client's predicted yield proxy, where only ``withdraw`` may be called

then assigns the role to the executor and makes it the executor's default.
The six calls are applied strictly in order, one receipt at a time. There is
no compensation: a failure leaves earlier calls applied.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, List, Optional, Sequence

from eth_utils import function_signature_to_4byte_selector, keccak, to_checksum_address

from ..contracts import (
    ROLES_ALLOW_FUNCTION,
    ROLES_ASSIGN_ROLES,
    ROLES_SCOPE_TARGET,
    ROLES_SET_DEFAULT_ROLE,
    YIELD_DEPOSIT_SIGNATURE,
    YIELD_WITHDRAW_SIGNATURE,
)
from ..errors import ChainError, OnboardingError
from ..execution.executor import wait_for_success
from ..execution.models import ContractCall
from ..execution.nonce_manager import NonceSequencer
from ..observer import NULL_OBSERVER, OnboardingObserver
from ...providers.base import ChainReader, ChainWriter


class ExecutionOptions(IntEnum):
    """Roles ``ExecutionOptions`` enum."""
    NONE = 0
    SEND = 1
    DELEGATE_CALL = 2
    BOTH = 3


DEFAULT_ROLE_LABEL = "P2P_SUPERFORM_ROLE"

DEPOSIT_SELECTOR = function_signature_to_4byte_selector(YIELD_DEPOSIT_SIGNATURE)
WITHDRAW_SELECTOR = function_signature_to_4byte_selector(YIELD_WITHDRAW_SIGNATURE)

PERMISSION_STEP_COUNT = 6


def role_key_from_label(label: str) -> bytes:
    """keccak256 of the UTF-8 label."""
    if not label:
        raise ValueError("role label must not be empty")
    return keccak(text=label)


DEFAULT_ROLE_KEY = role_key_from_label(DEFAULT_ROLE_LABEL)


@dataclass(frozen=True)
class PermissionRule:
    """One allowed (target, function) pair."""
    target: str
    selector: bytes
    options: ExecutionOptions


def permission_rules(
    target_factory: str,
    predicted_proxy: str,
    deposit_selector: bytes = DEPOSIT_SELECTOR,
    withdraw_selector: bytes = WITHDRAW_SELECTOR,
) -> List[PermissionRule]:
    return [
        PermissionRule(to_checksum_address(target_factory), deposit_selector, ExecutionOptions.SEND),
        PermissionRule(to_checksum_address(predicted_proxy), withdraw_selector, ExecutionOptions.NONE),
    ]


def build_permission_calls(
    role_key: bytes,
    roles_address: str,
    executor: str,
    target_factory: str,
    predicted_proxy: str,
    deposit_selector: bytes = DEPOSIT_SELECTOR,
    withdraw_selector: bytes = WITHDRAW_SELECTOR,
) -> List[ContractCall]:
    """
    The six Roles calls in application order.

    Each target is scoped before its function is allowed; role assignment
    comes last so the executor never holds a partially scoped role.
    """
    if len(role_key) != 32:
        raise ValueError("role key must be 32 bytes")
    roles_address = to_checksum_address(roles_address)

    calls: List[ContractCall] = []
    for rule in permission_rules(target_factory, predicted_proxy, deposit_selector, withdraw_selector):
        calls.append(ContractCall(roles_address, ROLES_SCOPE_TARGET.encode(role_key, rule.target)))
        calls.append(
            ContractCall(
                roles_address,
                ROLES_ALLOW_FUNCTION.encode(role_key, rule.target, rule.selector, int(rule.options)),
            )
        )
    calls.append(ContractCall(roles_address, ROLES_ASSIGN_ROLES.encode(executor, [role_key], [True])))
    calls.append(ContractCall(roles_address, ROLES_SET_DEFAULT_ROLE.encode(executor, role_key)))
    return calls


class PermissionConfigurator:
    """Applies the permission calls from the Roles owner (the signer)."""

    def __init__(
        self,
        reader: ChainReader,
        writer: ChainWriter,
        nonces: NonceSequencer,
        observer: OnboardingObserver = NULL_OBSERVER,
    ):
        self.reader = reader
        self.writer = writer
        self.nonces = nonces
        self.observer = observer

    async def configure(
        self,
        role_key: bytes,
        roles_address: str,
        executor: str,
        target_factory: str,
        predicted_proxy: str,
        *,
        deposit_selector: bytes = DEPOSIT_SELECTOR,
        withdraw_selector: bytes = WITHDRAW_SELECTOR,
        on_step: Optional[Callable[[int], None]] = None,
    ) -> List[str]:
        """
        Submit the six permission calls in order and return their hashes.

        Args:
            role_key: 32-byte role identifier
            roles_address: Deployed Roles module
            executor: Module that receives the role
            target_factory: Yield-proxy factory (deposit target)
            predicted_proxy: Client's yield proxy (withdraw target)
            deposit_selector: Selector allowed on the factory
            withdraw_selector: Selector allowed on the proxy
            on_step: Called with the 1-based step number before each call is sent

        Returns:
            Six transaction hashes, in application order
        """
        calls = build_permission_calls(
            role_key,
            roles_address,
            executor,
            target_factory,
            predicted_proxy,
            deposit_selector,
            withdraw_selector,
        )
        return await self.apply(calls, on_step=on_step)

    async def apply(
        self,
        calls: Sequence[ContractCall],
        *,
        on_step: Optional[Callable[[int], None]] = None,
    ) -> List[str]:
        applied: List[str] = []
        for index, call in enumerate(calls, start=1):
            step = f"permission_{index}"
            if on_step is not None:
                on_step(index)
            try:
                nonce = self.nonces.consume()
                tx_hash = await self.writer.send_transaction(call.to, call.data, nonce=nonce)
                await wait_for_success(self.reader, tx_hash, step=step)
            except OnboardingError as exc:
                exc.context.details["applied_hashes"] = list(applied)
                exc.context.details["failed_permission_step"] = index
                raise
            except Exception as exc:
                raise ChainError(
                    f"Permission step {index} failed: {exc}",
                    step=step,
                    details={
                        "applied_hashes": list(applied),
                        "failed_permission_step": index,
                        "error": type(exc).__name__,
                    },
                ) from exc
            applied.append(tx_hash)
            self.observer.on_event(
                "roles.permission_applied",
                step=index,
                total=len(calls),
                tx_hash=tx_hash,
                nonce=nonce,
            )
        return applied
