"""
Transaction execution models and types.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

from eth_utils import to_bytes, to_checksum_address, to_int


class Operation(IntEnum):
    """Safe transaction operation kind."""
    CALL = 0
    DELEGATE_CALL = 1


@dataclass(frozen=True)
class ContractCall:
    """A single call the signer (or a Safe) should make."""
    to: str
    data: bytes
    value: int = 0
    operation: Operation = Operation.CALL


@dataclass
class GasEstimate:
    """Gas estimation for a transaction."""
    gas_limit: int
    max_fee_per_gas: int
    max_priority_fee_per_gas: int
    estimated_cost_wei: int = 0

    def __post_init__(self):
        if self.estimated_cost_wei == 0:
            self.estimated_cost_wei = self.gas_limit * self.max_fee_per_gas


@dataclass(frozen=True)
class LogEntry:
    """One event log from a transaction receipt."""
    address: str
    topics: Tuple[bytes, ...] = ()
    data: bytes = b""
    log_index: Optional[int] = None

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "LogEntry":
        log_index = payload.get("logIndex")
        return cls(
            address=to_checksum_address(payload["address"]),
            topics=tuple(to_bytes(hexstr=topic) for topic in payload.get("topics", [])),
            data=to_bytes(hexstr=payload.get("data") or "0x"),
            log_index=to_int(hexstr=log_index) if log_index is not None else None,
        )


@dataclass(frozen=True)
class TransactionReceipt:
    """Confirmation record returned by the chain for a submitted transaction."""
    transaction_hash: str
    status: int
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    logs: Tuple[LogEntry, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "TransactionReceipt":
        def _maybe_int(value: Optional[str]) -> Optional[int]:
            return to_int(hexstr=value) if value is not None else None

        # Pre-Byzantium receipts carry no status; treat them as successful.
        status = payload.get("status", "0x1")
        return cls(
            transaction_hash=payload["transactionHash"],
            status=to_int(hexstr=status),
            block_number=_maybe_int(payload.get("blockNumber")),
            gas_used=_maybe_int(payload.get("gasUsed")),
            logs=tuple(LogEntry.from_rpc(entry) for entry in payload.get("logs", [])),
        )
