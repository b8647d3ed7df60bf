"""
Safe transaction models.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from ..contracts import ZERO_ADDRESS
from ..execution.models import Operation


@dataclass(frozen=True)
class SafeTransaction:
    """A Safe transaction ready to be signed: the Safe's nonce and digest are fixed."""
    to: str
    value: int
    data: bytes
    operation: Operation
    nonce: int
    hash: bytes
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: str = ZERO_ADDRESS
    refund_receiver: str = ZERO_ADDRESS

    def hash_args(self) -> Tuple[Any, ...]:
        """Arguments of ``getTransactionHash`` for this transaction."""
        return (
            self.to,
            self.value,
            self.data,
            int(self.operation),
            self.safe_tx_gas,
            self.base_gas,
            self.gas_price,
            self.gas_token,
            self.refund_receiver,
            self.nonce,
        )

    def exec_args(self, signature: bytes) -> Tuple[Any, ...]:
        """Arguments of ``execTransaction`` for this transaction."""
        return self.hash_args()[:-1] + (signature,)


@dataclass(frozen=True)
class SafeDeployment:
    """Outcome of a Safe proxy deployment."""
    safe_address: str
    transaction_hash: str
    salt_nonce: int
    initializer: bytes
