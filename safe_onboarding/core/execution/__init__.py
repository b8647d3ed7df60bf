"""
Transaction Execution Layer

- TransactionExecutor: signs and submits transactions from a local account
- NonceSequencer: explicit, gap-free nonces for one run
- ContractFunction / ContractEvent: minimal ABI codec
"""

from .abi import ContractEvent, ContractFunction
from .models import ContractCall, GasEstimate, LogEntry, Operation, TransactionReceipt
from .nonce_manager import NonceSequencer

__all__ = [
    "ContractCall",
    "ContractEvent",
    "ContractFunction",
    "GasEstimate",
    "LogEntry",
    "NonceSequencer",
    "Operation",
    "TransactionReceipt",
]
