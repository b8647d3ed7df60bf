"""
Nonce sequencing for dependent transactions.

One onboarding run submits a chain of transactions from a single signer, each
of which must land after the previous one. The sequencer hands out explicit
nonces so the run never depends on the node's pending-pool view between
submissions.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from ...providers.base import ChainReader


class NonceSequencer:
    """
    Issues strictly increasing, gap-free nonces for one address.

    Features:
    - Seeded once from the chain's pending transaction count
    - Every consumed nonce is recorded for diagnostics
    - Safe for concurrent callers (threads or tasks)

    Scoped to one run; never persisted or shared.
    """

    def __init__(self, address: str, start: int):
        if start < 0:
            raise ValueError("start nonce must be non-negative")
        self.address = address
        self._next = start
        self._issued: List[int] = []
        self._lock = threading.Lock()

    @classmethod
    async def from_chain(cls, reader: "ChainReader", address: str) -> "NonceSequencer":
        """Seed from ``eth_getTransactionCount(address, "pending")``."""
        start = await reader.get_transaction_count(address, "pending")
        return cls(address, start)

    def consume(self) -> int:
        """Return the next nonce and advance."""
        with self._lock:
            nonce = self._next
            self._next += 1
            self._issued.append(nonce)
            return nonce

    def peek(self) -> int:
        with self._lock:
            return self._next

    @property
    def issued(self) -> List[int]:
        with self._lock:
            return list(self._issued)

    def __repr__(self) -> str:
        return f"NonceSequencer(address={self.address!r}, next={self.peek()})"
