from abc import ABC, abstractmethod

from ..core.execution.models import TransactionReceipt


class ChainReader(ABC):
    """Read side of the chain: account nonces, contract reads, receipts"""

    @abstractmethod
    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        """Number of transactions sent from ``address`` as of ``block``"""
        pass

    @abstractmethod
    async def call(self, to: str, data: bytes) -> bytes:
        """Execute a read-only contract call and return the raw return data"""
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Block until ``tx_hash`` is mined and return its receipt"""
        pass

    async def close(self) -> None:
        """Release transport resources"""
        return None


class ChainWriter(ABC):
    """Write side of the chain: one signing account"""

    @property
    @abstractmethod
    def address(self) -> str:
        """Checksummed address of the signing account"""
        pass

    @abstractmethod
    async def send_transaction(
        self,
        to: str,
        data: bytes,
        *,
        nonce: int,
        value: int = 0,
    ) -> str:
        """Sign and submit a transaction with an explicit nonce; return its hash"""
        pass

    @abstractmethod
    async def sign_hash(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest as-is and return the 65-byte r||s||v signature"""
        pass
