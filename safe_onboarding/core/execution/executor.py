"""
Transaction executor for on-chain execution.

Handles the signer's side of a run:
- Gas estimation (with safety multiplier)
- EIP-1559 fee selection from fee history
- Signing with a local account
- Raw transaction submission
- Receipt status checks
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address, to_hex, to_int

from ..errors import TransactionRevertedError
from ...providers.base import ChainReader, ChainWriter
from ...providers.rpc import JsonRpcProvider
from .models import GasEstimate, TransactionReceipt


logger = logging.getLogger(__name__)

DEFAULT_PRIORITY_FEE_WEI = 1_000_000_000


class TransactionExecutor(ChainWriter):
    """
    Signs and submits transactions from one local account.

    Nonces are always supplied by the caller (see ``NonceSequencer``); the
    executor never asks the node which nonce to use.
    """

    def __init__(
        self,
        rpc: JsonRpcProvider,
        account: LocalAccount,
        *,
        chain_id: Optional[int] = None,
        gas_multiplier: float = 1.2,
    ):
        if gas_multiplier < 1:
            raise ValueError("gas_multiplier must be >= 1")
        self.rpc = rpc
        self.account = account
        self.gas_multiplier = gas_multiplier
        self._chain_id = chain_id
        self._chain_id_lock = asyncio.Lock()

    @classmethod
    def from_private_key(
        cls,
        rpc: JsonRpcProvider,
        private_key: str,
        **kwargs: Any,
    ) -> "TransactionExecutor":
        return cls(rpc, Account.from_key(private_key), **kwargs)

    @property
    def address(self) -> str:
        return to_checksum_address(self.account.address)

    async def chain_id(self) -> int:
        async with self._chain_id_lock:
            if self._chain_id is None:
                self._chain_id = await self.rpc.get_chain_id()
            return self._chain_id

    async def estimate_gas(self, to: str, data: bytes, value: int = 0) -> GasEstimate:
        """
        Estimate gas limit and EIP-1559 fees for a call from the signer.

        Args:
            to: Destination contract
            data: Calldata
            value: Wei attached to the call

        Returns:
            GasEstimate with limit and fee caps
        """
        call_obj: Dict[str, Any] = {
            "from": self.address,
            "to": to_checksum_address(to),
            "data": to_hex(data),
        }
        if value > 0:
            call_obj["value"] = hex(value)

        gas_limit = int(await self.rpc.estimate_gas(call_obj) * self.gas_multiplier)

        fee_history = await self.rpc.fee_history(1, "latest", [50])
        base_fee = to_int(hexstr=fee_history["baseFeePerGas"][-1])
        rewards = fee_history.get("reward") or []
        if rewards and rewards[0]:
            priority_fee = to_int(hexstr=rewards[0][0])
        else:
            priority_fee = DEFAULT_PRIORITY_FEE_WEI

        return GasEstimate(
            gas_limit=gas_limit,
            max_fee_per_gas=base_fee * 2 + priority_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def send_transaction(
        self,
        to: str,
        data: bytes,
        *,
        nonce: int,
        value: int = 0,
    ) -> str:
        estimate = await self.estimate_gas(to, data, value)
        tx = {
            "type": 2,
            "chainId": await self.chain_id(),
            "nonce": nonce,
            "to": to_checksum_address(to),
            "value": value,
            "data": to_hex(data),
            "gas": estimate.gas_limit,
            "maxFeePerGas": estimate.max_fee_per_gas,
            "maxPriorityFeePerGas": estimate.max_priority_fee_per_gas,
        }
        signed = self.account.sign_transaction(tx)
        logger.info(
            f"Submitting transaction to {tx['to']}: nonce={nonce}, gas={estimate.gas_limit}"
        )
        return await self.rpc.send_raw_transaction(bytes(signed.raw_transaction))

    async def sign_hash(self, digest: bytes) -> bytes:
        if len(digest) != 32:
            raise ValueError(f"digest must be 32 bytes, got {len(digest)}")
        # Raw hash signature (no EIP-191 prefix): v in {27, 28}.
        signed = self.account.unsafe_sign_hash(digest)
        return bytes(signed.signature)


async def wait_for_success(
    reader: ChainReader,
    tx_hash: str,
    *,
    step: Optional[str] = None,
) -> TransactionReceipt:
    """Await the receipt of ``tx_hash`` and raise if it reverted."""
    receipt = await reader.wait_for_receipt(tx_hash)
    if not receipt.succeeded:
        raise TransactionRevertedError(
            f"Transaction {tx_hash} reverted",
            step=step,
            tx_hash=tx_hash,
        )
    return receipt
