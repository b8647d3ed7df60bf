"""Async JSON-RPC client for an EVM node."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from eth_utils import to_bytes, to_checksum_address, to_hex, to_int

from ..core.errors import ReceiptTimeoutError, RpcError
from ..core.execution.models import TransactionReceipt
from .base import ChainReader

logger = logging.getLogger(__name__)


class JsonRpcProvider(ChainReader):
    """Thin wrapper around the standard ``eth_*`` JSON-RPC methods."""

    name = "json-rpc"

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_s: float = 30.0,
        poll_interval_s: float = 2.0,
        receipt_timeout_s: float = 300.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not rpc_url:
            raise ValueError("rpc_url is required")
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s
        self.poll_interval_s = poll_interval_s
        self.receipt_timeout_s = receipt_timeout_s
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "JsonRpcProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def request(self, method: str, params: List[Any]) -> Any:
        """Issue one JSON-RPC request and return its ``result``."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise RpcError(
                f"RPC HTTP {exc.response.status_code} for {method}",
                method=method,
                code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise RpcError(f"RPC transport error for {method}: {exc}", method=method) from exc
        except ValueError as exc:
            raise RpcError(f"RPC returned a non-JSON body for {method}", method=method) from exc

        if "error" in body:
            error = body["error"] or {}
            raise RpcError(
                f"RPC error for {method}: {error.get('message', error)}",
                method=method,
                code=error.get("code"),
                data=error.get("data"),
            )
        return body.get("result")

    async def get_chain_id(self) -> int:
        return to_int(hexstr=await self.request("eth_chainId", []))

    async def get_transaction_count(self, address: str, block: str = "pending") -> int:
        result = await self.request(
            "eth_getTransactionCount", [to_checksum_address(address), block]
        )
        return to_int(hexstr=result)

    async def call(self, to: str, data: bytes) -> bytes:
        result = await self.request(
            "eth_call",
            [{"to": to_checksum_address(to), "data": to_hex(data)}, "latest"],
        )
        return to_bytes(hexstr=result or "0x")

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        return to_int(hexstr=await self.request("eth_estimateGas", [tx]))

    async def fee_history(
        self,
        block_count: int = 1,
        newest_block: str = "latest",
        reward_percentiles: Optional[List[int]] = None,
    ) -> Dict[str, Any]:
        return await self.request(
            "eth_feeHistory",
            [block_count, newest_block, reward_percentiles or [50]],
        )

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        tx_hash = await self.request("eth_sendRawTransaction", [to_hex(raw_tx)])
        logger.info(f"Transaction submitted: {tx_hash}")
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        payload = await self.request("eth_getTransactionReceipt", [tx_hash])
        if not payload:
            return None
        return TransactionReceipt.from_rpc(payload)

    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Poll until the receipt appears or ``receipt_timeout_s`` elapses."""
        deadline = time.monotonic() + self.receipt_timeout_s
        while True:
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt is not None:
                logger.info(
                    f"Transaction mined: {tx_hash} "
                    f"(block {receipt.block_number}, status {receipt.status})"
                )
                return receipt
            if time.monotonic() >= deadline:
                raise ReceiptTimeoutError(
                    f"No receipt for {tx_hash} after {self.receipt_timeout_s}s",
                    tx_hash=tx_hash,
                )
            await asyncio.sleep(self.poll_interval_s)

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()
