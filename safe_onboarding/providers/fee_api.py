"""Async client for the fee policy API."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from eth_utils import to_checksum_address


class FeeApiProvider:
    """
    Fetches a client's fee split from the fee policy endpoint.

    Errors are not handled here: ``httpx`` exceptions and JSON decoding errors
    propagate so the resolver can apply its fallback policy.
    """

    name = "fee-api"

    def __init__(
        self,
        base_url: str,
        *,
        api_token: Optional[str] = None,
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.api_token = api_token
        self.timeout_s = timeout_s
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"accept": "application/json"}
        if self.api_token:
            headers["authorization"] = f"Bearer {self.api_token}"
        return headers

    async def fetch_fee_config(self, client_address: str) -> Any:
        """GET ``<base_url>?client=<address>`` and return the decoded JSON body."""
        async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
            response = await client.get(
                self.base_url,
                params={"client": to_checksum_address(client_address)},
                headers=self._headers(),
            )
            response.raise_for_status()
            return response.json()
