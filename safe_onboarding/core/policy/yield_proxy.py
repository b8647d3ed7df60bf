"""
Yield-proxy address prediction.

The yield-proxy factory derives each client's proxy address from the client
and its fee split, so the address is known (and can be permissioned) before
the proxy exists.
"""

from eth_utils import to_checksum_address

from ..contracts import YIELD_PREDICT_PROXY_ADDRESS
from ...providers.base import ChainReader
from .fee_policy import FeeConfig


async def predict_yield_proxy_address(
    reader: ChainReader,
    factory: str,
    client: str,
    fee_config: FeeConfig,
) -> str:
    """Validate the fee split, then ask the factory for the proxy address."""
    fee_config.validate()
    data = YIELD_PREDICT_PROXY_ADDRESS.encode(client, fee_config.deposit_bps, fee_config.profit_bps)
    (proxy,) = YIELD_PREDICT_PROXY_ADDRESS.decode_output(await reader.call(factory, data))
    return to_checksum_address(proxy)
