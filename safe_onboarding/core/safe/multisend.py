"""
MultiSendCallOnly batching.

Each call is packed as ``operation(1) ++ to(20) ++ value(32) ++ len(32) ++ data``
and the concatenation is passed to ``multiSend(bytes)``, which the Safe invokes
through a delegate call.
"""

from typing import Sequence

from eth_utils import to_canonical_address

from ..contracts import MULTI_SEND
from ..execution.models import ContractCall, Operation


def encode_multisend_transactions(calls: Sequence[ContractCall]) -> bytes:
    if not calls:
        raise ValueError("encode_multisend_transactions requires at least one call")
    packed = b""
    for call in calls:
        packed += (
            int(call.operation).to_bytes(1, "big")
            + to_canonical_address(call.to)
            + int(call.value).to_bytes(32, "big")
            + len(call.data).to_bytes(32, "big")
            + call.data
        )
    return packed


def build_multisend_call(multisend_address: str, calls: Sequence[ContractCall]) -> ContractCall:
    """Wrap ``calls`` as a single delegate call into the MultiSend contract."""
    return ContractCall(
        to=multisend_address,
        data=MULTI_SEND.encode(encode_multisend_transactions(calls)),
        operation=Operation.DELEGATE_CALL,
    )
