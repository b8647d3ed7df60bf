"""
Minimal ABI codec for the handful of contract functions and events we drive.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import (
    event_signature_to_log_topic,
    function_signature_to_4byte_selector,
    is_address,
    to_checksum_address,
)

from .models import LogEntry


def _parse_types(signature: str) -> Tuple[str, ...]:
    """Extract the argument types from ``name(type1,type2)``."""
    if "(" not in signature or not signature.endswith(")"):
        raise ValueError(f"Malformed signature: {signature}")
    inner = signature[signature.index("(") + 1:-1]
    if not inner:
        return ()
    return tuple(part.strip() for part in inner.split(","))


def _normalize(abi_type: str, value: Any) -> Any:
    if abi_type == "address" and isinstance(value, str):
        return to_checksum_address(value)
    if abi_type == "address[]":
        return [to_checksum_address(item) for item in value]
    if abi_type.startswith("uint") and not abi_type.endswith("]"):
        return int(value)
    return value


def _denormalize(abi_type: str, value: Any) -> Any:
    if abi_type == "address" and isinstance(value, str) and is_address(value):
        return to_checksum_address(value)
    if abi_type == "address[]":
        return tuple(to_checksum_address(item) for item in value)
    return value


class ContractFunction:
    """A contract function identified by its canonical signature."""

    def __init__(self, signature: str, outputs: Sequence[str] = ()):
        self.signature = signature
        self.name = signature.split("(", 1)[0]
        self.inputs = _parse_types(signature)
        self.outputs = tuple(outputs)
        self.selector = function_signature_to_4byte_selector(signature)

    def encode(self, *args: Any) -> bytes:
        """Build calldata: selector followed by the ABI-encoded arguments."""
        if len(args) != len(self.inputs):
            raise ValueError(
                f"{self.name} expects {len(self.inputs)} arguments, received {len(args)}"
            )
        values = [_normalize(t, v) for t, v in zip(self.inputs, args)]
        return self.selector + encode(list(self.inputs), values)

    def decode_input(self, data: bytes) -> Tuple[Any, ...]:
        if data[:4] != self.selector:
            raise ValueError(f"Calldata is not a {self.name} call")
        decoded = decode(list(self.inputs), data[4:])
        return tuple(_denormalize(t, v) for t, v in zip(self.inputs, decoded))

    def decode_output(self, data: bytes) -> Tuple[Any, ...]:
        decoded = decode(list(self.outputs), data)
        return tuple(_denormalize(t, v) for t, v in zip(self.outputs, decoded))

    def __repr__(self) -> str:
        return f"ContractFunction({self.signature!r})"


class ContractEvent:
    """
    A contract event identified by its canonical signature.

    Indexed parameters are assumed to lead the parameter list, which holds for
    every event we decode. How many are indexed is inferred from the number of
    topics, so the same definition decodes deployments that index the first
    argument and deployments that do not.
    """

    def __init__(self, signature: str):
        self.signature = signature
        self.name = signature.split("(", 1)[0]
        self.inputs = _parse_types(signature)
        self.topic = event_signature_to_log_topic(signature)

    def matches(self, log: LogEntry) -> bool:
        return bool(log.topics) and log.topics[0] == self.topic

    def decode(self, log: LogEntry) -> Optional[Tuple[Any, ...]]:
        """
        Decode a log into its argument values.

        Returns None when the log is a different event. Raises when the topic
        matches but the payload does not decode.
        """
        if not self.matches(log):
            return None
        indexed_topics = log.topics[1:]
        if len(indexed_topics) > len(self.inputs):
            raise ValueError(f"Too many topics for {self.name}")

        values = []
        for abi_type, topic in zip(self.inputs, indexed_topics):
            (value,) = decode([abi_type], topic)
            values.append(value)
        remaining = list(self.inputs[len(indexed_topics):])
        if remaining:
            values.extend(decode(remaining, log.data))
        return tuple(_denormalize(t, v) for t, v in zip(self.inputs, values))

    def __repr__(self) -> str:
        return f"ContractEvent({self.signature!r})"


__all__ = ["ContractEvent", "ContractFunction", "DecodingError"]
