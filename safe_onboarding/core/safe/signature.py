"""
ECDSA signature normalization for Safe ``execTransaction``.

The Safe's signature checker treats ``v`` as a type byte: 27/28 select the
plain ECDSA branch. Signers that emit ``v`` in {0, 1} are shifted into that
range; anything else is rejected before a transaction is submitted.
"""

from dataclasses import dataclass
from typing import Union

from eth_utils import to_bytes

from ..errors import InvalidSignatureError

SIGNATURE_LENGTH = 65


@dataclass(frozen=True)
class SignatureParts:
    r: bytes
    s: bytes
    v: int


def _coerce(signature: Union[bytes, str]) -> bytes:
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    try:
        return to_bytes(hexstr=signature)
    except ValueError as exc:
        raise InvalidSignatureError(f"Signature is not valid hex: {exc}") from exc


def split_signature(signature: Union[bytes, str]) -> SignatureParts:
    """Split a 65-byte signature into r, s and a 27/28-based v."""
    raw = _coerce(signature)
    if len(raw) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"Invalid signature length: expected {SIGNATURE_LENGTH} bytes, received {len(raw)}"
        )
    v = raw[64]
    if v < 27:
        v += 27
    return SignatureParts(r=raw[:32], s=raw[32:64], v=v)


def join_signature(parts: SignatureParts) -> bytes:
    if parts.v not in (27, 28):
        raise InvalidSignatureError(
            f"Invalid recovery id: expected 27 or 28, received {parts.v}"
        )
    if len(parts.r) != 32 or len(parts.s) != 32:
        raise InvalidSignatureError("r and s must be 32 bytes each")
    return parts.r + parts.s + bytes([parts.v])


def normalize_signature(signature: Union[bytes, str]) -> bytes:
    return join_signature(split_signature(signature))
