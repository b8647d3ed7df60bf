"""
CREATE2 address prediction for Safe proxies and Zodiac module proxies.

Everything here is pure: the same inputs always yield the same address, which
is what lets the pipeline pre-compute where contracts will land and verify the
chain afterwards.
"""

import secrets
import time
from typing import Optional, Union

from eth_abi import encode
from eth_utils import keccak, to_bytes, to_canonical_address, to_checksum_address

from .errors import PredictionIntegrityError

BytesLike = Union[bytes, str]

MODULE_PROXY_PREFIX = bytes.fromhex("602d8060093d393df3363d3d373d3d3d363d73")
MODULE_PROXY_SUFFIX = bytes.fromhex("5af43d82803e903d91602b57fd5bf3")

SALT_NONCE_RANDOM_RANGE = 1_000_000


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


def calculate_salt(initializer: BytesLike, salt_nonce: int) -> bytes:
    """keccak256(keccak256(initializer) ++ uint256(salt_nonce))"""
    if salt_nonce < 0:
        raise ValueError("salt_nonce must be non-negative")
    initializer_hash = keccak(_as_bytes(initializer))
    return keccak(initializer_hash + encode(["uint256"], [salt_nonce]))


def compute_create2_address(deployer: str, salt: BytesLike, init_code: BytesLike) -> str:
    """
    EIP-1014 address: last 20 bytes of
    keccak256(0xff ++ deployer ++ salt ++ keccak256(init_code)).
    """
    salt_bytes = _as_bytes(salt)
    if len(salt_bytes) != 32:
        raise ValueError(f"salt must be 32 bytes, got {len(salt_bytes)}")
    preimage = (
        b"\xff"
        + to_canonical_address(deployer)
        + salt_bytes
        + keccak(_as_bytes(init_code))
    )
    return to_checksum_address(keccak(preimage)[12:])


def module_proxy_init_code(master_copy: str) -> bytes:
    """Init code of the minimal proxy the Zodiac ModuleProxyFactory deploys."""
    return MODULE_PROXY_PREFIX + to_canonical_address(master_copy) + MODULE_PROXY_SUFFIX


def safe_proxy_init_code(proxy_creation_code: BytesLike, singleton: str) -> bytes:
    """Init code of a Safe proxy: the factory's creation code plus the singleton word."""
    return _as_bytes(proxy_creation_code) + encode(["address"], [to_checksum_address(singleton)])


def predict_module_proxy_address(
    factory: str,
    master_copy: str,
    initializer: BytesLike,
    salt_nonce: int,
) -> str:
    salt = calculate_salt(initializer, salt_nonce)
    return compute_create2_address(factory, salt, module_proxy_init_code(master_copy))


def predict_safe_proxy_address(
    factory: str,
    singleton: str,
    proxy_creation_code: BytesLike,
    initializer: BytesLike,
    salt_nonce: int,
) -> str:
    salt = calculate_salt(initializer, salt_nonce)
    return compute_create2_address(
        factory, salt, safe_proxy_init_code(proxy_creation_code, singleton)
    )


def generate_salt_nonce() -> int:
    """Millisecond timestamp in the high bits, a random suffix in the low 32."""
    unix_ms = int(time.time() * 1000)
    return (unix_ms << 32) | secrets.randbelow(SALT_NONCE_RANDOM_RANGE)


def ensure_prediction_matches(
    predicted: str,
    observed: str,
    *,
    step: Optional[str] = None,
    tx_hash: Optional[str] = None,
) -> str:
    """Return the checksummed address, or raise if the chain disagrees."""
    if predicted.lower() != observed.lower():
        raise PredictionIntegrityError(
            f"Predicted address {predicted} does not match created address {observed}",
            predicted=predicted,
            observed=observed,
            step=step,
            tx_hash=tx_hash,
        )
    return to_checksum_address(observed)
