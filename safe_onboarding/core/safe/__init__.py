"""Safe proxy deployment and Safe transactions."""

from .models import SafeDeployment, SafeTransaction
from .multisend import build_multisend_call, encode_multisend_transactions
from .signature import SignatureParts, join_signature, normalize_signature, split_signature
from .transactions import SafeTransactionService, encode_safe_setup, extract_created_address

__all__ = [
    "SafeDeployment",
    "SafeTransaction",
    "SafeTransactionService",
    "SignatureParts",
    "build_multisend_call",
    "encode_multisend_transactions",
    "encode_safe_setup",
    "extract_created_address",
    "join_signature",
    "normalize_signature",
    "split_signature",
]
