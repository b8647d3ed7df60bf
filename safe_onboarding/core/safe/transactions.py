"""
Safe wallet-transaction protocol.

Deploys Safe proxies through the proxy factory and runs the Safe's own
transaction flow: read the Safe nonce, let the Safe compute the digest, sign
it with the single owner and submit ``execTransaction``.
"""

from dataclasses import replace
from typing import Optional, Sequence

from eth_utils import to_checksum_address

from ..address import ensure_prediction_matches, generate_salt_nonce, predict_safe_proxy_address
from ..contracts import (
    SAFE_CREATE_PROXY_WITH_NONCE,
    SAFE_EXEC_TRANSACTION,
    SAFE_GET_TRANSACTION_HASH,
    SAFE_NONCE,
    SAFE_PROXY_CREATION,
    SAFE_PROXY_CREATION_CODE,
    SAFE_SETUP,
    ZERO_ADDRESS,
)
from ..errors import CreationEventNotFoundError
from ..execution.abi import ContractEvent, DecodingError
from ..execution.executor import wait_for_success
from ..execution.models import ContractCall, Operation, TransactionReceipt
from ..execution.nonce_manager import NonceSequencer
from ..observer import NULL_OBSERVER, OnboardingObserver
from ...providers.base import ChainReader, ChainWriter
from .models import SafeDeployment, SafeTransaction
from .multisend import build_multisend_call
from .signature import normalize_signature


def encode_safe_setup(owner: str) -> bytes:
    """Initializer for a single-owner, threshold-1 Safe with no modules or payment."""
    return SAFE_SETUP.encode(
        [owner],
        1,
        ZERO_ADDRESS,
        b"",
        ZERO_ADDRESS,
        ZERO_ADDRESS,
        0,
        ZERO_ADDRESS,
    )


def extract_created_address(
    receipt: TransactionReceipt,
    emitter: str,
    event: ContractEvent,
    *,
    step: Optional[str] = None,
) -> str:
    """
    Find the address announced by ``event`` from ``emitter`` in a receipt.

    Logs from other contracts, other events and undecodable payloads are
    skipped. The created address is the event's first argument.
    """
    for log in receipt.logs:
        if log.address.lower() != emitter.lower():
            continue
        try:
            decoded = event.decode(log)
        except (DecodingError, ValueError):
            continue
        if decoded is None:
            continue
        return to_checksum_address(decoded[0])

    raise CreationEventNotFoundError(
        f"{event.name} event from {emitter} not found in transaction receipt",
        emitter=emitter,
        event=event.name,
        step=step,
        tx_hash=receipt.transaction_hash,
    )


class SafeTransactionService:
    """
    Drives Safe deployment and Safe transactions for one signer.

    Every signer transaction takes its nonce from the shared run sequencer and
    waits for a successful receipt before returning.
    """

    def __init__(
        self,
        reader: ChainReader,
        writer: ChainWriter,
        nonces: NonceSequencer,
        observer: OnboardingObserver = NULL_OBSERVER,
    ):
        self.reader = reader
        self.writer = writer
        self.nonces = nonces
        self.observer = observer

    async def deploy(
        self,
        owner: str,
        singleton: str,
        factory: str,
        salt_nonce: Optional[int] = None,
    ) -> SafeDeployment:
        """
        Deploy a Safe proxy owned by ``owner`` and verify its predicted address.

        Args:
            owner: Sole Safe owner (threshold 1)
            singleton: Safe singleton (mastercopy) address
            factory: Safe proxy factory address
            salt_nonce: CREATE2 salt nonce; derived from the clock when omitted

        Returns:
            SafeDeployment with the created address and transaction hash
        """
        step = "safe_deployment"
        initializer = encode_safe_setup(owner)
        if salt_nonce is None:
            salt_nonce = generate_salt_nonce()

        (creation_code,) = SAFE_PROXY_CREATION_CODE.decode_output(
            await self.reader.call(factory, SAFE_PROXY_CREATION_CODE.encode())
        )
        predicted = predict_safe_proxy_address(
            factory, singleton, creation_code, initializer, salt_nonce
        )

        nonce = self.nonces.consume()
        tx_hash = await self.writer.send_transaction(
            factory,
            SAFE_CREATE_PROXY_WITH_NONCE.encode(singleton, initializer, salt_nonce),
            nonce=nonce,
        )
        self.observer.on_event(
            "safe.deployment_submitted",
            tx_hash=tx_hash,
            nonce=nonce,
            predicted_address=predicted,
            salt_nonce=salt_nonce,
        )

        receipt = await wait_for_success(self.reader, tx_hash, step=step)
        created = extract_created_address(receipt, factory, SAFE_PROXY_CREATION, step=step)
        safe_address = ensure_prediction_matches(predicted, created, step=step, tx_hash=tx_hash)

        self.observer.on_event("safe.deployed", safe_address=safe_address, tx_hash=tx_hash)
        return SafeDeployment(
            safe_address=safe_address,
            transaction_hash=tx_hash,
            salt_nonce=salt_nonce,
            initializer=initializer,
        )

    async def prepare(
        self,
        safe: str,
        to: str,
        data: bytes,
        value: int = 0,
        operation: Operation = Operation.CALL,
    ) -> SafeTransaction:
        """Read the Safe nonce and have the Safe compute the transaction digest."""
        (safe_nonce,) = SAFE_NONCE.decode_output(
            await self.reader.call(safe, SAFE_NONCE.encode())
        )
        draft = SafeTransaction(
            to=to_checksum_address(to),
            value=value,
            data=data,
            operation=Operation(operation),
            nonce=safe_nonce,
            hash=b"",
        )
        (digest,) = SAFE_GET_TRANSACTION_HASH.decode_output(
            await self.reader.call(safe, SAFE_GET_TRANSACTION_HASH.encode(*draft.hash_args()))
        )
        return replace(draft, hash=bytes(digest))

    async def prepare_batch(
        self,
        safe: str,
        multisend: str,
        calls: Sequence[ContractCall],
    ) -> SafeTransaction:
        """Prepare several calls as one Safe transaction through MultiSendCallOnly."""
        batch = build_multisend_call(multisend, calls)
        return await self.prepare(safe, batch.to, batch.data, batch.value, batch.operation)

    async def execute(self, safe: str, transaction: SafeTransaction) -> str:
        """Sign ``transaction`` with the single owner and submit it through the Safe."""
        step = "safe_execution"
        signature = normalize_signature(await self.writer.sign_hash(transaction.hash))

        nonce = self.nonces.consume()
        tx_hash = await self.writer.send_transaction(
            safe,
            SAFE_EXEC_TRANSACTION.encode(*transaction.exec_args(signature)),
            nonce=nonce,
        )
        self.observer.on_event(
            "safe.transaction_submitted",
            safe_address=safe,
            safe_nonce=transaction.nonce,
            tx_hash=tx_hash,
            nonce=nonce,
        )
        await wait_for_success(self.reader, tx_hash, step=step)
        return tx_hash
