"""
Tests for Safe deployment and the Safe transaction flow on the fake chain.
"""

import pytest
from eth_abi import encode
from eth_utils import keccak

from safe_onboarding.core.address import predict_safe_proxy_address
from safe_onboarding.core.contracts import SAFE_ENABLE_MODULE, SAFE_PROXY_CREATION, SAFE_SETUP, ZERO_ADDRESS
from safe_onboarding.core.errors import (
    CreationEventNotFoundError,
    PredictionIntegrityError,
    TransactionRevertedError,
)
from safe_onboarding.core.execution.models import ContractCall, LogEntry, Operation, TransactionReceipt
from safe_onboarding.core.safe.transactions import (
    SafeTransactionService,
    encode_safe_setup,
    extract_created_address,
)

from fakes import MULTI_SEND, PROXY_CREATION_CODE, SAFE_PROXY_FACTORY, SAFE_SINGLETON, FakeChain


ROLES = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def service(chain, nonces, observer) -> SafeTransactionService:
    return SafeTransactionService(chain, chain, nonces, observer)


# =============================================================================
# Initializer and log scanning
# =============================================================================

def test_encode_safe_setup_single_owner_threshold_one():
    owner = "0x4444444444444444444444444444444444444444"
    owners, threshold, to, data, handler, token, payment, receiver = SAFE_SETUP.decode_input(
        encode_safe_setup(owner)
    )
    assert owners == (owner,)
    assert threshold == 1
    assert data == b""
    assert payment == 0
    assert {to, handler, token, receiver} == {ZERO_ADDRESS}


def test_extract_created_address_ignores_other_emitters():
    created = "0x5555555555555555555555555555555555555555"
    payload = encode(["address", "address"], [created, SAFE_SINGLETON])
    receipt = TransactionReceipt(
        transaction_hash="0x01",
        status=1,
        logs=(
            # Same event, wrong emitter
            LogEntry(address=ROLES, topics=(SAFE_PROXY_CREATION.topic,), data=encode(["address", "address"], [ROLES, ROLES])),
            LogEntry(address=SAFE_PROXY_FACTORY, topics=(SAFE_PROXY_CREATION.topic,), data=payload),
        ),
    )
    assert extract_created_address(receipt, SAFE_PROXY_FACTORY, SAFE_PROXY_CREATION) == created


def test_extract_created_address_raises_when_absent():
    receipt = TransactionReceipt(transaction_hash="0x02", status=1, logs=())
    with pytest.raises(CreationEventNotFoundError) as exc_info:
        extract_created_address(receipt, SAFE_PROXY_FACTORY, SAFE_PROXY_CREATION, step="safe_deployment")

    assert exc_info.value.tx_hash == "0x02"
    assert exc_info.value.context.details["event"] == "ProxyCreation"


# =============================================================================
# Deployment
# =============================================================================

@pytest.mark.asyncio
async def test_deploy_address_matches_prediction(chain: FakeChain, service, observer):
    owner = chain.address
    deployment = await service.deploy(owner, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=77)

    expected = predict_safe_proxy_address(
        SAFE_PROXY_FACTORY, SAFE_SINGLETON, PROXY_CREATION_CODE, encode_safe_setup(owner), 77
    )
    assert deployment.safe_address == expected
    assert deployment.salt_nonce == 77
    assert deployment.transaction_hash == chain.sent[0].tx_hash
    assert chain.sent[0].nonce == 0
    assert "safe.deployed" in observer.names()


@pytest.mark.asyncio
async def test_deploy_decodes_indexed_creation_event(chain: FakeChain, service):
    chain.indexed_proxy_event = True
    deployment = await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=1)
    assert deployment.safe_address.lower() in chain.safes


@pytest.mark.asyncio
async def test_deploy_generates_salt_nonce_when_absent(chain: FakeChain, service):
    deployment = await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY)
    assert deployment.salt_nonce > 0


@pytest.mark.asyncio
async def test_deploy_without_creation_event_fails(chain: FakeChain, service):
    chain.omit_creation_event = True
    with pytest.raises(CreationEventNotFoundError) as exc_info:
        await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=1)

    assert exc_info.value.tx_hash == chain.sent[0].tx_hash


@pytest.mark.asyncio
async def test_deploy_detects_address_mismatch(chain: FakeChain, service):
    chain.tamper_created_address = True
    with pytest.raises(PredictionIntegrityError):
        await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=1)


@pytest.mark.asyncio
async def test_deploy_reverted_receipt_fails(chain: FakeChain, service):
    chain.revert_when = lambda tx: True
    with pytest.raises(TransactionRevertedError):
        await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=1)


# =============================================================================
# Prepare / execute
# =============================================================================

@pytest.mark.asyncio
async def test_prepare_reads_nonce_and_safe_digest(chain: FakeChain, service):
    safe = (await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=1)).safe_address
    data = SAFE_ENABLE_MODULE.encode(ROLES)

    tx = await service.prepare(safe, safe, data)

    assert tx.nonce == 0
    assert tx.operation is Operation.CALL
    assert (tx.safe_tx_gas, tx.base_gas, tx.gas_price) == (0, 0, 0)
    assert tx.gas_token == ZERO_ADDRESS and tx.refund_receiver == ZERO_ADDRESS
    assert len(tx.hash) == 32
    assert tx.hash == chain.safe_tx_hash(safe, chain.reads[-1][1])


@pytest.mark.asyncio
async def test_execute_enables_module_and_bumps_safe_nonce(chain: FakeChain, service):
    safe = (await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=1)).safe_address
    tx = await service.prepare(safe, safe, SAFE_ENABLE_MODULE.encode(ROLES))

    tx_hash = await service.execute(safe, tx)

    assert tx_hash == chain.sent[-1].tx_hash
    assert chain.sent[-1].nonce == 1
    assert chain.signed_digests == [tx.hash]
    assert chain.modules_of(safe) == [ROLES]
    assert chain.safe_nonce(safe) == 1


@pytest.mark.asyncio
async def test_execute_normalizes_legacy_recovery_id(chain: FakeChain, service):
    chain.legacy_v = True
    safe = (await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=1)).safe_address
    tx = await service.prepare(safe, safe, SAFE_ENABLE_MODULE.encode(ROLES))

    await service.execute(safe, tx)

    assert chain.modules_of(safe) == [ROLES]


@pytest.mark.asyncio
async def test_prepare_batch_targets_multisend_with_delegate_call(chain: FakeChain, service):
    safe = (await service.deploy(chain.address, SAFE_SINGLETON, SAFE_PROXY_FACTORY, salt_nonce=1)).safe_address
    calls = [ContractCall(ROLES, b"\x01"), ContractCall(ROLES, b"\x02")]

    tx = await service.prepare_batch(safe, MULTI_SEND, calls)

    assert tx.to == MULTI_SEND
    assert tx.operation is Operation.DELEGATE_CALL
    assert tx.hash != keccak(b"")
