"""
Zodiac Roles module deployment.

The Roles module is a minimal proxy created by the Zodiac ModuleProxyFactory.
Its owner is the client; avatar and target are both the client's Safe, so
every call the module lets through is executed by the Safe itself.
"""

from dataclasses import dataclass
from typing import Optional

from eth_abi import encode
from eth_utils import to_checksum_address

from ..address import ensure_prediction_matches, generate_salt_nonce, predict_module_proxy_address
from ..contracts import DEFAULT_MODULE_PROXY_FACTORY, MODULE_DEPLOY, MODULE_PROXY_CREATION, ROLES_SET_UP
from ..execution.executor import wait_for_success
from ..execution.models import ContractCall
from ..execution.nonce_manager import NonceSequencer
from ..observer import NULL_OBSERVER, OnboardingObserver
from ..safe.transactions import extract_created_address
from ...providers.base import ChainReader, ChainWriter


def encode_roles_setup(owner: str, safe: str) -> bytes:
    """``setUp(abi.encode(owner, avatar, target))`` with avatar = target = safe."""
    params = encode(
        ["address", "address", "address"],
        [to_checksum_address(owner), to_checksum_address(safe), to_checksum_address(safe)],
    )
    return ROLES_SET_UP.encode(params)


@dataclass(frozen=True)
class PreparedRolesModule:
    """Everything needed to deploy a Roles module, computed offline."""
    roles_address: str
    deployment_call: ContractCall
    salt_nonce: int
    initializer: bytes
    factory: str


@dataclass(frozen=True)
class RolesModuleDeployment:
    """Outcome of a Roles module deployment."""
    roles_address: str
    transaction_hash: str
    salt_nonce: int


def prepare_roles_module_deployment(
    master_copy: str,
    owner: str,
    safe: str,
    factory: str = DEFAULT_MODULE_PROXY_FACTORY,
    salt_nonce: Optional[int] = None,
) -> PreparedRolesModule:
    initializer = encode_roles_setup(owner, safe)
    if salt_nonce is None:
        salt_nonce = generate_salt_nonce()

    call = ContractCall(
        to=to_checksum_address(factory),
        data=MODULE_DEPLOY.encode(master_copy, initializer, salt_nonce),
    )
    predicted = predict_module_proxy_address(factory, master_copy, initializer, salt_nonce)
    return PreparedRolesModule(
        roles_address=predicted,
        deployment_call=call,
        salt_nonce=salt_nonce,
        initializer=initializer,
        factory=to_checksum_address(factory),
    )


class RolesModuleDeployer:
    """Deploys a Roles module from the signer and checks where it landed."""

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
        master_copy: str,
        owner: str,
        safe: str,
        factory: str = DEFAULT_MODULE_PROXY_FACTORY,
        salt_nonce: Optional[int] = None,
    ) -> RolesModuleDeployment:
        step = "roles_module_deployment"
        prepared = prepare_roles_module_deployment(master_copy, owner, safe, factory, salt_nonce)

        nonce = self.nonces.consume()
        tx_hash = await self.writer.send_transaction(
            prepared.deployment_call.to,
            prepared.deployment_call.data,
            nonce=nonce,
        )
        self.observer.on_event(
            "roles.deployment_submitted",
            tx_hash=tx_hash,
            nonce=nonce,
            factory=prepared.factory,
            predicted_address=prepared.roles_address,
            salt_nonce=prepared.salt_nonce,
        )

        receipt = await wait_for_success(self.reader, tx_hash, step=step)
        created = extract_created_address(receipt, prepared.factory, MODULE_PROXY_CREATION, step=step)
        roles_address = ensure_prediction_matches(
            prepared.roles_address, created, step=step, tx_hash=tx_hash
        )

        self.observer.on_event("roles.deployed", roles_address=roles_address, tx_hash=tx_hash)
        return RolesModuleDeployment(
            roles_address=roles_address,
            transaction_hash=tx_hash,
            salt_nonce=prepared.salt_nonce,
        )
