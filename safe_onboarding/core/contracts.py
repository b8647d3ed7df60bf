"""
Contract surface used during onboarding.

Only the functions and events the pipeline actually calls or decodes are
declared here; the contracts themselves are deployed and maintained elsewhere.
"""

from .execution.abi import ContractEvent, ContractFunction

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Canonical Zodiac ModuleProxyFactory deployment (same address on every chain)
DEFAULT_MODULE_PROXY_FACTORY = "0x000000000000aDdB49795b0f9bA5BC298cDda236"


# =============================================================================
# Safe singleton / proxy
# =============================================================================

SAFE_SETUP = ContractFunction(
    "setup(address[],uint256,address,bytes,address,address,uint256,address)"
)
SAFE_NONCE = ContractFunction("nonce()", outputs=("uint256",))
SAFE_GET_TRANSACTION_HASH = ContractFunction(
    "getTransactionHash(address,uint256,bytes,uint8,uint256,uint256,uint256,address,address,uint256)",
    outputs=("bytes32",),
)
SAFE_EXEC_TRANSACTION = ContractFunction(
    "execTransaction(address,uint256,bytes,uint8,uint256,uint256,uint256,address,address,bytes)",
    outputs=("bool",),
)
SAFE_ENABLE_MODULE = ContractFunction("enableModule(address)")


# =============================================================================
# Safe proxy factory
# =============================================================================

SAFE_CREATE_PROXY_WITH_NONCE = ContractFunction(
    "createProxyWithNonce(address,bytes,uint256)", outputs=("address",)
)
SAFE_PROXY_CREATION_CODE = ContractFunction("proxyCreationCode()", outputs=("bytes",))

# v1.3.0 emits the proxy unindexed, v1.4.1 indexes it; ContractEvent handles both.
SAFE_PROXY_CREATION = ContractEvent("ProxyCreation(address,address)")


# =============================================================================
# Zodiac module proxy factory / Roles
# =============================================================================

MODULE_DEPLOY = ContractFunction(
    "deployModule(address,bytes,uint256)", outputs=("address",)
)
MODULE_PROXY_CREATION = ContractEvent("ModuleProxyCreation(address,address)")

ROLES_SET_UP = ContractFunction("setUp(bytes)")
ROLES_SCOPE_TARGET = ContractFunction("scopeTarget(bytes32,address)")
ROLES_ALLOW_FUNCTION = ContractFunction("allowFunction(bytes32,address,bytes4,uint8)")
ROLES_ASSIGN_ROLES = ContractFunction("assignRoles(address,bytes32[],bool[])")
ROLES_SET_DEFAULT_ROLE = ContractFunction("setDefaultRole(address,bytes32)")


# =============================================================================
# Yield proxy factory
# =============================================================================

YIELD_PREDICT_PROXY_ADDRESS = ContractFunction(
    "predictP2pYieldProxyAddress(address,uint48,uint48)", outputs=("address",)
)
YIELD_DEPOSIT_SIGNATURE = "deposit(bytes,uint48,uint48,uint256,bytes)"
YIELD_WITHDRAW_SIGNATURE = "withdraw(bytes)"


# =============================================================================
# MultiSendCallOnly
# =============================================================================

MULTI_SEND = ContractFunction("multiSend(bytes)")
