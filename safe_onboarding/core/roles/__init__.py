"""Zodiac Roles module deployment and permission scoping."""

from .deployment import (
    PreparedRolesModule,
    RolesModuleDeployer,
    RolesModuleDeployment,
    encode_roles_setup,
    prepare_roles_module_deployment,
)
from .permissions import (
    DEFAULT_ROLE_KEY,
    DEFAULT_ROLE_LABEL,
    DEPOSIT_SELECTOR,
    WITHDRAW_SELECTOR,
    ExecutionOptions,
    PermissionConfigurator,
    PermissionRule,
    build_permission_calls,
    role_key_from_label,
)

__all__ = [
    "DEFAULT_ROLE_KEY",
    "DEFAULT_ROLE_LABEL",
    "DEPOSIT_SELECTOR",
    "WITHDRAW_SELECTOR",
    "ExecutionOptions",
    "PermissionConfigurator",
    "PermissionRule",
    "PreparedRolesModule",
    "RolesModuleDeployer",
    "RolesModuleDeployment",
    "build_permission_calls",
    "encode_roles_setup",
    "prepare_roles_module_deployment",
    "role_key_from_label",
]
