from .role import (
    GatewayRole as GatewayRole,
    Role as Role,
    RoleContext as RoleContext,
    RoleFactory as RoleFactory,
)
