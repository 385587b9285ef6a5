from .cluster import (
    ClusterStartupError as ClusterStartupError,
    ClusterUnhealthyError as ClusterUnhealthyError,
    ConfigurationError as ConfigurationError,
    CoordinationStoreError as CoordinationStoreError,
    MiniClusterError as MiniClusterError,
    NodeRegistrationError as NodeRegistrationError,
    ObjectStorageError as ObjectStorageError,
    OverlayFrozenError as OverlayFrozenError,
    PortAllocationError as PortAllocationError,
    RoleStartError as RoleStartError,
    RoleStopError as RoleStopError,
    RpcDialError as RpcDialError,
)
