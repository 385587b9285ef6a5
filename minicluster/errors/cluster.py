"""
Exceptions for mini cluster orchestration.

Construction errors (ports, RPC clients, role prepare/run) propagate to
the caller of cluster startup wrapped in ClusterStartupError. Teardown
errors are logged by the orchestrator and never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from minicluster.cluster.health_gate import HealthGateResult
    from minicluster.cluster.mini_cluster import MiniCluster
    from minicluster.models import RoleKind


class MiniClusterError(Exception):
    """Base class for every error raised by the orchestrator."""
    pass


class ConfigurationError(MiniClusterError):
    """Raised when settings, overlay keys or role factories are unusable."""
    pass


class OverlayFrozenError(MiniClusterError):
    """Raised when the configuration overlay is written after roles were constructed."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            f"Configuration overlay is frozen, cannot set '{key}' once roles are constructed"
        )


class PortAllocationError(MiniClusterError):
    """Raised when free ports cannot be obtained from the OS."""

    def __init__(self, requested: int, message: str):
        self.requested = requested
        super().__init__(f"Failed to allocate {requested} ports: {message}")


class RpcDialError(MiniClusterError):
    """Raised when an RPC client cannot connect within its dial budget."""

    def __init__(self, address: str, message: str):
        self.address = address
        super().__init__(f"Failed to dial '{address}': {message}")


class RoleStartError(MiniClusterError):
    """Raised when a role fails its prepare or run phase."""

    def __init__(
        self,
        kind: RoleKind,
        node_id: int,
        phase: str,
        cause: BaseException,
    ):
        self.kind = kind
        self.node_id = node_id
        self.phase = phase
        self.cause = cause
        super().__init__(
            f"Role {kind.value} (node {node_id}) failed to {phase}: {cause}"
        )


class RoleStopError(MiniClusterError):
    """Raised when a role fails to stop and the caller asked for strict stopping."""

    def __init__(self, kind: RoleKind, node_id: int, cause: BaseException):
        self.kind = kind
        self.node_id = node_id
        self.cause = cause
        super().__init__(
            f"Role {kind.value} (node {node_id}) failed to stop: {cause}"
        )


class ClusterStartupError(MiniClusterError):
    """Raised when the cluster cannot be constructed or started."""
    pass


class ClusterUnhealthyError(ClusterStartupError):
    """
    Raised when the health gate deadline elapses before the gateway
    reports healthy.

    Roles are left running so the caller can inspect them before
    tearing the cluster down through the attached cluster.
    """

    def __init__(self, result: HealthGateResult, cluster: MiniCluster | None = None):
        self.result = result
        self.cluster = cluster
        super().__init__(
            f"Cluster is not healthy after {result.elapsed:.1f}s "
            f"({result.attempts} checks): {result.describe()}"
        )


class NodeRegistrationError(MiniClusterError):
    """Raised when a dynamically added node does not report the identity it was given."""

    def __init__(self, kind: RoleKind, expected_node_id: int, message: str):
        self.kind = kind
        self.expected_node_id = expected_node_id
        super().__init__(
            f"Dynamic {kind.value} node {expected_node_id} failed registration: {message}"
        )


class CoordinationStoreError(MiniClusterError):
    """Raised when the coordination store is unusable."""
    pass


class ObjectStorageError(MiniClusterError):
    """Raised when the object storage backend is unusable."""
    pass
