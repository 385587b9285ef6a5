from .cluster import (
    HealthGate as HealthGate,
    HealthGateResult as HealthGateResult,
    MetaWatcher as MetaWatcher,
    MiniCluster as MiniCluster,
    MiniClusterSpec as MiniClusterSpec,
    allocate_ports as allocate_ports,
    register_session as register_session,
    start_mini_cluster as start_mini_cluster,
)
from .config import ConfigOverlay as ConfigOverlay
from .env import Env as Env, load_env as load_env
from .errors import (
    ClusterStartupError as ClusterStartupError,
    ClusterUnhealthyError as ClusterUnhealthyError,
    MiniClusterError as MiniClusterError,
    NodeRegistrationError as NodeRegistrationError,
)
from .models import (
    CheckHealthResponse as CheckHealthResponse,
    ComponentStates as ComponentStates,
    RoleHandle as RoleHandle,
    RoleKind as RoleKind,
    RoleState as RoleState,
    StateCode as StateCode,
)
from .observation import (
    ReportChannel as ReportChannel,
    ReportOutcome as ReportOutcome,
)
from .roles import (
    GatewayRole as GatewayRole,
    Role as Role,
    RoleContext as RoleContext,
    RoleFactory as RoleFactory,
)
from .rpc import (
    RoleClient as RoleClient,
    RoleRpcServer as RoleRpcServer,
    RpcClientFactory as RpcClientFactory,
)
