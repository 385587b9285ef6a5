from .health_gate import (
    HealthGate as HealthGate,
    HealthGateResult as HealthGateResult,
    HealthProbe as HealthProbe,
)
from .identity import IdentityAllocator as IdentityAllocator
from .lifecycle import RoleLifecycleController as RoleLifecycleController
from .meta_watcher import (
    MetaWatcher as MetaWatcher,
    register_session as register_session,
    session_key as session_key,
)
from .mini_cluster import (
    MiniCluster as MiniCluster,
    start_mini_cluster as start_mini_cluster,
)
from .node_pool import NodePoolManager as NodePoolManager
from .ports import allocate_ports as allocate_ports
from .spec import MiniClusterSpec as MiniClusterSpec
