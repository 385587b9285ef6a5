"""
Logging models for the cluster orchestrator.

Cluster models carry the cluster namespace and the lifecycle phase
(startup, health, scale, teardown). Role models carry the role kind,
node identity and advertised address of the role being operated on.
"""

from minicluster.logging.models import Entry, LogLevel


# =============================================================================
# Cluster Logging Models
# =============================================================================

class ClusterTrace(Entry, kw_only=True):
    namespace: str
    phase: str
    level: LogLevel = LogLevel.TRACE


class ClusterDebug(Entry, kw_only=True):
    namespace: str
    phase: str
    level: LogLevel = LogLevel.DEBUG


class ClusterInfo(Entry, kw_only=True):
    namespace: str
    phase: str
    level: LogLevel = LogLevel.INFO


class ClusterWarning(Entry, kw_only=True):
    namespace: str
    phase: str
    level: LogLevel = LogLevel.WARN


class ClusterError(Entry, kw_only=True):
    namespace: str
    phase: str
    level: LogLevel = LogLevel.ERROR


class ClusterFatal(Entry, kw_only=True):
    namespace: str
    phase: str
    level: LogLevel = LogLevel.FATAL


# =============================================================================
# Role Logging Models
# =============================================================================

class RoleTrace(Entry, kw_only=True):
    role: str
    node_id: int
    address: str
    level: LogLevel = LogLevel.TRACE


class RoleDebug(Entry, kw_only=True):
    role: str
    node_id: int
    address: str
    level: LogLevel = LogLevel.DEBUG


class RoleInfo(Entry, kw_only=True):
    role: str
    node_id: int
    address: str
    level: LogLevel = LogLevel.INFO


class RoleWarning(Entry, kw_only=True):
    role: str
    node_id: int
    address: str
    level: LogLevel = LogLevel.WARN


class RoleError(Entry, kw_only=True):
    role: str
    node_id: int
    address: str
    level: LogLevel = LogLevel.ERROR
