import itertools
from collections.abc import Mapping

from minicluster.env import Env
from minicluster.models import RoleKind


class IdentityAllocator:
    """
    Strictly increasing node identities, one counter per role kind.

    Scalable kinds start from a per-kind base so dynamic identities
    never collide with the primary instance (base + 1 is the first
    dynamic identity issued). Coordinators and the gateway start from
    the primary identity; replacement instances take the next value.
    Values are never reused within the lifetime of the allocator.
    """

    def __init__(
        self,
        primary_node_id: int = 1,
        bases: Mapping[RoleKind, int] | None = None,
    ) -> None:
        self.primary_node_id = primary_node_id

        if bases is None:
            bases = {}

        self._bases: dict[RoleKind, int] = {
            kind: bases.get(kind, primary_node_id) for kind in RoleKind
        }

        self._counters: dict[RoleKind, itertools.count] = {
            kind: itertools.count(base + 1) for kind, base in self._bases.items()
        }

        self._issued: dict[RoleKind, int | None] = {kind: None for kind in RoleKind}

    @classmethod
    def from_env(cls, env: Env):
        return cls(
            primary_node_id=env.MINICLUSTER_PRIMARY_NODE_ID,
            bases={
                RoleKind.QUERY_NODE: env.MINICLUSTER_QUERY_NODE_ID_BASE,
                RoleKind.DATA_NODE: env.MINICLUSTER_DATA_NODE_ID_BASE,
                RoleKind.STREAMING_NODE: env.MINICLUSTER_STREAMING_NODE_ID_BASE,
            },
        )

    def base(self, kind: RoleKind) -> int:
        return self._bases[kind]

    def last_issued(self, kind: RoleKind) -> int | None:
        return self._issued[kind]

    def next_identity(self, kind: RoleKind) -> int:
        # next() on itertools.count does not yield to the event loop
        node_id = next(self._counters[kind])
        self._issued[kind] = node_id
        return node_id
