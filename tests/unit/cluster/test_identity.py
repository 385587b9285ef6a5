import pytest

from minicluster.cluster import IdentityAllocator
from minicluster.env import Env
from minicluster.models import RoleKind


class TestIdentityAllocator:
    """Test per-kind identity counters."""

    def test_dynamic_identities_start_after_base(self):
        allocator = IdentityAllocator.from_env(Env())

        assert allocator.next_identity(RoleKind.QUERY_NODE) == 10001
        assert allocator.next_identity(RoleKind.DATA_NODE) == 20001
        assert allocator.next_identity(RoleKind.STREAMING_NODE) == 30001

    def test_coordinator_replacements_follow_primary(self):
        allocator = IdentityAllocator(primary_node_id=1)

        assert allocator.next_identity(RoleKind.ROOT_COORD) == 2
        assert allocator.next_identity(RoleKind.ROOT_COORD) == 3

    @pytest.mark.parametrize("kind", list(RoleKind))
    def test_strictly_increasing(self, kind):
        allocator = IdentityAllocator.from_env(Env())

        issued = [allocator.next_identity(kind) for _ in range(50)]

        assert issued == sorted(set(issued))
        assert allocator.last_issued(kind) == issued[-1]

    def test_counters_are_independent(self):
        allocator = IdentityAllocator(bases={RoleKind.QUERY_NODE: 100})

        allocator.next_identity(RoleKind.QUERY_NODE)
        allocator.next_identity(RoleKind.QUERY_NODE)

        assert allocator.next_identity(RoleKind.DATA_NODE) == 2
        assert allocator.last_issued(RoleKind.QUERY_NODE) == 102
        assert allocator.last_issued(RoleKind.STREAMING_NODE) is None

    def test_bases_from_env(self):
        allocator = IdentityAllocator.from_env(
            Env(MINICLUSTER_QUERY_NODE_ID_BASE=500, MINICLUSTER_PRIMARY_NODE_ID=7)
        )

        assert allocator.base(RoleKind.QUERY_NODE) == 500
        assert allocator.base(RoleKind.GATEWAY) == 7
        assert allocator.primary_node_id == 7
