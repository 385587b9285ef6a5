import pytest

from minicluster.cluster import MetaWatcher, register_session, session_key
from minicluster.models import RoleKind
from minicluster.storage import MemoryCoordinationStore


class TestMetaWatcher:
    """Test the read-only view over a cluster namespace."""

    @pytest.mark.asyncio
    async def test_show_sessions(self):
        store = MemoryCoordinationStore()
        await register_session(store, "cluster-a", RoleKind.QUERY_NODE, 10001, "127.0.0.1:21123")
        await register_session(store, "cluster-a", RoleKind.DATA_NODE, 1, "127.0.0.1:21124")
        await register_session(store, "cluster-b", RoleKind.DATA_NODE, 1, "127.0.0.1:21125")

        sessions = await MetaWatcher(store, "cluster-a").show_sessions()

        assert [(session.server_name, session.server_id) for session in sessions] == [
            ("data_node", 1),
            ("query_node", 10001),
        ]
        assert sessions[1].address == "127.0.0.1:21123"

    @pytest.mark.asyncio
    async def test_show_keys(self):
        store = MemoryCoordinationStore()
        await store.put("cluster-a/meta/collection/1", b"{}")
        await store.put("cluster-a/meta/collection/2", b"{}")
        await store.put("cluster-a/kv/gid/timestamp", b"1")

        watcher = MetaWatcher(store, "cluster-a/")

        assert await watcher.show_keys("meta") == [
            "cluster-a/meta/collection/1",
            "cluster-a/meta/collection/2",
        ]
        assert len(await watcher.show_keys()) == 3

    def test_session_key(self):
        assert session_key("ns", RoleKind.GATEWAY, 1) == "ns/session/gateway-1"
