import re
from types import MappingProxyType

import pytest

from minicluster.config import (
    COORDINATION_ROOT_PATH,
    FORCE_SYNC_ENABLED,
    GRACEFUL_STOP_TIMEOUT,
    LOCAL_STORAGE_PATH,
    MQ_TYPE,
    STORAGE_ROOT_PATH,
    ConfigOverlay,
    new_namespace,
)
from minicluster.env import Env
from minicluster.errors import ConfigurationError, OverlayFrozenError


class TestNamespace:
    """Test namespace generation."""

    def test_namespace_format(self):
        assert re.fullmatch(r"minicluster-\d+-[0-9a-f]{8}", new_namespace())

    def test_namespaces_are_unique(self):
        assert len({new_namespace() for _ in range(100)}) == 100


class TestConfigOverlay:
    """Test the configuration overlay handed to roles."""

    def test_defaults(self, tmp_path):
        env = Env(MINICLUSTER_LOCAL_STORAGE_DIRECTORY=str(tmp_path))
        overlay = ConfigOverlay.defaults(env, namespace="it-ns")

        assert overlay[MQ_TYPE] == "rocksmq"
        assert overlay[COORDINATION_ROOT_PATH] == "it-ns"
        assert overlay[STORAGE_ROOT_PATH] == "it-ns"
        assert overlay[LOCAL_STORAGE_PATH] == str(tmp_path / "it-ns")
        assert overlay[FORCE_SYNC_ENABLED] == "false"
        assert overlay[GRACEFUL_STOP_TIMEOUT] == "30"
        assert overlay.namespace == "it-ns"

    def test_values_coerced_to_strings(self):
        overlay = ConfigOverlay.defaults(Env())

        overlay["queryNode.gracefulTime"] = 1000

        assert overlay["queryNode.gracefulTime"] == "1000"

    def test_freeze_returns_read_only_snapshot(self):
        overlay = ConfigOverlay.defaults(Env(), namespace="it-ns")

        snapshot = overlay.freeze()

        assert isinstance(snapshot, MappingProxyType)
        assert snapshot[COORDINATION_ROOT_PATH] == "it-ns"
        with pytest.raises(TypeError):
            snapshot[MQ_TYPE] = "pulsar"

    def test_frozen_overlay_rejects_writes(self):
        overlay = ConfigOverlay.defaults(Env())
        overlay.freeze()

        with pytest.raises(OverlayFrozenError) as exc_info:
            overlay[MQ_TYPE] = "pulsar"

        assert exc_info.value.key == MQ_TYPE

        with pytest.raises(OverlayFrozenError):
            del overlay[MQ_TYPE]

    def test_freeze_requires_isolation_keys(self):
        overlay = ConfigOverlay.defaults(Env())
        del overlay[STORAGE_ROOT_PATH]

        with pytest.raises(ConfigurationError):
            overlay.freeze()

        assert overlay.frozen is False
