import pytest

from minicluster.cluster import MiniClusterSpec


class TestMiniClusterSpec:
    """Test building cluster options from plain dictionaries."""

    def test_defaults(self):
        spec = MiniClusterSpec.from_dict({})

        assert spec.params == {}
        assert spec.namespace is None
        assert spec.streaming_enabled is None
        assert spec.health_timeout is None

    def test_values_are_coerced(self):
        spec = MiniClusterSpec.from_dict({
            "params": {"queryNode.gracefulTime": 1000},
            "namespace": "it-cluster",
            "streaming_enabled": "true",
            "health_timeout": "30",
            "health_interval": 0.5,
        })

        assert spec.params == {"queryNode.gracefulTime": "1000"}
        assert spec.namespace == "it-cluster"
        assert spec.streaming_enabled is True
        assert spec.health_timeout == 30.0
        assert spec.health_interval == 0.5

    def test_invalid_interval_rejected(self):
        with pytest.raises(ValueError):
            MiniClusterSpec.from_dict({"health_interval": 0})

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValueError):
            MiniClusterSpec.from_dict({"health_timeout": -1})
