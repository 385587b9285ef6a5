import pytest
from pydantic import ValidationError

from minicluster.env import Env, load_env
from minicluster.models import RoleKind


class TestEnv:
    """Test settings defaults and projections."""

    def test_defaults(self):
        env = Env()

        assert env.MINICLUSTER_HEALTH_TIMEOUT == 120.0
        assert env.MINICLUSTER_HEALTH_INTERVAL == 1.0
        assert env.MINICLUSTER_QUERY_NODE_ID_BASE == 10000
        assert env.MINICLUSTER_DATA_NODE_ID_BASE == 20000
        assert env.MINICLUSTER_STREAMING_ENABLED is False

    def test_strict_types(self):
        with pytest.raises(ValidationError):
            Env(MINICLUSTER_PRIMARY_NODE_ID="one")

    def test_dial_options(self):
        options = Env().get_dial_options()

        assert options.keepalive.time == 5.0
        assert options.keepalive.timeout == 10.0
        assert options.keepalive.permit_without_stream is True
        assert options.connect_backoff.base_delay == 0.1
        assert options.connect_backoff.multiplier == 1.6
        assert options.connect_backoff.jitter == 0.2
        assert options.connect_backoff.max_delay == 3.0
        assert options.connect_backoff.min_connect_timeout == 3.0
        assert options.unary_retry.max_attempts == 6
        assert options.unary_retry.base_delay == 0.06
        assert options.unary_retry.multiplier == 3.0

    def test_local_storage_path(self, tmp_path):
        env = Env(MINICLUSTER_LOCAL_STORAGE_DIRECTORY=str(tmp_path))

        assert env.get_local_storage_path("it-ns") == str(tmp_path / "it-ns")

    def test_service_names(self):
        assert RoleKind.GATEWAY.service_name == "minicluster.Gateway"
        assert RoleKind.QUERY_NODE.service_name == "minicluster.QueryNode"


class TestLoadEnv:
    """Test merging process environment, dotenv file and overrides."""

    def test_reads_process_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MINICLUSTER_HEALTH_TIMEOUT", "15")
        monkeypatch.setenv("MINICLUSTER_STREAMING_ENABLED", "true")
        monkeypatch.setenv("MINICLUSTER_QUERY_NODE_ID_BASE", "500")

        env = load_env(Env, env_file=str(tmp_path / "missing.env"))

        assert env.MINICLUSTER_HEALTH_TIMEOUT == 15.0
        assert env.MINICLUSTER_STREAMING_ENABLED is True
        assert env.MINICLUSTER_QUERY_NODE_ID_BASE == 500

    def test_env_file_overrides_process_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MINICLUSTER_MQ_TYPE", "pulsar")
        env_file = tmp_path / ".env"
        env_file.write_text(
            "MINICLUSTER_MQ_TYPE=kafka\nMINICLUSTER_FORCE_SYNC_ENABLED=yes\n"
        )

        env = load_env(Env, env_file=str(env_file))

        assert env.MINICLUSTER_MQ_TYPE == "kafka"
        assert env.MINICLUSTER_FORCE_SYNC_ENABLED is True

    def test_override_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MINICLUSTER_HOST", "10.0.0.1")

        env = load_env(
            Env,
            env_file=str(tmp_path / "missing.env"),
            override=Env(MINICLUSTER_HOST="127.0.0.1"),
        )

        assert env.MINICLUSTER_HOST == "127.0.0.1"
