"""
Pytest configuration shared by unit and integration tests.

Async tests are marked explicitly with @pytest.mark.asyncio.
"""

import pytest

from minicluster.env import Env
from minicluster.logging import LoggingConfig


@pytest.fixture(autouse=True)
def configure_log_level():
    config = LoggingConfig()
    config.update(log_level="error")
    yield
    config.update(log_level="error")


@pytest.fixture
def storage_directory(tmp_path) -> str:
    return str(tmp_path / "storage")


@pytest.fixture
def env(storage_directory: str) -> Env:
    return Env(
        MINICLUSTER_HOST="127.0.0.1",
        MINICLUSTER_BIND_HOST="127.0.0.1",
        MINICLUSTER_LOG_LEVEL="error",
        MINICLUSTER_HEALTH_TIMEOUT=2.0,
        MINICLUSTER_HEALTH_INTERVAL=0.01,
        MINICLUSTER_LOCAL_STORAGE_DIRECTORY=storage_directory,
    )
