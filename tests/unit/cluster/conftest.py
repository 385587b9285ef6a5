import pytest

from minicluster.cluster import MiniCluster, MiniClusterSpec
from minicluster.env import Env
from minicluster.storage import MemoryCoordinationStore

from tests.unit.cluster.mocks import EventRecorder, FakeClientFactory, build_factories


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def client_factory(recorder: EventRecorder) -> FakeClientFactory:
    return FakeClientFactory(recorder)


@pytest.fixture
def coordination_store() -> MemoryCoordinationStore:
    return MemoryCoordinationStore()


@pytest.fixture
def make_cluster(
    env: Env,
    recorder: EventRecorder,
    client_factory: FakeClientFactory,
    coordination_store: MemoryCoordinationStore,
):
    def create(
        spec: MiniClusterSpec | None = None,
        factories=None,
        gateway_options: dict | None = None,
        role_options: dict | None = None,
        **kwargs,
    ) -> MiniCluster:
        if factories is None:
            factories = build_factories(
                recorder,
                gateway_options=gateway_options,
                role_options=role_options,
            )

        kwargs.setdefault("client_factory", client_factory)
        kwargs.setdefault("coordination_store", coordination_store)
        kwargs.setdefault("env", env)

        return MiniCluster(
            factories,
            spec=spec,
            **kwargs,
        )

    return create
