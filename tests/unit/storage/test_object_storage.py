import pytest

from minicluster.config import ConfigOverlay
from minicluster.env import Env
from minicluster.errors import ConfigurationError, ObjectStorageError
from minicluster.storage import LocalObjectStorage, new_object_storage
from minicluster.storage.s3_storage import S3ObjectStorage


class FakePaginator:
    def __init__(self, client: "FakeS3Client") -> None:
        self.client = client

    def paginate(self, Bucket: str, Prefix: str):
        keys = sorted(key for key in self.client.objects if key.startswith(Prefix))
        for offset in range(0, max(len(keys), 1), self.client.page_size):
            yield {
                "Contents": [{"Key": key} for key in keys[offset:offset + self.client.page_size]]
            }


class FakeS3Client:
    """Subset of the boto3 S3 client used by S3ObjectStorage."""

    def __init__(self, page_size: int = 2) -> None:
        self.page_size = page_size
        self.objects: dict[str, bytes] = {}
        self.delete_batches: list[int] = []
        self.closed = False

    def put_object(self, Bucket: str, Key: str, Body: bytes):
        self.objects[Key] = Body

    def get_paginator(self, operation: str):
        assert operation == "list_objects_v2"
        return FakePaginator(self)

    def delete_objects(self, Bucket: str, Delete: dict):
        self.delete_batches.append(len(Delete["Objects"]))
        for item in Delete["Objects"]:
            self.objects.pop(item["Key"], None)

    def close(self):
        self.closed = True


class TestLocalObjectStorage:
    """Test the local directory backend."""

    @pytest.mark.asyncio
    async def test_put_and_list(self, tmp_path):
        storage = LocalObjectStorage(directory=str(tmp_path / "data"), root_path="ns")

        await storage.put("ns/insert_log/1/0.log", b"a")
        await storage.put("ns/stats_log/1/0.log", b"b")
        await storage.put("other/insert_log/1/0.log", b"c")

        assert await storage.list_with_prefix("ns") == [
            "ns/insert_log/1/0.log",
            "ns/stats_log/1/0.log",
        ]

    @pytest.mark.asyncio
    async def test_remove_with_prefix(self, tmp_path):
        storage = LocalObjectStorage(directory=str(tmp_path / "data"), root_path="ns")

        await storage.put("ns/insert_log/1/0.log", b"a")
        await storage.put("ns/insert_log/1/1.log", b"b")
        await storage.put("other/keep.log", b"c")

        assert await storage.remove_with_prefix(storage.root_path) == 2
        assert await storage.list_with_prefix("ns") == []
        assert await storage.list_with_prefix("other") == ["other/keep.log"]
        assert not (tmp_path / "data" / "ns").exists()

    @pytest.mark.asyncio
    async def test_remove_missing_directory(self, tmp_path):
        storage = LocalObjectStorage(directory=str(tmp_path / "missing"), root_path="ns")

        assert await storage.remove_with_prefix("ns") == 0

    @pytest.mark.asyncio
    async def test_escaping_key_rejected(self, tmp_path):
        storage = LocalObjectStorage(directory=str(tmp_path / "data"), root_path="ns")

        with pytest.raises(ObjectStorageError):
            await storage.put("../outside.log", b"x")


class TestS3ObjectStorage:
    """Test the S3 backend against a fake client."""

    @pytest.mark.asyncio
    async def test_list_is_paginated(self):
        client = FakeS3Client(page_size=2)
        storage = S3ObjectStorage(bucket="bucket", root_path="ns", client=client)

        for index in range(5):
            await storage.put(f"ns/insert_log/{index}.log", b"x")

        assert len(await storage.list_with_prefix("ns/")) == 5

    @pytest.mark.asyncio
    async def test_remove_with_prefix_batches_deletes(self, monkeypatch):
        monkeypatch.setattr("minicluster.storage.s3_storage._DELETE_BATCH_SIZE", 2)
        client = FakeS3Client(page_size=10)
        storage = S3ObjectStorage(bucket="bucket", root_path="ns", client=client)

        for index in range(5):
            await storage.put(f"ns/insert_log/{index}.log", b"x")
        await storage.put("other/keep.log", b"x")

        assert await storage.remove_with_prefix("ns") == 5
        assert sorted(client.delete_batches) == [1, 2, 2]
        assert list(client.objects) == ["other/keep.log"]

    @pytest.mark.asyncio
    async def test_remove_empty_prefix(self):
        client = FakeS3Client()
        storage = S3ObjectStorage(bucket="bucket", root_path="ns", client=client)

        assert await storage.remove_with_prefix("ns") == 0
        assert client.delete_batches == []

    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        client = FakeS3Client()
        storage = S3ObjectStorage(bucket="bucket", root_path="ns", client=client)

        await storage.close()

        assert client.closed
        assert storage.client is None


class TestNewObjectStorage:
    """Backend selection from the overlay."""

    def test_local(self, tmp_path):
        env = Env(MINICLUSTER_LOCAL_STORAGE_DIRECTORY=str(tmp_path))
        overlay = ConfigOverlay.defaults(env, namespace="it-ns")

        storage = new_object_storage(overlay, env)

        assert isinstance(storage, LocalObjectStorage)
        assert storage.root_path == "it-ns"
        assert str(storage.directory) == str(tmp_path / "it-ns")

    def test_remote(self):
        env = Env(MINICLUSTER_STORAGE_TYPE="remote", MINICLUSTER_S3_BUCKET="a-bucket")
        overlay = ConfigOverlay.defaults(env, namespace="it-ns")

        storage = new_object_storage(overlay, env)

        assert isinstance(storage, S3ObjectStorage)
        assert storage.bucket == "a-bucket"
        assert storage.root_path == "it-ns"

    def test_unknown_type(self):
        env = Env()
        overlay = ConfigOverlay.defaults(env, namespace="it-ns")
        overlay["common.storageType"] = "hdfs"

        with pytest.raises(ConfigurationError):
            new_object_storage(overlay, env)
