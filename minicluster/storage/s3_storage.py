import asyncio
import functools

import boto3

from minicluster.errors import ObjectStorageError


_DELETE_BATCH_SIZE = 1000


class S3ObjectStorage:
    """Object storage backed by an S3-compatible bucket (AWS S3, MinIO)."""

    def __init__(
        self,
        bucket: str,
        root_path: str,
        endpoint_url: str | None = None,
        region_name: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        client=None,
    ) -> None:
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region_name = region_name
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key

        self._root_path = root_path
        self.client = client
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def root_path(self) -> str:
        return self._root_path

    async def connect(self):
        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        if self.client is not None:
            return

        try:
            self.client = await self._loop.run_in_executor(
                None,
                functools.partial(
                    boto3.client,
                    "s3",
                    endpoint_url=self.endpoint_url,
                    region_name=self.region_name,
                    aws_access_key_id=self.aws_access_key_id,
                    aws_secret_access_key=self.aws_secret_access_key,
                ),
            )

        except Exception as err:
            raise ObjectStorageError(
                f"Failed to create S3 client for bucket '{self.bucket}': {err}"
            ) from err

    async def put(self, key: str, data: bytes) -> None:
        await self.connect()
        await self._loop.run_in_executor(
            None,
            functools.partial(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
            ),
        )

    async def list_with_prefix(self, prefix: str) -> list[str]:
        await self.connect()
        return await self._loop.run_in_executor(
            None,
            self._list,
            prefix,
        )

    def _list(self, prefix: str) -> list[str]:
        paginator = self.client.get_paginator("list_objects_v2")

        keys: list[str] = []
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            keys.extend(item["Key"] for item in page.get("Contents", []))

        return sorted(keys)

    async def remove_with_prefix(self, prefix: str) -> int:
        await self.connect()
        keys = await self.list_with_prefix(prefix)

        await asyncio.gather(*[
            self._loop.run_in_executor(
                None,
                functools.partial(
                    self.client.delete_objects,
                    Bucket=self.bucket,
                    Delete={
                        "Objects": [
                            {"Key": key} for key in keys[offset:offset + _DELETE_BATCH_SIZE]
                        ],
                        "Quiet": True,
                    },
                ),
            ) for offset in range(0, len(keys), _DELETE_BATCH_SIZE)
        ])

        return len(keys)

    async def close(self) -> None:
        if self.client is not None and hasattr(self.client, "close"):
            await asyncio.get_running_loop().run_in_executor(None, self.client.close)

        self.client = None
