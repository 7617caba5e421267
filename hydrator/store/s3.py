"""S3 storage.

Stores each key as its own object with optional namespace prefix::

    s3://{bucket}/{prefix}/preferences/{key}

When prefix is None, the path collapses to::

    s3://{bucket}/preferences/{key}

Uses ``anyio.to_thread.run_sync`` to run boto3 calls in the thread pool,
matching the same async pattern as LocalStorage.
"""

from __future__ import annotations

from functools import partial
from typing import Any

import boto3
from anyio import to_thread
from botocore.config import Config

from hydrator.store.base import BaseStorage

# DeleteObjects accepts at most this many keys per request.
_DELETE_BATCH = 1000


def _create_s3_client(
    endpoint_url: str | None,
    access_key: str | None,
    secret_key: str | None,
    region: str | None = None,
    path_style: bool = False,
) -> Any:
    """Create a boto3 S3 client.

    Args:
        endpoint_url: S3 endpoint URL (None for AWS).
        access_key: AWS access key ID (None to use the default credential chain).
        secret_key: AWS secret access key.
        region: AWS region name (optional, some endpoints require it).
        path_style: Use path-style addressing instead of virtual-hosted.
            Required by MinIO and some S3-compatible services.
    """
    config = Config(
        request_checksum_calculation="when_required",
        response_checksum_validation="when_required",
        s3={"addressing_style": "path" if path_style else "auto"},
    )

    return boto3.client(
        "s3",
        endpoint_url=endpoint_url,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=region,
        config=config,
    )


class S3Storage(BaseStorage):
    """S3 implementation of the StorageProvider protocol.

    Layout::

        s3://{bucket}/{key_prefix}{key}

    Where ``key_prefix`` is ``{prefix}/preferences/`` if prefix is set, or
    ``preferences/``.

    The client is created during initialization, so bad credentials or an
    unreachable endpoint surface as ``InitializationError`` from the first
    operation rather than from the constructor.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        prefix: str | None = None,
        region: str | None = None,
        path_style: bool = False,
        client: Any = None,
    ) -> None:
        super().__init__()
        self._bucket = bucket
        self._client_factory = partial(
            _create_s3_client, endpoint_url, access_key, secret_key, region=region, path_style=path_style
        )
        self._client = client
        self._key_prefix = f"{prefix}/preferences/" if prefix else "preferences/"

    def _object_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def _open(self) -> None:
        if self._client is None:
            self._client = await to_thread.run_sync(self._client_factory)
        await to_thread.run_sync(partial(self._client.head_bucket, Bucket=self._bucket))

    # -- Read ------------------------------------------------------------------

    async def _get(self, key: str) -> str | None:
        return await to_thread.run_sync(partial(self._get_object_body, self._object_key(key)))

    def _get_object_body(self, object_key: str) -> str | None:
        """Get object and read body in the same thread.

        Reading the streaming body must happen in the same thread as
        get_object to avoid issues with chunked transfer encoding.
        """
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=object_key)
        except self._client.exceptions.NoSuchKey:
            return None
        return resp["Body"].read().decode("utf-8")

    # -- Write -----------------------------------------------------------------

    async def _set(self, key: str, value: str) -> bool:
        await to_thread.run_sync(
            partial(
                self._client.put_object,
                Bucket=self._bucket,
                Key=self._object_key(key),
                Body=value.encode("utf-8"),
                ContentType="application/json",
            )
        )
        return True

    async def _remove(self, key: str) -> bool:
        # S3 delete is idempotent -- no error if key doesn't exist.
        await to_thread.run_sync(partial(self._client.delete_object, Bucket=self._bucket, Key=self._object_key(key)))
        return True

    async def _clear(self) -> bool:
        return await to_thread.run_sync(self._delete_all)

    def _delete_all(self) -> bool:
        paginator = self._client.get_paginator("list_objects_v2")
        keys = [
            {"Key": obj["Key"]}
            for page in paginator.paginate(Bucket=self._bucket, Prefix=self._key_prefix)
            for obj in page.get("Contents", [])
        ]
        ok = True
        for start in range(0, len(keys), _DELETE_BATCH):
            resp = self._client.delete_objects(
                Bucket=self._bucket,
                Delete={"Objects": keys[start : start + _DELETE_BATCH], "Quiet": True},
            )
            if resp.get("Errors"):
                ok = False
        return ok
