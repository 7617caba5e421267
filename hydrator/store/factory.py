"""Backend selection and the process-wide default storage."""

from __future__ import annotations

from functools import lru_cache

from loguru import logger

from hydrator.settings import HydratorSettings, get_settings
from hydrator.store.base import StorageProvider
from hydrator.store.local import LocalStorage
from hydrator.store.memory import MemoryStorage


def create_storage(settings: HydratorSettings) -> StorageProvider:
    """Create the storage backend named by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        return MemoryStorage()
    if settings.storage_backend == "s3":
        from hydrator.store.s3 import S3Storage

        if not settings.s3_bucket:
            msg = "HYDRATOR_S3_BUCKET is required when storage_backend is 's3'"
            raise ValueError(msg)
        return S3Storage(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key.get_secret_value() if settings.s3_secret_key else None,
            prefix=settings.data_prefix,
            region=settings.s3_region,
            path_style=settings.s3_path_style,
        )
    return LocalStorage(settings.data_root, prefix=settings.data_prefix)


@lru_cache(maxsize=1)
def get_default_storage() -> StorageProvider:
    """Return the storage shared by every hydrator built without one.

    Resolved once per process from settings.  Call
    ``get_default_storage.cache_clear()`` in tests after changing settings.
    """
    settings = get_settings()
    prefix_info = f", prefix={settings.data_prefix}" if settings.data_prefix else ""
    logger.info("Default storage: {}{}", settings.storage_backend, prefix_info)
    return create_storage(settings)
