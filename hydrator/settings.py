"""Configuration loaded from HYDRATOR_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class HydratorSettings(BaseSettings):
    """Hydrator settings.

    All fields are read from environment variables with the ``HYDRATOR_``
    prefix.  For example, ``HYDRATOR_STORAGE_BACKEND=s3`` maps to
    ``storage_backend``.
    """

    model_config = SettingsConfigDict(
        env_prefix="HYDRATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Storage ---------------------------------------------------------------
    storage_backend: Literal["memory", "local", "s3"] = "local"
    """Backend used by hydrators constructed without an explicit storage."""

    data_root: str = "./data"
    """Root directory of the local preferences file."""

    data_prefix: str | None = None
    """Optional namespace prefix inserted into local paths and S3 keys.

    When set, the preferences file lives at
    ``{data_root}/{data_prefix}/preferences.json``.
    """

    # S3 (only when storage_backend = "s3")
    s3_endpoint: str | None = None
    s3_bucket: str | None = None
    s3_region: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    s3_path_style: bool = False
    """Use path-style addressing (required by MinIO and some S3-compatible services)."""

    # -- Hydration -------------------------------------------------------------
    debounce_delay: float = 0.5
    """Default quiet period, in seconds, for ``Hydrator.save_with_debounce``."""


def get_settings() -> HydratorSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


@lru_cache(maxsize=1)
def _get_settings_cached() -> HydratorSettings:
    return HydratorSettings()
