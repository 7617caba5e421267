"""Persisted envelope and lifecycle event models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, StrictInt, model_validator

DEFAULT_VERSION = 1


class HydrationEvent(StrEnum):
    """Lifecycle notifications emitted by ``load`` and ``save``."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


class Envelope(BaseModel):
    """Versioned wrapper stored under a hydrator's key.

    Wire format (compact JSON, keys in this order)::

        {"version":1,"data":{...}}

    Documents written before the envelope existed are still readable: a
    missing ``version`` means version 1, and a missing ``data`` means the
    whole document is the data.
    """

    version: StrictInt = DEFAULT_VERSION
    data: dict[str, Any]

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_shape(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        version = value.get("version")
        data = value.get("data")
        return {
            "version": DEFAULT_VERSION if version is None else version,
            "data": value if data is None else data,
        }
