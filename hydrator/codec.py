"""Encoding and decoding of the persisted envelope text."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from hydrator.errors import DecodeError, SerializationError
from hydrator.models import Envelope


def encode_envelope(version: int, document: Any) -> str:
    """Wrap *document* at *version* and return compact JSON text.

    Raises ``SerializationError`` if *document* is not a mapping or contains
    values that cannot be represented as JSON.
    """
    if not isinstance(document, Mapping):
        msg = f"State serialized to {type(document).__name__}, expected an object"
        raise SerializationError(msg)
    try:
        return Envelope(version=version, data=dict(document)).model_dump_json()
    except (ValidationError, PydanticSerializationError) as e:
        msg = f"State is not JSON serializable: {e}"
        raise SerializationError(msg) from e


def decode_document(raw: str) -> dict[str, Any]:
    """Parse stored text into a JSON object.  Raises ``DecodeError``."""
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON format: {e}"
        raise DecodeError(msg) from e
    except RecursionError as e:
        msg = "Invalid JSON format: nesting too deep"
        raise DecodeError(msg) from e
    if not isinstance(document, dict):
        msg = f"Invalid JSON structure: expected an object, got {type(document).__name__}"
        raise DecodeError(msg)
    return document


def parse_envelope(document: dict[str, Any]) -> Envelope:
    """Read ``version`` and ``data`` out of a decoded document.

    Accepts the legacy shape where the document itself is the data.
    """
    try:
        return Envelope.model_validate(document)
    except ValidationError as e:
        details = "; ".join(f"{'.'.join(map(str, err['loc'])) or 'envelope'}: {err['msg']}" for err in e.errors())
        msg = f"Invalid envelope: {details}"
        raise DecodeError(msg) from e
