"""State type and storage doubles shared by the hydrator tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from hydrator.store.memory import MemoryStorage

# ---------------------------------------------------------------------------
# State type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CounterState:
    value: str
    count: int

    def to_json(self) -> dict[str, Any]:
        return {"value": self.value, "count": self.count}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> CounterState:
        return cls(value=data["value"], count=data["count"])


# ---------------------------------------------------------------------------
# Storage doubles
# ---------------------------------------------------------------------------


class RecordingStorage(MemoryStorage):
    """Memory storage that records writes and can reject selected values."""

    def __init__(self, reject: Callable[[str], bool] | None = None) -> None:
        super().__init__()
        self.open_calls = 0
        self.writes: list[tuple[str, str]] = []
        self._reject = reject

    async def _open(self) -> None:
        self.open_calls += 1
        await asyncio.sleep(0)

    async def _set(self, key: str, value: str) -> bool:
        if self._reject is not None and self._reject(value):
            return False
        self.writes.append((key, value))
        return await super()._set(key, value)


class UnavailableStorage(MemoryStorage):
    """Storage whose backend can never be opened."""

    def __init__(self) -> None:
        super().__init__()
        self.open_calls = 0

    async def _open(self) -> None:
        self.open_calls += 1
        msg = "backend offline"
        raise ConnectionError(msg)


class ExplodingStorage(MemoryStorage):
    """Storage that opens fine but raises on every write."""

    async def _set(self, key: str, value: str) -> bool:
        msg = "disk full"
        raise OSError(msg)
