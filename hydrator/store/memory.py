"""In-process storage.  Contents are lost when the process exits."""

from __future__ import annotations

from hydrator.store.base import BaseStorage


class MemoryStorage(BaseStorage):
    """Dict-backed implementation of the StorageProvider protocol."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__()
        self._values: dict[str, str] = dict(initial or {})

    async def _open(self) -> None:
        return None

    async def _get(self, key: str) -> str | None:
        return self._values.get(key)

    async def _set(self, key: str, value: str) -> bool:
        self._values[key] = value
        return True

    async def _remove(self, key: str) -> bool:
        self._values.pop(key, None)
        return True

    async def _clear(self) -> bool:
        self._values.clear()
        return True
