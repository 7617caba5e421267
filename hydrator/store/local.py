"""Local filesystem storage.

Keeps every key in a single preferences file under the data root with an
optional namespace prefix::

    {data_root}/{prefix}/preferences.json

When prefix is None, the path collapses to::

    {data_root}/preferences.json

The file is a JSON object mapping key to string value.  It is read once at
initialization; afterwards reads are served from memory and every mutation
rewrites the file before it becomes visible to reads.  Uses
``anyio.to_thread.run_sync`` for non-blocking file I/O.

Writes are atomic: data is written to a temporary file in the same directory,
then renamed to the target path.  This prevents corrupt reads if the process
crashes mid-write.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import tempfile
from collections.abc import Callable
from functools import partial
from pathlib import Path

from anyio import to_thread

from hydrator.errors import InitializationError
from hydrator.store.base import BaseStorage

PREFERENCES_FILE = "preferences.json"


class LocalStorage(BaseStorage):
    """Local filesystem implementation of the StorageProvider protocol.

    Layout::

        {base}/preferences.json

    Where ``base`` is ``data_root / prefix`` (or just ``data_root`` if no prefix).
    """

    def __init__(self, data_root: str | Path, prefix: str | None = None) -> None:
        super().__init__()
        base = Path(data_root)
        if prefix:
            base = base / prefix
        self._path = base / PREFERENCES_FILE
        self._values: dict[str, str] = {}
        self._write_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def _open(self) -> None:
        self._values = await to_thread.run_sync(partial(_load_preferences, self._path))

    # -- Read ------------------------------------------------------------------

    async def _get(self, key: str) -> str | None:
        return self._values.get(key)

    # -- Write -----------------------------------------------------------------

    async def _set(self, key: str, value: str) -> bool:
        await self._commit(lambda values: values.__setitem__(key, value))
        return True

    async def _remove(self, key: str) -> bool:
        if key in self._values:
            await self._commit(lambda values: values.pop(key, None))
        return True

    async def _clear(self) -> bool:
        await self._commit(dict.clear)
        return True

    async def _commit(self, change: Callable[[dict[str, str]], object]) -> None:
        """Apply *change* to a copy, write it, then make it the visible state.

        A failed write leaves ``_values`` untouched, so reads never see data
        that is not on disk.  The lock orders writers so each one builds on the
        previously committed snapshot.
        """
        async with self._write_lock:
            snapshot = dict(self._values)
            change(snapshot)
            data = json.dumps(snapshot, ensure_ascii=False, indent=2)
            await to_thread.run_sync(partial(_atomic_write, self._path, data))
            self._values = snapshot


# -- Sync helpers (run in thread pool) -----------------------------------------


def _load_preferences(path: Path) -> dict[str, str]:
    """Read the preferences file.  A missing file is an empty store."""
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        msg = f"Corrupt preferences file {path}: {e}"
        raise InitializationError(msg) from e
    if not isinstance(raw, dict) or not all(isinstance(v, str) for v in raw.values()):
        msg = f"Corrupt preferences file {path}: expected an object of strings"
        raise InitializationError(msg)
    return raw


def _atomic_write(path: Path, data: str) -> None:
    """Write data atomically: temp file + rename.

    Ensures readers never see a partially-written file.  The temp file is
    created in the same directory so ``os.replace`` is atomic on POSIX.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
