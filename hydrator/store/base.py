"""Storage capability interface for hydrators.

A storage provider is an async mapping from string key to string value.  The
hydrator only ever issues string reads and writes against it, never
structured queries.

Initialization happens exactly once per provider instance.  Every caller,
whether it arrives before, during or after the attempt, observes the same
outcome: either the provider is ready, or the same
``InitializationError`` is raised again.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from loguru import logger

from hydrator.errors import InitializationError


@runtime_checkable
class StorageProvider(Protocol):
    """Async protocol for a string key-value backend."""

    def is_initialized(self) -> bool:
        """Return ``True`` once initialization has succeeded."""
        ...

    async def initialize(self) -> None:
        """Wait for initialization.  Raises ``InitializationError`` on failure."""
        ...

    async def get_string(self, key: str) -> str | None:
        """Return the value stored under *key*, or ``None`` if absent."""
        ...

    async def set_string(self, key: str, value: str) -> bool:
        """Store *value* under *key*.  Returns ``True`` on success."""
        ...

    async def remove(self, key: str) -> bool:
        """Remove *key*.  Removing a missing key succeeds."""
        ...

    async def clear(self) -> bool:
        """Remove every value owned by this provider."""
        ...


class BaseStorage:
    """Shared implementation of the single-shot initialization contract.

    Subclasses implement ``_open`` (acquire the backend handle) and the four
    data hooks.  Public data operations await ``initialize`` before
    delegating, so callers never need to sequence initialization themselves.
    """

    def __init__(self) -> None:
        self._init_task: asyncio.Task[None] | None = None
        self._initialized = False

    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        if self._init_task is None:
            self._init_task = asyncio.get_running_loop().create_task(self._run_open())
        # Shielded so one cancelled awaiter cannot cancel the attempt for everyone.
        await asyncio.shield(self._init_task)

    async def _run_open(self) -> None:
        name = type(self).__name__
        try:
            await self._open()
        except InitializationError:
            logger.warning("{}: initialization failed", name)
            raise
        except Exception as e:
            logger.warning("{}: initialization failed: {}", name, e)
            msg = f"{name} unavailable: {e}"
            raise InitializationError(msg) from e
        self._initialized = True
        logger.debug("{}: initialized", name)

    # -- Public operations -----------------------------------------------------

    async def get_string(self, key: str) -> str | None:
        await self.initialize()
        return await self._get(key)

    async def set_string(self, key: str, value: str) -> bool:
        await self.initialize()
        return await self._set(key, value)

    async def remove(self, key: str) -> bool:
        await self.initialize()
        return await self._remove(key)

    async def clear(self) -> bool:
        await self.initialize()
        return await self._clear()

    # -- Backend hooks ---------------------------------------------------------

    async def _open(self) -> None:
        raise NotImplementedError

    async def _get(self, key: str) -> str | None:
        raise NotImplementedError

    async def _set(self, key: str, value: str) -> bool:
        raise NotImplementedError

    async def _remove(self, key: str) -> bool:
        raise NotImplementedError

    async def _clear(self) -> bool:
        raise NotImplementedError
