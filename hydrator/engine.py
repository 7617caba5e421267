"""Hydration engine -- persist, restore and upgrade a single state object.

A ``Hydrator`` owns one storage key.  It serializes caller-defined state into
a versioned envelope on save, and on load it decodes, validates and migrates
whatever is stored before rebuilding the state::

    load:  started -> await storage -> read -> decode -> validate
           -> migrate -> from_json -> completed
    save:  started -> to_json -> envelope -> await storage -> write
           -> completed | failed

Failures never escape ``load``, ``save``, ``save_all`` or ``clear``.  They
degrade to ``None`` / ``False`` and are reported through the event callback,
so a corrupt record behaves exactly like a missing one and the application
falls back to its default state.

Storage resolution starts as soon as the hydrator is constructed inside a
running event loop (otherwise on first use) and every operation waits for it.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, Generic, TypeVar

from loguru import logger

from hydrator.codec import decode_document, encode_envelope, parse_envelope
from hydrator.errors import (
    DecodeError,
    HydrationError,
    InitializationError,
    SchemaValidationError,
    SerializationError,
    StorageError,
)
from hydrator.migrations import MigrationStep, migrate_document
from hydrator.models import DEFAULT_VERSION, HydrationEvent
from hydrator.settings import get_settings
from hydrator.store.base import StorageProvider
from hydrator.store.factory import get_default_storage

T = TypeVar("T")
_R = TypeVar("_R")

ToJson = Callable[[T], dict[str, Any]]
FromJson = Callable[[dict[str, Any]], T]
SchemaValidator = Callable[[dict[str, Any]], bool]
HydrationCallback = Callable[[HydrationEvent, str | None], None]


class Hydrator(Generic[T]):
    """Persists and restores one state value under ``key``.

    Args:
        key: Storage key for the envelope.
        to_json: Converts a state into a JSON object.
        from_json: Builds a state from a JSON object.
        storage: Backend to use.  Defaults to the process-wide storage from
            ``get_default_storage()``.
        version: Schema version written on save and targeted on load.
        migrations: Ordered upgrade steps for data stored at older versions.
        on_event: Receives ``started`` / ``completed`` / ``failed`` with an
            error message on failure.  Exceptions it raises are logged and
            ignored.
        schema_validator: Predicate run on the decoded document (envelope
            shape) before migration.  Raising counts as rejection.
        debounce_delay: Default quiet period in seconds for
            ``save_with_debounce``.  Defaults to ``HYDRATOR_DEBOUNCE_DELAY``.
    """

    def __init__(
        self,
        key: str,
        to_json: ToJson[T],
        from_json: FromJson[T],
        *,
        storage: StorageProvider | None = None,
        version: int = DEFAULT_VERSION,
        migrations: Sequence[MigrationStep[T]] = (),
        on_event: HydrationCallback | None = None,
        schema_validator: SchemaValidator | None = None,
        debounce_delay: float | None = None,
    ) -> None:
        self.key = key
        self.to_json = to_json
        self.from_json = from_json
        self.version = version
        self.migrations = tuple(migrations)
        self.on_event = on_event
        self.schema_validator = schema_validator
        self.debounce_delay = debounce_delay

        self._requested_storage = storage
        self._storage: StorageProvider | None = None
        self._init_task: asyncio.Task[StorageProvider] | None = None

        self._debounce_handle: asyncio.TimerHandle | None = None
        self._debounce_result: asyncio.Future[bool] | None = None
        self._background: set[asyncio.Task[None]] = set()
        self._disposed = False

        if _running_loop() is not None:
            self._start_initialization()

    async def __aenter__(self) -> Hydrator[T]:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.dispose()

    # -- Initialization --------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._storage is not None

    async def ensure_initialized(self) -> None:
        """Wait until storage is ready.  Raises ``InitializationError``."""
        await self._ready()

    def _start_initialization(self) -> asyncio.Task[StorageProvider]:
        if self._init_task is None:
            self._init_task = asyncio.get_running_loop().create_task(self._initialize_storage())
            self._init_task.add_done_callback(self._on_initialized)
        return self._init_task

    async def _initialize_storage(self) -> StorageProvider:
        try:
            storage = self._requested_storage if self._requested_storage is not None else get_default_storage()
            await storage.initialize()
        except InitializationError:
            raise
        except Exception as e:
            msg = f"Storage unavailable: {e}"
            raise InitializationError(msg) from e
        self._storage = storage
        return storage

    def _on_initialized(self, task: asyncio.Task[StorageProvider]) -> None:
        # Retrieve the exception so a never-awaited failure is logged, not lost.
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning("Hydrator {}: storage initialization failed: {}", self.key, error)

    async def _ready(self) -> StorageProvider:
        return await asyncio.shield(self._start_initialization())

    # -- Events ----------------------------------------------------------------

    def _emit(self, event: HydrationEvent, error: str | None = None) -> None:
        if error is None:
            logger.debug("Hydrator {}: {}", self.key, event)
        else:
            logger.warning("Hydrator {}: {} ({})", self.key, event, error)
        if self.on_event is None:
            return
        try:
            self.on_event(event, error)
        except Exception as e:
            logger.warning("Hydrator {}: event callback raised: {}", self.key, e)

    # -- Load ------------------------------------------------------------------

    async def load(self) -> T | None:
        """Restore the stored state, or ``None`` if absent or unusable."""
        self._emit(HydrationEvent.STARTED)
        try:
            state = await self._load()
        except HydrationError as e:
            self._emit(HydrationEvent.FAILED, str(e))
            return None
        self._emit(HydrationEvent.COMPLETED)
        return state

    async def _load(self) -> T | None:
        storage = await self._ready()
        raw = await _guarded(storage.get_string(self.key), "Read")
        if raw is None:
            return None

        document = decode_document(raw)
        self._validate(document)
        envelope = parse_envelope(document)
        data = migrate_document(envelope.data, envelope.version, self.version, self.migrations, self.to_json)

        try:
            return self.from_json(data)
        except Exception as e:
            msg = f"Failed to restore state: {e}"
            raise DecodeError(msg) from e

    def _validate(self, document: dict[str, Any]) -> None:
        if self.schema_validator is None:
            return
        try:
            valid = self.schema_validator(document)
        except Exception as e:
            logger.warning("Hydrator {}: schema validator raised: {}", self.key, e)
            valid = False
        if not valid:
            msg = "Schema validation failed"
            raise SchemaValidationError(msg)

    # -- Save ------------------------------------------------------------------

    async def save(self, state: T) -> bool:
        """Persist *state* immediately.  Returns ``True`` on success."""
        self._emit(HydrationEvent.STARTED)
        try:
            await self._save(state)
        except HydrationError as e:
            self._emit(HydrationEvent.FAILED, str(e))
            return False
        self._emit(HydrationEvent.COMPLETED)
        return True

    async def _save(self, state: T) -> None:
        try:
            document = self.to_json(state)
        except Exception as e:
            msg = f"Failed to serialize state: {e}"
            raise SerializationError(msg) from e
        payload = encode_envelope(self.version, document)

        storage = await self._ready()
        if not await _guarded(storage.set_string(self.key, payload), "Write"):
            msg = "Save operation failed"
            raise StorageError(msg)

    async def save_with_debounce(self, state: T, delay: float | None = None) -> bool:
        """Persist *state* once no newer debounced save arrives for *delay* seconds.

        Every call collapsed into the same quiet period resolves with the
        result of the single save that actually runs (the latest state).
        Returns ``False`` without writing once the hydrator is disposed.
        """
        if self._disposed:
            logger.debug("Hydrator {}: debounced save ignored after dispose", self.key)
            return False

        loop = asyncio.get_running_loop()
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
        if self._debounce_result is None:
            self._debounce_result = loop.create_future()
        result = self._debounce_result

        wait = delay if delay is not None else self._default_delay()
        self._debounce_handle = loop.call_later(wait, self._fire_debounced, state, result)
        return await asyncio.shield(result)

    def _default_delay(self) -> float:
        if self.debounce_delay is not None:
            return self.debounce_delay
        return get_settings().debounce_delay

    def _fire_debounced(self, state: T, result: asyncio.Future[bool]) -> None:
        # Calls arriving from here on start a new quiet period.
        self._debounce_handle = None
        self._debounce_result = None
        task = asyncio.get_running_loop().create_task(self._run_debounced(state, result))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run_debounced(self, state: T, result: asyncio.Future[bool]) -> None:
        ok = False
        try:
            ok = await self.save(state)
        finally:
            if not result.done():
                result.set_result(ok)

    async def save_all(self, states: Iterable[T]) -> bool:
        """Save every state concurrently.  ``True`` only if all saves succeeded.

        A failure does not stop or roll back the other saves.
        """
        results = await asyncio.gather(*(self.save(state) for state in states))
        return all(results)

    # -- Clear -----------------------------------------------------------------

    async def clear(self) -> bool:
        """Remove the stored state.  Emits no lifecycle events."""
        try:
            storage = await self._ready()
            return await _guarded(storage.remove(self.key), "Remove")
        except HydrationError as e:
            logger.warning("Hydrator {}: clearing state failed: {}", self.key, e)
            return False

    # -- Lifecycle -------------------------------------------------------------

    def dispose(self) -> None:
        """Cancel any pending debounced save.

        Callers still waiting on the cancelled save receive ``False``.  A save
        that has already started is not interrupted.
        """
        self._disposed = True
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None
        if self._debounce_result is not None:
            if not self._debounce_result.done():
                self._debounce_result.set_result(False)
            self._debounce_result = None


# -- Helpers -------------------------------------------------------------------


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


async def _guarded(call: Awaitable[_R], action: str) -> _R:
    """Await a backend call, wrapping unexpected backend errors in ``StorageError``."""
    try:
        return await call
    except HydrationError:
        raise
    except Exception as e:
        msg = f"{action} failed: {e}"
        raise StorageError(msg) from e
