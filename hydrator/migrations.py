"""Schema migration chain.

A migration step turns a document stored at ``from_version`` into a state
object valid at ``to_version``.  Steps produce typed states rather than raw
documents, so the chain re-serializes each intermediate state before feeding
it to the next step.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from loguru import logger

from hydrator.errors import MigrationError

T = TypeVar("T")

Document = dict[str, Any]


@dataclass(frozen=True)
class MigrationStep(Generic[T]):
    """Upgrade from ``from_version`` to ``to_version``.

    Steps need not be contiguous: a ``1 -> 3`` step is valid as long as the
    chain reaches the target version.
    """

    from_version: int
    to_version: int
    migrate: Callable[[Document], T]

    def __post_init__(self) -> None:
        if self.to_version <= self.from_version:
            msg = f"Migration must move forward (got {self.from_version} -> {self.to_version})"
            raise ValueError(msg)


def find_step(steps: Sequence[MigrationStep[T]], version: int) -> MigrationStep[T] | None:
    """Return the first configured step that starts at *version*.

    When several steps share a ``from_version``, configuration order decides.
    """
    for step in steps:
        if step.from_version == version and step.to_version > version:
            return step
    return None


def migrate_document(
    document: Document,
    stored_version: int,
    target_version: int,
    steps: Sequence[MigrationStep[T]],
    to_json: Callable[[T], Document],
) -> Document:
    """Walk *document* from *stored_version* up to *target_version*.

    Returns *document* itself when no migration is needed.  Raises
    ``MigrationError`` if a version along the way has no step, or if a step
    or the re-serialization of its result fails.

    Documents stored by a newer release (``stored_version > target_version``)
    are returned untouched; there is no downgrade path.
    """
    if stored_version == target_version:
        return document
    if stored_version > target_version:
        logger.warning(
            "Stored version {} is newer than target version {}; using data as-is", stored_version, target_version
        )
        return document

    current = document
    version = stored_version
    while version < target_version:
        step = find_step(steps, version)
        if step is None:
            msg = f"No migration path from version {version} to {target_version}"
            raise MigrationError(msg)

        try:
            state = step.migrate(current)
        except Exception as e:
            msg = f"Migration {step.from_version} -> {step.to_version} failed: {e}"
            raise MigrationError(msg) from e

        try:
            current = to_json(state)
        except Exception as e:
            msg = f"Serializing result of migration {step.from_version} -> {step.to_version} failed: {e}"
            raise MigrationError(msg) from e
        if not isinstance(current, dict):
            msg = f"Migration {step.from_version} -> {step.to_version} did not serialize to an object"
            raise MigrationError(msg)

        logger.debug("Migrated document from version {} to {}", step.from_version, step.to_version)
        version = step.to_version

    if version > target_version:
        logger.warning("Migration chain overshot target version {} (reached {})", target_version, version)
    return current
