"""Error taxonomy for hydration operations.

Every error below is raised at the boundary that detects it and caught at
the public ``Hydrator`` operation boundary, where it is turned into a
``None`` / ``False`` result plus a ``failed`` event.  None of them escape
``load``, ``save``, ``save_all`` or ``clear``.
"""

from __future__ import annotations


class HydrationError(RuntimeError):
    """Base class for all hydration failures."""


class InitializationError(HydrationError):
    """Raised when the storage backend cannot be resolved or initialized."""


class StorageError(HydrationError):
    """Raised when an initialized backend fails a read or write."""


class DecodeError(HydrationError):
    """Raised when stored text is not a valid envelope or cannot be turned into state."""


class SchemaValidationError(HydrationError):
    """Raised when the decoded document is rejected by the schema validator."""


class MigrationError(HydrationError):
    """Raised when no migration path exists or a migration step fails."""


class SerializationError(HydrationError):
    """Raised when a state cannot be converted into a persistable document."""
