"""
Abstract Record Store Interface

DESIGN DECISION: We define one abstract interface for the three record
collections. This allows us to:
1. Serve the same UI from Supabase (signed in) or from local files (demo mode)
2. Select the backend once per session instead of branching per call
3. Use fakes for testing

The interface is intentionally small: list everything, create one,
delete one. There is no update and no partial query.
"""

from abc import ABC, abstractmethod

from confia.models.records import EntityKind, Record, RecordCreate, StoreMode


class RecordStoreInterface(ABC):
    """
    Abstract interface for record storage operations.

    Any storage implementation (Supabase, local files, ...)
    must implement these methods.
    """

    mode: StoreMode = StoreMode.NONE

    @abstractmethod
    async def list_records(self, entity: EntityKind) -> list[Record]:
        """
        List every record of a collection visible to the current user.

        Args:
            entity: Which collection to read

        Returns:
            All records, in storage order

        Raises:
            StorageError: If the backend could not be read
        """
        pass

    @abstractmethod
    async def create_record(self, entity: EntityKind, fields: RecordCreate) -> Record:
        """
        Create one record. The store assigns the id.

        Args:
            entity: Which collection to write
            fields: Validated user-provided fields

        Returns:
            The stored record, id included

        Raises:
            PersistenceError: If the backend rejected the write
        """
        pass

    @abstractmethod
    async def delete_record(self, entity: EntityKind, record_id: str) -> None:
        """
        Delete a record by id. Unknown ids are a no-op.

        Args:
            entity: Which collection to write
            record_id: Id of the record to remove

        Raises:
            PersistenceError: If the backend rejected the delete
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConfigurationError(StorageError):
    """No backend is active: not signed in and not in demo mode."""
    pass


class PersistenceError(StorageError):
    """The backend rejected a write. The message is safe to show to the user."""
    pass


class MalformedLocalDataError(StorageError):
    """A local storage value could not be parsed into records."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
