"""
Storage Services Package

Provides the abstract record store interface, its two implementations
(Supabase and local files) and the facade the application talks to.
"""

from confia.services.storage.interface import (
    ConfigurationError,
    ConnectionError,
    MalformedLocalDataError,
    PersistenceError,
    RecordStoreInterface,
    StorageError,
)
from confia.services.storage.facade import EntityCollection, RecordStoreFacade
from confia.services.storage.local_store import LocalKeyValueStore, LocalRecordStore
from confia.services.storage.supabase_store import (
    SupabaseClient,
    SupabaseRecordStore,
)

__all__ = [
    # Interfaces
    "RecordStoreInterface",
    # Exceptions
    "ConfigurationError",
    "ConnectionError",
    "MalformedLocalDataError",
    "PersistenceError",
    "StorageError",
    # Facade
    "EntityCollection",
    "RecordStoreFacade",
    # Local implementation
    "LocalKeyValueStore",
    "LocalRecordStore",
    # Supabase implementation
    "SupabaseClient",
    "SupabaseRecordStore",
]
