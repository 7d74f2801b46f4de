"""Services package."""

from confia.services.auth import (
    AuthError,
    Principal,
    SessionProviderInterface,
    SupabaseSessionProvider,
)
from confia.services.image import ReceiptImageError, prepare_receipt_image
from confia.services.storage import (
    ConfigurationError,
    ConnectionError,
    EntityCollection,
    LocalKeyValueStore,
    LocalRecordStore,
    MalformedLocalDataError,
    PersistenceError,
    RecordStoreFacade,
    RecordStoreInterface,
    StorageError,
    SupabaseClient,
    SupabaseRecordStore,
)

__all__ = [
    # Auth services
    "AuthError",
    "Principal",
    "SessionProviderInterface",
    "SupabaseSessionProvider",
    # Image services
    "ReceiptImageError",
    "prepare_receipt_image",
    # Storage services
    "ConfigurationError",
    "ConnectionError",
    "EntityCollection",
    "LocalKeyValueStore",
    "LocalRecordStore",
    "MalformedLocalDataError",
    "PersistenceError",
    "RecordStoreFacade",
    "RecordStoreInterface",
    "StorageError",
    "SupabaseClient",
    "SupabaseRecordStore",
]
