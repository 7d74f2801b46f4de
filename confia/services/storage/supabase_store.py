"""
Supabase Storage Implementation

DESIGN DECISION: Supabase is the remote backend because:
1. Hosted Postgres with no server code to run
2. Row-level security scopes every table to the signed-in user
3. Auth and data share one client

The store does NOT filter by owner itself. It stamps the owner column on
insert and trusts the backend's access policy on reads and deletes.

Column names follow the existing tables (Portuguese, e.g. `cpf_cnpj`),
so records are renamed on the way in and out.
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError
from supabase import Client, create_client
from tenacity import retry, stop_after_attempt, wait_exponential

from confia.config import SupabaseSettings, get_settings
from confia.models.records import (
    RECORD_MODELS,
    EntityKind,
    Record,
    RecordCreate,
    StoreMode,
)
from confia.services.storage.interface import (
    ConnectionError,
    PersistenceError,
    RecordStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


# Record field -> table column, where they differ
COLUMN_RENAMES: dict[EntityKind, dict[str, str]] = {
    EntityKind.CUSTOMERS: {"tax_id": "cpf_cnpj"},
    EntityKind.SUPPLIERS: {"tax_id": "cnpj", "product_or_service": "product_service"},
    EntityKind.TRANSACTIONS: {"kind": "type"},
}


def backend_message(error: Exception) -> str:
    """Best human-readable message from a supabase/postgrest exception."""
    message = getattr(error, "message", None)
    return str(message) if message else str(error)


class SupabaseClient:
    """
    Low-level Supabase client wrapper.

    Creates the client lazily and retries the first connection.
    """

    def __init__(self, settings: Optional[SupabaseSettings] = None):
        self._client: Optional[Client] = None
        self._settings = settings or get_settings().supabase

    @property
    def settings(self) -> SupabaseSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> Client:
        """Return the Supabase client, creating it on first use."""
        if self._client is None:
            try:
                self._client = create_client(self._settings.url, self._settings.anon_key)
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Supabase: {e}")
        return self._client

    def table_name(self, entity: EntityKind) -> str:
        """Configured table for a collection."""
        return {
            EntityKind.CUSTOMERS: self._settings.customers_table,
            EntityKind.SUPPLIERS: self._settings.suppliers_table,
            EntityKind.TRANSACTIONS: self._settings.transactions_table,
        }[entity]


class SupabaseRecordStore(RecordStoreInterface):
    """
    Supabase implementation of the record store.

    One instance belongs to one signed-in principal.
    """

    mode = StoreMode.REMOTE

    def __init__(self, client: SupabaseClient, owner_id: str):
        self._client = client
        self._owner_id = owner_id
        self._owner_column = client.settings.owner_column

    @property
    def owner_id(self) -> str:
        return self._owner_id

    def _table(self, entity: EntityKind):
        return self._client.connect().table(self._client.table_name(entity))

    def _record_to_row(self, entity: EntityKind, fields: RecordCreate) -> dict[str, Any]:
        """Convert user fields to an insert payload, owner stamped."""
        renames = COLUMN_RENAMES[entity]
        row = {
            renames.get(name, name): value
            for name, value in fields.model_dump(mode="json").items()
        }
        row[self._owner_column] = self._owner_id
        return row

    def _row_to_record(self, entity: EntityKind, row: dict[str, Any]) -> Record:
        """Convert a table row to a record. Unknown columns are dropped."""
        columns_to_fields = {column: name for name, column in COLUMN_RENAMES[entity].items()}
        data = {columns_to_fields.get(column, column): value for column, value in row.items()}

        owner = data.pop(self._owner_column, None)
        data["owner_id"] = str(owner) if owner is not None else None
        data["id"] = str(data["id"])

        model = RECORD_MODELS[entity]
        known = {key: value for key, value in data.items() if key in model.model_fields}
        return model(**known)

    async def list_records(self, entity: EntityKind) -> list[Record]:
        """Select all rows the access policy lets this user see."""
        try:
            response = self._table(entity).select("*").execute()
        except Exception as e:
            raise StorageError(f"Failed to list {entity.value}: {backend_message(e)}")

        records = []
        for row in response.data or []:
            try:
                records.append(self._row_to_record(entity, row))
            except (KeyError, ValidationError) as e:
                logger.warning(
                    "skipped_malformed_row",
                    entity=entity.value,
                    row_id=row.get("id"),
                    error=str(e),
                )
                continue  # Skip malformed rows

        return records

    async def create_record(self, entity: EntityKind, fields: RecordCreate) -> Record:
        """Insert one row; the database assigns the id."""
        try:
            response = self._table(entity).insert(self._record_to_row(entity, fields)).execute()
        except Exception as e:
            raise PersistenceError(backend_message(e))

        if not response.data:
            raise PersistenceError(f"The server did not return the new {entity.value} record")

        return self._row_to_record(entity, response.data[0])

    async def delete_record(self, entity: EntityKind, record_id: str) -> None:
        """Delete by id. Zero matching rows is not an error."""
        try:
            self._table(entity).delete().eq("id", record_id).execute()
        except Exception as e:
            raise PersistenceError(backend_message(e))
