"""
Record Store Facade

One handle per collection (`customers`, `suppliers`, `transactions`), each
with the same three operations, whatever backend is active.

When no backend is active, lists are empty and writes raise
ConfigurationError.
"""

from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel

from confia.models.records import (
    CREATE_MODELS,
    Customer,
    EntityKind,
    StoreMode,
    Supplier,
    Transaction,
)
from confia.services.storage.interface import ConfigurationError, RecordStoreInterface


R = TypeVar("R", Customer, Supplier, Transaction)


class EntityCollection(Generic[R]):
    """list / create / delete for a single collection."""

    def __init__(self, entity: EntityKind, backend: Optional[RecordStoreInterface]):
        self._entity = entity
        self._backend = backend

    @property
    def entity(self) -> EntityKind:
        return self._entity

    def _require_backend(self) -> RecordStoreInterface:
        if self._backend is None:
            raise ConfigurationError(
                "No record store is active: sign in or enter demo mode first"
            )
        return self._backend

    async def create(self, fields: Union[BaseModel, dict[str, Any]]) -> R:
        """
        Validate and store a new record.

        Raises:
            pydantic.ValidationError: If required fields are missing or invalid
            ConfigurationError: If no backend is active
            PersistenceError: If the backend rejected the write
        """
        backend = self._require_backend()
        model = CREATE_MODELS[self._entity]
        if isinstance(fields, BaseModel):
            fields = fields.model_dump()
        validated = model.model_validate(fields)
        return await backend.create_record(self._entity, validated)

    async def delete(self, record_id: str) -> None:
        """Delete a record by id; unknown ids are ignored by the backend."""
        backend = self._require_backend()
        await backend.delete_record(self._entity, record_id)

    async def list(self) -> list[R]:
        """Every record of the collection; empty when no backend is active."""
        if self._backend is None:
            return []
        return await self._backend.list_records(self._entity)


class RecordStoreFacade:
    """
    Uniform data access over the three collections.

    The backend is chosen by the application session and injected here;
    callers never branch on the mode themselves.
    """

    def __init__(self, backend: Optional[RecordStoreInterface] = None):
        self._backend = backend
        self.customers: EntityCollection[Customer] = EntityCollection(
            EntityKind.CUSTOMERS, backend
        )
        self.suppliers: EntityCollection[Supplier] = EntityCollection(
            EntityKind.SUPPLIERS, backend
        )
        self.transactions: EntityCollection[Transaction] = EntityCollection(
            EntityKind.TRANSACTIONS, backend
        )

    @property
    def backend(self) -> Optional[RecordStoreInterface]:
        return self._backend

    @property
    def mode(self) -> StoreMode:
        return self._backend.mode if self._backend else StoreMode.NONE

    @property
    def is_active(self) -> bool:
        return self._backend is not None

    def collection(self, entity: EntityKind) -> EntityCollection:
        """Handle for a collection by kind."""
        return {
            EntityKind.CUSTOMERS: self.customers,
            EntityKind.SUPPLIERS: self.suppliers,
            EntityKind.TRANSACTIONS: self.transactions,
        }[entity]
