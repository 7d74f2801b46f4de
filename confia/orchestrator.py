"""
Main Orchestrator for CONFIA

Ties the session, the record store facade, the aggregator and the AI
agents together into the flows the UI calls:
1. Workspace: load collections, add/delete records, derive statistics
2. Assistant: receipt scanning and finance chat

DESIGN DECISION: After every add or delete, ALL three collections are
fetched again and replaced wholesale. No optimistic updates, nothing to
reconcile with the backend.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from confia.agents import CHAT_ERROR_REPLY, FinanceChatAgent, ReceiptAgent
from confia.audit import AuditLogger
from confia.config import get_settings
from confia.models.records import (
    Customer,
    CustomerCreate,
    DashboardStats,
    EntityKind,
    FetchStatus,
    ReceiptSuggestion,
    Supplier,
    SupplierCreate,
    Transaction,
    TransactionCreate,
)
from confia.queries import aggregate, build_chat_context
from confia.services.auth import SupabaseSessionProvider
from confia.services.storage import (
    ConfigurationError,
    PersistenceError,
    StorageError,
    SupabaseClient,
)
from confia.session import AppSession


ENTITY_LABELS = {
    EntityKind.CUSTOMERS: "cliente",
    EntityKind.SUPPLIERS: "fornecedor",
    EntityKind.TRANSACTIONS: "lançamento",
}


class CollectionState(BaseModel):
    """In-memory copy of one collection plus how its last fetch went."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    records: list[Any] = Field(default_factory=list)
    status: FetchStatus = FetchStatus.IDLE
    error_message: Optional[str] = None


class OperationResult(BaseModel):
    """Outcome of an add/delete, ready to show to the user."""

    success: bool
    message: str
    record_id: Optional[str] = None


def _validation_message(error: ValidationError) -> str:
    fields = ", ".join(
        str(issue["loc"][0]) for issue in error.errors() if issue.get("loc")
    )
    return f"Campos inválidos: {fields}" if fields else "Campos inválidos"


class FinanceWorkspace:
    """
    The application's data as the UI sees it.

    Flow:
    1. ensure_loaded() fetches all three collections when the session changed
    2. add_*/delete_* write through the facade
    3. every write is followed by refresh() of all three collections
    4. stats are recomputed from the loaded transactions on access
    """

    def __init__(
        self,
        session: AppSession,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._session = session
        self._audit_logger = audit_logger or AuditLogger()
        self._states = {entity: CollectionState() for entity in EntityKind}
        self._loaded_generation: Optional[int] = None

    @property
    def session(self) -> AppSession:
        return self._session

    def state(self, entity: EntityKind) -> CollectionState:
        return self._states[entity]

    @property
    def customers(self) -> list[Customer]:
        return self._states[EntityKind.CUSTOMERS].records

    @property
    def suppliers(self) -> list[Supplier]:
        return self._states[EntityKind.SUPPLIERS].records

    @property
    def transactions(self) -> list[Transaction]:
        return self._states[EntityKind.TRANSACTIONS].records

    @property
    def stats(self) -> DashboardStats:
        return aggregate(self.transactions)

    @property
    def failed_collections(self) -> list[EntityKind]:
        return [e for e, s in self._states.items() if s.status == FetchStatus.FAILED]

    async def ensure_loaded(self) -> None:
        """Fetch everything if the session or mode changed since the last fetch."""
        if self._loaded_generation != self._session.generation:
            await self.refresh()

    async def refresh(self) -> None:
        """
        Fetch all three collections and replace the in-memory copies.

        A failed fetch keeps the previous records and marks the
        collection FAILED.
        """
        store = self._session.store
        self._loaded_generation = self._session.generation

        if not store.is_active:
            self._states = {entity: CollectionState() for entity in EntityKind}
            return

        for entity in EntityKind:
            previous = self._states[entity]
            try:
                records = await store.collection(entity).list()
            except StorageError as e:
                self._audit_logger.log_fetch_failed(entity.value, str(e), store.mode.value)
                self._states[entity] = CollectionState(
                    records=previous.records,
                    status=FetchStatus.FAILED,
                    error_message=str(e),
                )
            else:
                self._states[entity] = CollectionState(
                    records=records,
                    status=FetchStatus.LOADED,
                )

    async def add_record(
        self,
        entity: EntityKind,
        fields: Union[BaseModel, dict[str, Any]],
    ) -> OperationResult:
        """Create a record, then refetch everything."""
        store = self._session.store
        label = ENTITY_LABELS[entity]

        try:
            record = await store.collection(entity).create(fields)
        except ValidationError as e:
            return OperationResult(success=False, message=_validation_message(e))
        except ConfigurationError as e:
            return OperationResult(success=False, message=str(e))
        except PersistenceError as e:
            self._audit_logger.log_persistence_failed(
                entity_type=entity.value,
                operation="create",
                error_message=str(e),
                store_mode=store.mode.value,
            )
            result = OperationResult(
                success=False,
                message=f"Erro ao salvar {label}: {e}",
            )
        else:
            self._audit_logger.log_record_created(entity.value, record.id, store.mode.value)
            result = OperationResult(
                success=True,
                message=f"{label.capitalize()} salvo com sucesso",
                record_id=record.id,
            )

        await self.refresh()
        return result

    async def delete_record(self, entity: EntityKind, record_id: str) -> OperationResult:
        """Delete a record, then refetch everything."""
        store = self._session.store
        label = ENTITY_LABELS[entity]

        try:
            await store.collection(entity).delete(record_id)
        except ConfigurationError as e:
            return OperationResult(success=False, message=str(e))
        except PersistenceError as e:
            self._audit_logger.log_persistence_failed(
                entity_type=entity.value,
                operation="delete",
                error_message=str(e),
                store_mode=store.mode.value,
                record_id=record_id,
            )
            result = OperationResult(
                success=False,
                message=f"Erro ao excluir {label}: {e}",
                record_id=record_id,
            )
        else:
            self._audit_logger.log_record_deleted(entity.value, record_id, store.mode.value)
            result = OperationResult(
                success=True,
                message=f"{label.capitalize()} excluído",
                record_id=record_id,
            )

        await self.refresh()
        return result

    async def add_customer(self, fields: Union[CustomerCreate, dict]) -> OperationResult:
        return await self.add_record(EntityKind.CUSTOMERS, fields)

    async def delete_customer(self, record_id: str) -> OperationResult:
        return await self.delete_record(EntityKind.CUSTOMERS, record_id)

    async def add_supplier(self, fields: Union[SupplierCreate, dict]) -> OperationResult:
        return await self.add_record(EntityKind.SUPPLIERS, fields)

    async def delete_supplier(self, record_id: str) -> OperationResult:
        return await self.delete_record(EntityKind.SUPPLIERS, record_id)

    async def add_transaction(self, fields: Union[TransactionCreate, dict]) -> OperationResult:
        return await self.add_record(EntityKind.TRANSACTIONS, fields)

    async def delete_transaction(self, record_id: str) -> OperationResult:
        return await self.delete_record(EntityKind.TRANSACTIONS, record_id)


class AssistantFlow:
    """
    Receipt scanning and finance chat.

    Agents are created on first use so the rest of the application
    works without a Gemini key.
    """

    def __init__(
        self,
        receipt_agent: Optional[ReceiptAgent] = None,
        chat_agent: Optional[FinanceChatAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._receipt_agent = receipt_agent
        self._chat_agent = chat_agent
        self._audit_logger = audit_logger or AuditLogger()

    def _get_receipt_agent(self) -> Optional[ReceiptAgent]:
        if self._receipt_agent is None:
            try:
                self._receipt_agent = ReceiptAgent()
            except Exception as e:
                self._audit_logger.log_external_service_error("gemini", str(e))
                return None
        return self._receipt_agent

    def _get_chat_agent(self) -> Optional[FinanceChatAgent]:
        if self._chat_agent is None:
            try:
                self._chat_agent = FinanceChatAgent()
            except Exception as e:
                self._audit_logger.log_external_service_error("gemini", str(e))
                return None
        return self._chat_agent

    async def analyze_receipt(self, image_bytes: bytes) -> Optional[ReceiptSuggestion]:
        """Suggested expense fields, or None when analysis is unavailable."""
        agent = self._get_receipt_agent()
        suggestion = await agent.analyze_receipt(image_bytes) if agent else None
        self._audit_logger.log_receipt_analyzed(suggestion is not None)
        return suggestion

    async def ask(
        self,
        message: str,
        stats: DashboardStats,
        transactions: list[Transaction],
    ) -> str:
        """Answer a chat message with the current figures as context."""
        agent = self._get_chat_agent()
        if agent is None:
            return CHAT_ERROR_REPLY

        reply = await agent.chat(message, build_chat_context(stats, transactions))
        self._audit_logger.log_chat_answered(len(message), len(reply))
        return reply


def create_app_components() -> tuple[FinanceWorkspace, AssistantFlow, AppSession]:
    """
    Factory function to create all application components.

    The remote backend is wired in only when Supabase is configured;
    otherwise the session can only enter demo mode.

    Returns:
        (workspace, assistant_flow, session)
    """
    audit_logger = AuditLogger()
    remote_client = None
    provider = None

    supabase_settings = get_settings().try_supabase()
    if supabase_settings is not None:
        remote_client = SupabaseClient(supabase_settings)
        provider = SupabaseSessionProvider(remote_client)

    session = AppSession(
        session_provider=provider,
        remote_client=remote_client,
        audit_logger=audit_logger,
    )
    try:
        session.start()
    except Exception as e:
        # Remote backend unreachable - continue with demo mode only
        audit_logger.log_error(
            error_type="remote_session_unavailable",
            error_message=str(e),
            details={"fallback": "local"},
        )
        session = AppSession(audit_logger=audit_logger)
        session.start()

    workspace = FinanceWorkspace(session, audit_logger=audit_logger)
    assistant = AssistantFlow(audit_logger=audit_logger)
    return workspace, assistant, session
