"""
Audit Models for CONFIA

Every significant action in the system produces an audit event:
record writes, failed writes, session changes and AI calls.
Events are emitted to the structured log; they are not persisted.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Record store
    RECORD_CREATED = "record_created"
    RECORD_DELETED = "record_deleted"
    PERSISTENCE_FAILED = "persistence_failed"
    FETCH_FAILED = "fetch_failed"
    MALFORMED_LOCAL_DATA = "malformed_local_data"

    # Session
    SESSION_STARTED = "session_started"
    SESSION_ENDED = "session_ended"
    MODE_CHANGED = "mode_changed"

    # AI assistant
    RECEIPT_ANALYZED = "receipt_analyzed"
    CHAT_ANSWERED = "chat_answered"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection the event relates to (customers, suppliers, transactions)"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Id of the record the event relates to"
    )

    # Which backend was active
    store_mode: Optional[str] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "store_mode": self.store_mode,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created("customers", record_id, "local")
        event = AuditEventBuilder.session_started("remote", principal_id)
    """

    @staticmethod
    def record_created(
        entity_type: str,
        record_id: str,
        store_mode: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type=entity_type,
            entity_id=record_id,
            store_mode=store_mode,
            description=f"Record created in {entity_type}",
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        entity_type: str,
        record_id: str,
        store_mode: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=entity_type,
            entity_id=record_id,
            store_mode=store_mode,
            description=f"Record deleted from {entity_type}",
            is_user_action=True,
        )

    @staticmethod
    def persistence_failed(
        entity_type: str,
        operation: str,
        error_message: str,
        store_mode: str,
        record_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            entity_id=record_id,
            store_mode=store_mode,
            description=f"Failed to {operation} record in {entity_type}",
            details={"operation": operation},
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def fetch_failed(
        entity_type: str,
        error_message: str,
        store_mode: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FETCH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            store_mode=store_mode,
            description=f"Could not load {entity_type}; keeping previous data",
            error_message=error_message,
        )

    @staticmethod
    def malformed_local_data(
        entity_type: str,
        storage_key: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MALFORMED_LOCAL_DATA,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            store_mode="local",
            description=f"Unreadable local data under {storage_key}; treated as empty",
            details={"storage_key": storage_key},
            error_message=error_message,
        )

    @staticmethod
    def session_started(
        store_mode: str,
        principal_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_STARTED,
            store_mode=store_mode,
            description=f"Session started in {store_mode} mode",
            details={"principal_id": principal_id},
            is_user_action=True,
        )

    @staticmethod
    def session_ended(store_mode: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_ENDED,
            store_mode=store_mode,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def mode_changed(previous: str, current: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MODE_CHANGED,
            store_mode=current,
            description=f"Record store switched from {previous} to {current}",
            details={"previous": previous, "current": current},
        )

    @staticmethod
    def receipt_analyzed(succeeded: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECEIPT_ANALYZED,
            severity=AuditSeverity.INFO if succeeded else AuditSeverity.WARNING,
            entity_type="transactions",
            description=(
                "Receipt analyzed" if succeeded
                else "Receipt analysis unavailable; form left untouched"
            ),
            details={"succeeded": succeeded},
            is_user_action=True,
        )

    @staticmethod
    def chat_answered(message_length: int, reply_length: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_ANSWERED,
            description="Assistant replied to a chat message",
            details={
                "message_length": message_length,
                "reply_length": reply_length,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
        )
