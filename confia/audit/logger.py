"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of record writes and deletes
2. Debugging capability when the remote backend rejects a write
3. Visibility into silent recoveries (malformed local data, AI fallbacks)

The audit logger:
- Writes structured JSON lines through structlog
- Never raises: a logging failure must not break the main flow
"""

from typing import Optional

import structlog

from confia.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Events go to the structured local log at the event's severity.
    """

    def __init__(self):
        self._logger = structlog.get_logger("confia.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False

        return True

    def log_record_created(self, entity_type: str, record_id: str, store_mode: str) -> None:
        """Log a successful create."""
        self.log(AuditEventBuilder.record_created(entity_type, record_id, store_mode))

    def log_record_deleted(self, entity_type: str, record_id: str, store_mode: str) -> None:
        """Log a successful delete."""
        self.log(AuditEventBuilder.record_deleted(entity_type, record_id, store_mode))

    def log_persistence_failed(
        self,
        entity_type: str,
        operation: str,
        error_message: str,
        store_mode: str,
        record_id: Optional[str] = None,
    ) -> None:
        """Log a create/delete the backend rejected."""
        self.log(
            AuditEventBuilder.persistence_failed(
                entity_type=entity_type,
                operation=operation,
                error_message=error_message,
                store_mode=store_mode,
                record_id=record_id,
            )
        )

    def log_fetch_failed(self, entity_type: str, error_message: str, store_mode: str) -> None:
        """Log a list call that failed."""
        self.log(AuditEventBuilder.fetch_failed(entity_type, error_message, store_mode))

    def log_malformed_local_data(
        self,
        entity_type: str,
        storage_key: str,
        error_message: str,
    ) -> None:
        """Log unreadable local data that was treated as empty."""
        self.log(
            AuditEventBuilder.malformed_local_data(entity_type, storage_key, error_message)
        )

    def log_session_started(self, store_mode: str, principal_id: Optional[str] = None) -> None:
        """Log the start of a remote or demo session."""
        self.log(AuditEventBuilder.session_started(store_mode, principal_id))

    def log_session_ended(self, store_mode: str) -> None:
        """Log sign-out."""
        self.log(AuditEventBuilder.session_ended(store_mode))

    def log_mode_changed(self, previous: str, current: str) -> None:
        """Log a switch of the active record store."""
        self.log(AuditEventBuilder.mode_changed(previous, current))

    def log_receipt_analyzed(self, succeeded: bool) -> None:
        """Log a receipt scan."""
        self.log(AuditEventBuilder.receipt_analyzed(succeeded))

    def log_chat_answered(self, message_length: int, reply_length: int) -> None:
        """Log a chat exchange (lengths only, never content)."""
        self.log(AuditEventBuilder.chat_answered(message_length, reply_length))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))

    def log_external_service_error(self, service: str, error_message: str) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(service, error_message))
