"""
Data Models Package

This package contains all Pydantic models used in CONFIA.
All data flowing through the system must conform to these schemas.
"""

from confia.models.records import (
    CREATE_MODELS,
    RECORD_MODELS,
    Customer,
    CustomerCreate,
    DashboardStats,
    EntityKind,
    FetchStatus,
    ReceiptSuggestion,
    Record,
    RecordCreate,
    StoreMode,
    Supplier,
    SupplierCreate,
    Transaction,
    TransactionCreate,
    TransactionKind,
)
from confia.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "CREATE_MODELS",
    "RECORD_MODELS",
    "Customer",
    "CustomerCreate",
    "DashboardStats",
    "EntityKind",
    "FetchStatus",
    "ReceiptSuggestion",
    "Record",
    "RecordCreate",
    "StoreMode",
    "Supplier",
    "SupplierCreate",
    "Transaction",
    "TransactionCreate",
    "TransactionKind",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
