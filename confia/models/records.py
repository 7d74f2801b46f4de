"""
Core Data Models for CONFIA

These models define the schemas for the three record collections
(customers, suppliers, transactions) and the values derived from them.

DESIGN DECISION: Every entity has two models:
- a *Create* model holding the fields a user fills in (no id, no owner)
- a record model adding the store-assigned id and the optional owner

The store assigns ids; callers never choose them.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================

class TransactionKind(str, Enum):
    """Direction of money for a transaction."""
    INCOME = "income"
    EXPENSE = "expense"


class EntityKind(str, Enum):
    """
    The three record collections.

    The value doubles as the suffix of the local storage key.
    """
    CUSTOMERS = "customers"
    SUPPLIERS = "suppliers"
    TRANSACTIONS = "transactions"


class StoreMode(str, Enum):
    """Which backend is serving the record collections."""
    REMOTE = "remote"  # Signed in against Supabase
    LOCAL = "local"    # Demo mode, persisted on this device
    NONE = "none"      # Neither; collections are empty, writes refused


class FetchStatus(str, Enum):
    """
    Outcome of the last fetch of a collection.

    DESIGN DECISION: "empty" and "failed" are different states.
    A failed fetch keeps the previously loaded records on screen.
    """
    IDLE = "idle"      # Never fetched (or no store active)
    LOADED = "loaded"
    FAILED = "failed"


# =============================================================================
# CUSTOMERS
# =============================================================================

class CustomerCreate(BaseModel):
    """Fields a user provides when registering a customer."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Customer name (required)"
    )
    tax_id: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="CPF or CNPJ (required)"
    )
    phone: str = Field(default="", max_length=40)
    email: str = Field(default="", max_length=200)
    notes: str = Field(default="", max_length=1000)


class Customer(CustomerCreate):
    """A stored customer."""

    id: str = Field(..., min_length=1, description="Store-assigned identifier")
    owner_id: Optional[str] = Field(
        default=None,
        description="Id of the user who created the record (remote mode only)"
    )


# =============================================================================
# SUPPLIERS
# =============================================================================

class SupplierCreate(BaseModel):
    """Fields a user provides when registering a supplier."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Supplier name (required)"
    )
    tax_id: str = Field(
        ...,
        min_length=1,
        max_length=32,
        description="CNPJ (required)"
    )
    phone: str = Field(default="", max_length=40)
    email: str = Field(default="", max_length=200)
    product_or_service: str = Field(
        default="",
        max_length=500,
        description="What the supplier provides"
    )


class Supplier(SupplierCreate):
    """A stored supplier."""

    id: str = Field(..., min_length=1, description="Store-assigned identifier")
    owner_id: Optional[str] = None


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionCreate(BaseModel):
    """Fields a user provides when recording income or an expense."""
    model_config = ConfigDict(str_strip_whitespace=True)

    kind: TransactionKind = Field(
        ...,
        description="income or expense"
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount in BRL, never negative"
    )
    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction"
    )
    category: str = Field(default="Outros", max_length=100)
    description: str = Field(default="", max_length=500)


class Transaction(TransactionCreate):
    """A stored transaction."""

    id: str = Field(..., min_length=1, description="Store-assigned identifier")
    owner_id: Optional[str] = None


Record = Union[Customer, Supplier, Transaction]
RecordCreate = Union[CustomerCreate, SupplierCreate, TransactionCreate]


RECORD_MODELS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.CUSTOMERS: Customer,
    EntityKind.SUPPLIERS: Supplier,
    EntityKind.TRANSACTIONS: Transaction,
}

CREATE_MODELS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.CUSTOMERS: CustomerCreate,
    EntityKind.SUPPLIERS: SupplierCreate,
    EntityKind.TRANSACTIONS: TransactionCreate,
}


# =============================================================================
# DERIVED VALUES
# =============================================================================

class DashboardStats(BaseModel):
    """
    Summary figures derived from the loaded transactions.

    Never persisted. net_profit equals balance; the dashboard labels
    them separately.
    """

    balance: Decimal = Decimal("0")
    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")


class ReceiptSuggestion(BaseModel):
    """
    Best-effort fields read from a receipt image.

    CRITICAL: This is PROPOSED data used to pre-fill the expense form.
    The user still reviews and submits it.
    """

    amount: Optional[Decimal] = Field(default=None, ge=0)
    date: Optional[dt.date] = None
    description: str = ""
    category: str = "Outros"
    kind: TransactionKind = TransactionKind.EXPENSE
