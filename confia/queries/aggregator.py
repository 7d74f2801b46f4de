"""
Statistics Aggregator and list helpers

Everything here is a pure function over records already loaded in memory.
No storage access, no state: the dashboard recomputes on every render.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence, TypeVar, Union

from confia.models.records import (
    Customer,
    DashboardStats,
    Supplier,
    Transaction,
    TransactionKind,
)


CENTS = Decimal("0.01")
RECENT_TRANSACTIONS_LIMIT = 5

P = TypeVar("P", Customer, Supplier)


def aggregate(transactions: Iterable[Transaction]) -> DashboardStats:
    """
    Derive the dashboard figures from a transaction collection.

    balance and net_profit are both income minus expense.
    An empty collection yields all zeros.
    """
    total_income = Decimal("0")
    total_expense = Decimal("0")

    for transaction in transactions:
        if transaction.kind == TransactionKind.INCOME:
            total_income += transaction.amount
        elif transaction.kind == TransactionKind.EXPENSE:
            total_expense += transaction.amount

    balance = total_income - total_expense
    return DashboardStats(
        balance=balance,
        total_income=total_income,
        total_expense=total_expense,
        net_profit=balance,
    )


def filter_transactions(
    transactions: Sequence[Transaction],
    kind: Optional[TransactionKind] = None,
    search: str = "",
) -> list[Transaction]:
    """
    Filter by kind, then by a case-insensitive match on description or category.
    """
    needle = search.strip().lower()
    return [
        t for t in transactions
        if (kind is None or t.kind == kind)
        and (not needle or needle in t.description.lower() or needle in t.category.lower())
    ]


def filter_parties(records: Sequence[P], search: str = "") -> list[P]:
    """Customer/supplier search on name, tax id or email."""
    needle = search.strip().lower()
    if not needle:
        return list(records)
    return [
        r for r in records
        if needle in r.name.lower()
        or needle in r.tax_id.lower()
        or needle in r.email.lower()
    ]


def recent_transactions(
    transactions: Sequence[Transaction],
    limit: int = RECENT_TRANSACTIONS_LIMIT,
) -> list[Transaction]:
    """The first `limit` transactions, in collection order."""
    return list(transactions[:limit])


def format_currency(value: Union[Decimal, int, float, str]) -> str:
    """
    Format an amount in Brazilian reais: `R$ 1.234,56`, `-R$ 10,00`.
    """
    amount = Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    # 1,234.56 -> 1.234,56
    digits = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {digits}"


def build_chat_context(
    stats: DashboardStats,
    transactions: Sequence[Transaction],
) -> str:
    """
    Short textual snapshot handed to the chat assistant.

    Balance, totals and the five most recent transactions; nothing else.
    """
    recent = "; ".join(
        f"{t.date.isoformat()}: {t.description} ({t.amount})"
        for t in recent_transactions(transactions)
    )
    return "\n".join([
        f"Saldo Atual: {format_currency(stats.balance)}",
        f"Receita Total: {format_currency(stats.total_income)}",
        f"Despesa Total: {format_currency(stats.total_expense)}",
        f"Últimas transações: {recent or 'nenhuma'}",
    ])
