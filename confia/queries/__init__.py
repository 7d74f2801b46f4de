"""Statistics and list queries over loaded records."""

from confia.queries.aggregator import (
    aggregate,
    build_chat_context,
    filter_parties,
    filter_transactions,
    format_currency,
    recent_transactions,
)

__all__ = [
    "aggregate",
    "build_chat_context",
    "filter_parties",
    "filter_transactions",
    "format_currency",
    "recent_transactions",
]
