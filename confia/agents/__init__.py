"""AI Agents package."""

from confia.agents.ai_agents import (
    CHAT_EMPTY_REPLY,
    CHAT_ERROR_REPLY,
    AIServiceError,
    FinanceChatAgent,
    ReceiptAgent,
)

__all__ = [
    "CHAT_EMPTY_REPLY",
    "CHAT_ERROR_REPLY",
    "AIServiceError",
    "FinanceChatAgent",
    "ReceiptAgent",
]
