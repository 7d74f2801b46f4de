"""
AI Agents for CONFIA

Two narrow uses of Gemini:

1. RECEIPT AGENT:
   - CAN: Read amount, date, merchant and a category from a receipt photo
   - CANNOT: Save anything; the suggestion only pre-fills the expense form
   - ON FAILURE: Returns None and the form is left untouched

2. FINANCE CHAT AGENT:
   - CAN: Answer questions using a short snapshot of the user's numbers
   - CANNOT: See the database; it only sees the snapshot it is given
   - ON FAILURE: Returns a fixed apology instead of raising

Neither agent ever raises to the caller.
"""

import json
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

import google.generativeai as genai
import structlog

from confia.config import get_settings
from confia.models.records import ReceiptSuggestion, TransactionKind
from confia.services.image import prepare_receipt_image


logger = structlog.get_logger(__name__)


DEFAULT_CATEGORY = "Outros"
RECEIPT_CATEGORIES = ["Alimentação", "Transporte", "Serviços", "Compras", "Outros"]

CHAT_EMPTY_REPLY = "Não consegui gerar uma resposta no momento."
CHAT_ERROR_REPLY = (
    "Ocorreu um erro ao processar sua pergunta. "
    "Verifique se a chave da API está configurada."
)

RECEIPT_PROMPT = f"""Analyze this receipt/invoice image. Extract the following information:
- total_amount (number)
- date (YYYY-MM-DD)
- description (e.g., merchant name)
- category (suggest one: {', '.join(RECEIPT_CATEGORIES)})

Respond with ONLY a JSON object in this exact format:
{{"total_amount": 0.0, "date": "YYYY-MM-DD", "description": "...", "category": "..."}}"""

CHAT_SYSTEM_INSTRUCTION = """Você é um assistente financeiro especialista do sistema CONFIA.
Ajude o usuário com dúvidas sobre finanças, economia e gestão empresarial.

Aqui está um resumo dos dados atuais do usuário (apenas para contexto, não compartilhe dados sensíveis sem necessidade):
{context}

Responda de forma curta, profissional e amigável, em Português do Brasil."""


class AIServiceError(Exception):
    """The AI service failed or returned something unusable."""
    pass


def _extract_json_object(text: str) -> dict[str, Any]:
    """Find and parse the first JSON object in a model reply."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise AIServiceError("No JSON object in model response")
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise AIServiceError(f"Invalid JSON in model response: {e}")
    if not isinstance(data, dict):
        raise AIServiceError("Model response is not a JSON object")
    return data


def _parse_amount(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value).replace(",", "."))
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount.quantize(Decimal("0.01"))


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class ReceiptAgent:
    """
    Reads a receipt photo into a suggested expense.

    BOUNDARIES:
    - NEVER persists data
    - Fields it cannot read are left empty, not guessed
    """

    def __init__(self, model: Optional[Any] = None):
        if model is None:
            settings = get_settings().gemini
            genai.configure(api_key=settings.api_key)
            model = genai.GenerativeModel(
                model_name=settings.model_name,
                generation_config={
                    "temperature": 0.1,  # Low temperature for consistency
                    "max_output_tokens": 512,
                    "response_mime_type": "application/json",
                },
            )
        self._model = model

    @staticmethod
    def parse_suggestion(text: str) -> ReceiptSuggestion:
        """
        Convert the model's JSON reply into a suggestion.

        Raises:
            AIServiceError: If the reply has no usable JSON
        """
        data = _extract_json_object(text)
        return ReceiptSuggestion(
            amount=_parse_amount(data.get("total_amount")),
            date=_parse_date(data.get("date")),
            description=str(data.get("description") or "").strip(),
            category=str(data.get("category") or DEFAULT_CATEGORY).strip() or DEFAULT_CATEGORY,
            kind=TransactionKind.EXPENSE,  # Receipts are expenses
        )

    async def analyze_receipt(self, image_bytes: bytes) -> Optional[ReceiptSuggestion]:
        """
        Suggest expense fields for a receipt photo.

        Returns None on any failure (unreadable image, API error, bad reply).
        """
        try:
            payload, mime_type = prepare_receipt_image(image_bytes)
            response = await self._model.generate_content_async(
                [{"mime_type": mime_type, "data": payload}, RECEIPT_PROMPT]
            )
            return self.parse_suggestion(response.text or "")
        except Exception as e:
            logger.warning("receipt_analysis_failed", error=str(e))
            return None


class FinanceChatAgent:
    """
    Answers finance questions with the user's current figures as context.

    The context travels in the system instruction, so a model is built
    per question.
    """

    def __init__(self, model_factory: Optional[Callable[[str], Any]] = None):
        if model_factory is None:
            settings = get_settings().gemini
            genai.configure(api_key=settings.api_key)

            def model_factory(system_instruction: str):
                return genai.GenerativeModel(
                    model_name=settings.model_name,
                    system_instruction=system_instruction,
                    generation_config={
                        "temperature": settings.temperature,
                        "max_output_tokens": settings.max_tokens,
                    },
                )

        self._model_factory = model_factory

    async def chat(self, message: str, context: str) -> str:
        """
        Reply to a user message.

        Returns a fixed fallback text when the service fails or says nothing.
        """
        try:
            model = self._model_factory(CHAT_SYSTEM_INSTRUCTION.format(context=context))
            response = await model.generate_content_async(message)
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning("finance_chat_failed", error=str(e))
            return CHAT_ERROR_REPLY

        return text or CHAT_EMPTY_REPLY
