"""
Advisor Service - integration layer for the Gemini generative model.

Two operations are exposed:
- Structured advice: one ``generate_content`` call constrained to
  ``ADVICE_RESPONSE_SCHEMA``, parsed leniently into ``FinancialAdvice``
- Chat: one turn of a conversation whose full history is supplied by the
  caller on every call

No retries, caching or provider-side sessions. A failed call raises an
``AdvisorError`` subclass and the caller decides what the user sees.
"""

import json
from typing import List, Optional

from google import genai
from google.genai import types

from finora.config import settings
from finora.logging_config import get_logger
from finora.metrics import advisor_metrics
from finora.schemas.advice import ADVICE_RESPONSE_SCHEMA, FinancialAdvice
from finora.schemas.chat import Transcript
from finora.schemas.profile import UserProfile
from finora.services.prompts import (
    ADVICE_SYSTEM_INSTRUCTION,
    build_advice_prompt,
    build_chat_system_instruction,
    contains_decorative_symbols,
    strip_decorative_symbols,
)

logger = get_logger(__name__)

CHAT_FALLBACK_REPLY = "I am sorry, I could not process that."


class AdvisorError(Exception):
    """Raised when the model provider call fails."""
    pass


class AdviceGenerationError(AdvisorError):
    """Raised when the structured advice call fails."""
    pass


class ChatError(AdvisorError):
    """Raised when a chat turn fails."""
    pass


def parse_advice(text: Optional[str]) -> FinancialAdvice:
    """
    Parse the provider's JSON text into advice.

    Empty or unparsable text gives advice with every field unset instead of
    raising; the presentation layer renders that defensively.

    Args:
        text: Raw response text

    Returns:
        FinancialAdvice, possibly empty
    """
    if not text or not text.strip():
        logger.warning("Advice response was empty")
        return FinancialAdvice()

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Advice response was not valid JSON", error=str(e), length=len(text))
        return FinancialAdvice()

    return FinancialAdvice.from_payload(payload)


def to_provider_history(history: Transcript) -> List[types.Content]:
    """Convert a transcript into Gemini contents, oldest first."""
    return [
        types.Content(role=turn.role.value, parts=[types.Part(text=turn.text)])
        for turn in history
    ]


class AdvisorService:
    """
    Service for talking to the FINORA advisor model.

    The Gemini client is created once per service; tests inject a mock
    client through ``client``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        """
        Initialize the advisor service.

        Args:
            api_key: Gemini API key, defaults to ``GEMINI_API_KEY``
            model: Model name, defaults to ``GEMINI_MODEL``
            client: Pre-built client (skips key lookup)
        """
        self.model = model or settings.gemini_model
        if client is None:
            client = genai.Client(api_key=api_key or settings.require_gemini_api_key())
        self._client = client
        advisor_metrics.set_model_info(self.model)

    async def generate_advice(self, profile: UserProfile) -> FinancialAdvice:
        """
        Generate structured advice for a profile.

        Args:
            profile: User financial profile

        Returns:
            Parsed advice; empty when the provider sent nothing usable

        Raises:
            AdviceGenerationError: If the provider call fails
        """
        prompt = build_advice_prompt(profile)
        config = types.GenerateContentConfig(
            system_instruction=ADVICE_SYSTEM_INSTRUCTION,
            response_mime_type="application/json",
            response_schema=ADVICE_RESPONSE_SCHEMA,
        )

        logger.info(
            "Requesting advice",
            model=self.model,
            language=profile.language.value,
            risk_tolerance=profile.risk_tolerance.value,
        )

        try:
            with advisor_metrics.track_request("advice"):
                response = await self._client.aio.models.generate_content(
                    model=self.model,
                    contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
                    config=config,
                )
        except Exception as e:
            logger.error("Advice generation failed", error=str(e), error_type=type(e).__name__)
            raise AdviceGenerationError(f"Advice generation failed: {e}") from e

        advice = parse_advice(getattr(response, "text", None))
        if advice.is_empty:
            advisor_metrics.record_malformed_response("advice")
        elif advice.missing_fields:
            logger.warning("Advice response is missing fields", fields=advice.missing_fields)

        return advice

    async def chat(
        self,
        profile: UserProfile,
        history: Transcript,
        message: str,
    ) -> str:
        """
        Send one chat message with the full prior conversation.

        Args:
            profile: Profile embedded in the system instruction
            history: Turns before ``message``, oldest first
            message: New user message

        Returns:
            Reply text with decorative symbols removed

        Raises:
            ChatError: If the provider call fails
        """
        config = types.GenerateContentConfig(
            system_instruction=build_chat_system_instruction(profile),
        )

        logger.info(
            "Sending chat message",
            model=self.model,
            language=profile.language.value,
            history_turns=len(history),
        )

        try:
            with advisor_metrics.track_request("chat"):
                chat = self._client.aio.chats.create(
                    model=self.model,
                    config=config,
                    history=to_provider_history(history),
                )
                response = await chat.send_message(message)
        except Exception as e:
            logger.error("Chat turn failed", error=str(e), error_type=type(e).__name__)
            raise ChatError(f"Chat failed: {e}") from e

        raw_reply = getattr(response, "text", None) or ""
        if contains_decorative_symbols(raw_reply):
            logger.debug("Removing decorative symbols from chat reply", length=len(raw_reply))
        reply = strip_decorative_symbols(raw_reply)
        if not reply:
            advisor_metrics.record_malformed_response("chat")
            return CHAT_FALLBACK_REPLY
        return reply


# Global singleton instance
_advisor_service: Optional[AdvisorService] = None


def get_advisor_service() -> AdvisorService:
    """Get or create the advisor service singleton."""
    global _advisor_service
    if _advisor_service is None:
        _advisor_service = AdvisorService()
    return _advisor_service


async def get_advisor() -> AdvisorService:
    """FastAPI dependency for the advisor service."""
    return get_advisor_service()
