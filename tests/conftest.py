"""Pytest configuration and fixtures."""

import json
import os
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

# Settings are read at import time; the app refuses to start without a key.
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest
from httpx import ASGITransport, AsyncClient

from finora.main import app
from finora.services.advisor_service import AdvisorService, get_advisor
from finora.services.session import session_store

SAMPLE_ADVICE = {
    "healthScore": 75,
    "recommendedMonthlySavings": 15000,
    "suggestedSIPAmount": 8000,
    "emergencyFundTarget": 180000,
    "budgetPlan": {"necessities": 15000, "wants": 9000, "savings": 6000},
    "investmentSuggestions": [
        "Start an index fund SIP",
        "Open a PPF account",
        "Keep a small allocation in Gold",
    ],
    "retirementReadiness": "On track if you keep saving 30% of income.",
    "riskWarnings": ["Avoid high-interest personal loans"],
    "fraudAwarenessTips": [
        "Never share your UPI PIN to receive money",
        "Check that investment apps are SEBI registered",
    ],
    "keyAdvice": "Build the emergency fund before increasing equity exposure.",
    "nextBestAction": "Set up an automatic monthly SIP this week.",
}


def make_genai_client(
    advice_text: Optional[str] = None,
    chat_text: Optional[str] = "Start with an emergency fund.",
    advice_error: Optional[Exception] = None,
    chat_error: Optional[Exception] = None,
) -> MagicMock:
    """Build a mock with the shape of ``google.genai.Client``."""
    client = MagicMock()

    if advice_error is not None:
        client.aio.models.generate_content = AsyncMock(side_effect=advice_error)
    else:
        text = json.dumps(SAMPLE_ADVICE) if advice_text is None else advice_text
        client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=text))

    chat = MagicMock()
    if chat_error is not None:
        chat.send_message = AsyncMock(side_effect=chat_error)
    else:
        chat.send_message = AsyncMock(return_value=MagicMock(text=chat_text))
    client.aio.chats.create = MagicMock(return_value=chat)

    return client


@pytest.fixture
def sample_advice_payload() -> dict:
    """Well-formed advice payload as the provider returns it."""
    return json.loads(json.dumps(SAMPLE_ADVICE))


@pytest.fixture
def make_client():
    """Factory for mock Gemini clients with custom responses."""
    return make_genai_client


@pytest.fixture
def genai_client() -> MagicMock:
    """Mock Gemini client returning the sample advice and a plain reply."""
    return make_genai_client()


@pytest.fixture
def advisor(genai_client: MagicMock) -> AdvisorService:
    """Advisor service wired to the mock client."""
    return AdvisorService(model="test-model", client=genai_client)


@pytest.fixture(autouse=True)
def clear_sessions():
    """Start every test with an empty session store."""
    session_store.clear()
    yield
    session_store.clear()


@pytest.fixture
async def async_client(advisor: AdvisorService) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client with the advisor dependency overridden."""

    async def override_get_advisor() -> AdvisorService:
        return advisor

    app.dependency_overrides[get_advisor] = override_get_advisor

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
