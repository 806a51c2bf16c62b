"""Tests for the advisor session state machine and session store."""

import pytest

from finora.presentation.dashboard import DASHBOARD_LABELS
from finora.schemas.chat import ChatRole
from finora.schemas.profile import DEFAULT_PROFILE, Language
from finora.services.advisor_service import AdvisorService
from finora.services.session import (
    ADVICE_UNAVAILABLE,
    CHAT_UNAVAILABLE,
    AdvisorSession,
    InvalidTransitionError,
    SessionStore,
    ViewState,
)


@pytest.fixture
def session() -> AdvisorSession:
    return AdvisorSession(session_id="test-session")


@pytest.fixture
def failing_advisor(make_client) -> AdvisorService:
    client = make_client(
        advice_error=ConnectionError("network down"),
        chat_error=ConnectionError("network down"),
    )
    return AdvisorService(model="test-model", client=client)


class TestNavigation:
    """Tests for screen transitions."""

    def test_starts_on_welcome(self, session):
        assert session.state == ViewState.WELCOME
        assert session.profile == DEFAULT_PROFILE
        assert session.transcript == ()
        assert not session.chat_open

    def test_start(self, session):
        session.start()
        assert session.state == ViewState.PROFILE_ENTRY

    def test_start_only_from_welcome(self, session):
        session.start()
        with pytest.raises(InvalidTransitionError):
            session.start()

    def test_select_language_from_welcome_opens_profile(self, session):
        session.select_language(Language.KANNADA)

        assert session.state == ViewState.PROFILE_ENTRY
        assert session.language == Language.KANNADA
        assert session.profile.language == Language.KANNADA

    def test_select_language_keeps_screen(self, session):
        session.start()
        session.select_language(Language.MARATHI)
        assert session.state == ViewState.PROFILE_ENTRY

    def test_back_to_welcome_closes_chat(self, session):
        session.start()
        session.open_chat()

        session.back()

        assert session.state == ViewState.WELCOME
        assert not session.chat_open

    def test_back_from_welcome_is_rejected(self, session):
        with pytest.raises(InvalidTransitionError):
            session.back()

    def test_chat_not_available_on_welcome(self, session):
        with pytest.raises(InvalidTransitionError):
            session.open_chat()

    def test_language_locked_while_loading(self, session):
        session.start()
        session.state = ViewState.LOADING

        with pytest.raises(InvalidTransitionError):
            session.select_language(Language.HINDI)

        assert session.language == Language.ENGLISH
        assert session.profile.language == Language.ENGLISH

    @pytest.mark.asyncio
    async def test_language_change_on_dashboard_relabels(self, session, advisor):
        session.start()
        await session.submit_profile(advisor, DEFAULT_PROFILE)

        session.select_language(Language.BENGALI)
        dashboard = session.snapshot().dashboard

        assert session.state == ViewState.DASHBOARD
        assert dashboard.budget_plan[0].name == DASHBOARD_LABELS[Language.BENGALI]["necessities"]

    def test_close_chat_keeps_transcript(self, session):
        session.start()
        session.open_chat()
        session.close_chat()
        assert not session.chat_open


class TestSubmitProfile:
    """Tests for requesting advice."""

    @pytest.mark.asyncio
    async def test_success_shows_dashboard(self, session, advisor):
        session.start()

        advice = await session.submit_profile(advisor, DEFAULT_PROFILE)

        assert advice.health_score == 75
        assert session.state == ViewState.DASHBOARD
        assert session.advice is advice
        assert not session.advice_pending
        assert session.last_error is None

    @pytest.mark.asyncio
    async def test_session_language_wins(self, session, advisor, genai_client):
        session.select_language(Language.TELUGU)

        await session.submit_profile(advisor, DEFAULT_PROFILE)

        kwargs = genai_client.aio.models.generate_content.call_args.kwargs
        assert "structured advice in Telugu" in kwargs["contents"][0].parts[0].text
        assert session.profile.language == Language.TELUGU

    @pytest.mark.asyncio
    async def test_failure_returns_to_profile(self, session, failing_advisor):
        session.start()

        result = await session.submit_profile(failing_advisor, DEFAULT_PROFILE)

        assert result is None
        assert session.state == ViewState.PROFILE_ENTRY
        assert session.last_error == ADVICE_UNAVAILABLE
        assert not session.advice_pending

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_advice(self, session, advisor, failing_advisor):
        session.start()
        first = await session.submit_profile(advisor, DEFAULT_PROFILE)
        session.back()

        await session.submit_profile(failing_advisor, DEFAULT_PROFILE)

        assert session.advice is first

    @pytest.mark.asyncio
    async def test_resubmit_from_dashboard(self, session, advisor, genai_client):
        session.start()
        await session.submit_profile(advisor, DEFAULT_PROFILE)

        await session.submit_profile(advisor, DEFAULT_PROFILE)

        assert genai_client.aio.models.generate_content.await_count == 2
        assert session.state == ViewState.DASHBOARD

    @pytest.mark.asyncio
    async def test_duplicate_submission_ignored(self, session, advisor, genai_client):
        session.start()
        session.advice_pending = True

        assert await session.submit_profile(advisor, DEFAULT_PROFILE) is None
        genai_client.aio.models.generate_content.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_allowed_from_welcome(self, session, advisor):
        with pytest.raises(InvalidTransitionError):
            await session.submit_profile(advisor, DEFAULT_PROFILE)


class TestSendMessage:
    """Tests for chat turns in a session."""

    @pytest.mark.asyncio
    async def test_success_appends_two_turns(self, session, advisor):
        session.start()

        reply = await session.send_message(advisor, "  How much should I save?  ")

        assert reply == "Start with an emergency fund."
        assert [(t.role, t.text) for t in session.transcript] == [
            (ChatRole.USER, "How much should I save?"),
            (ChatRole.MODEL, "Start with an emergency fund."),
        ]

    @pytest.mark.asyncio
    async def test_failure_appends_only_user_turn(self, session, failing_advisor):
        session.start()

        reply = await session.send_message(failing_advisor, "Hello")

        assert reply is None
        assert len(session.transcript) == 1
        assert session.transcript[0].role == ChatRole.USER
        assert session.last_error == CHAT_UNAVAILABLE
        assert not session.chat_pending

    @pytest.mark.asyncio
    async def test_history_excludes_new_message(self, session, advisor, genai_client):
        session.start()
        await session.send_message(advisor, "First")

        await session.send_message(advisor, "Second")

        kwargs = genai_client.aio.chats.create.call_args.kwargs
        assert [c.parts[0].text for c in kwargs["history"]] == [
            "First",
            "Start with an emergency fund.",
        ]
        assert len(session.transcript) == 4

    @pytest.mark.asyncio
    async def test_uses_current_language(self, session, advisor, genai_client):
        session.start()
        session.select_language(Language.MALAYALAM)

        await session.send_message(advisor, "Namaskaram")

        kwargs = genai_client.aio.chats.create.call_args.kwargs
        assert "Always respond in Malayalam." in kwargs["config"].system_instruction

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   "])
    async def test_blank_message_ignored(self, session, advisor, text):
        session.start()
        assert await session.send_message(advisor, text) is None
        assert session.transcript == ()

    @pytest.mark.asyncio
    async def test_message_while_pending_ignored(self, session, advisor):
        session.start()
        session.chat_pending = True

        assert await session.send_message(advisor, "Hello") is None
        assert session.transcript == ()

    @pytest.mark.asyncio
    async def test_not_allowed_from_welcome(self, session, advisor):
        with pytest.raises(InvalidTransitionError):
            await session.send_message(advisor, "Hello")


class TestSnapshot:
    """Tests for the serializable session view."""

    @pytest.mark.asyncio
    async def test_dashboard_only_on_dashboard_screen(self, session, advisor):
        session.start()
        await session.submit_profile(advisor, DEFAULT_PROFILE)
        assert session.snapshot().dashboard.health_score_label == "75 / 100"

        session.back()

        assert session.snapshot().dashboard is None

    def test_camel_case_keys(self, session):
        data = session.snapshot().model_dump(by_alias=True, mode="json")

        assert data["sessionId"] == "test-session"
        assert data["state"] == "welcome"
        assert data["profile"]["monthlyIncome"] == 50000
        assert data["chatOpen"] is False
        assert data["lastError"] is None


class TestSessionStore:
    """Tests for the in-memory session store."""

    def test_get_or_create_new(self):
        store = SessionStore()
        session = store.get_or_create(None)
        assert store.get(session.session_id) is session
        assert len(store) == 1

    def test_unknown_id_creates_fresh_session(self):
        store = SessionStore()
        session = store.get_or_create("forged-id")
        assert session.session_id != "forged-id"

    def test_evicts_least_recently_used(self):
        store = SessionStore(max_sessions=2)
        first = store.get_or_create(None)
        second = store.get_or_create(None)
        store.get(first.session_id)

        store.get_or_create(None)

        assert store.get(first.session_id) is first
        assert store.get(second.session_id) is None
        assert len(store) == 2


@pytest.mark.asyncio
async def test_example_household_dashboard(make_client):
    """A 30-year-old earning 50,000 a month sees the score and budget in rupees."""
    client = make_client(
        advice_text='{"healthScore": 75, '
        '"budgetPlan": {"necessities": 15000, "wants": 9000, "savings": 6000}}'
    )
    advisor = AdvisorService(model="test-model", client=client)
    profile = DEFAULT_PROFILE.model_copy(
        update={"age": 30, "monthly_income": 50000, "monthly_expenses": 30000, "debt": 0}
    )
    session = AdvisorSession()
    session.start()

    await session.submit_profile(advisor, profile)
    dashboard = session.snapshot().dashboard

    assert session.state == ViewState.DASHBOARD
    assert dashboard.health_score_label == "75 / 100"
    assert [s.display for s in dashboard.budget_plan] == ["₹15,000", "₹9,000", "₹6,000"]
    assert dashboard.investment_suggestions == []
    assert not dashboard.is_complete
