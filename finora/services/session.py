"""
Advisor session: per-browser view state, profile, advice and chat transcript.

A session walks welcome -> profile entry -> loading -> dashboard, and owns the
chat transcript. Everything lives in process memory for the lifetime of the
browser session and is never written anywhere.
"""

import uuid
from collections import OrderedDict
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from finora.logging_config import get_logger
from finora.presentation.dashboard import DashboardView, build_dashboard
from finora.schemas.advice import FinancialAdvice
from finora.schemas.chat import ChatRole, ChatTurn, Transcript, append_turn
from finora.schemas.profile import DEFAULT_PROFILE, Language, UserProfile
from finora.services.advisor_service import AdvisorService

logger = get_logger(__name__)

ADVICE_UNAVAILABLE = "advice_unavailable"
CHAT_UNAVAILABLE = "chat_unavailable"


class ViewState(str, Enum):
    """Screens of the single-page view."""

    WELCOME = "welcome"
    PROFILE_ENTRY = "profile"
    LOADING = "loading"
    DASHBOARD = "dashboard"


# Screens on which the chat panel may be shown and used
CHAT_STATES = {ViewState.PROFILE_ENTRY, ViewState.DASHBOARD}


class InvalidTransitionError(Exception):
    """Raised when an action is not allowed from the current screen."""
    pass


class SessionSnapshot(BaseModel):
    """Serializable view of a session."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    state: ViewState
    language: Language
    profile: UserProfile
    dashboard: Optional[DashboardView] = None
    chat_open: bool
    transcript: List[ChatTurn]
    advice_pending: bool
    chat_pending: bool
    last_error: Optional[str] = None


class AdvisorSession:
    """State of one browser session."""

    def __init__(self, session_id: Optional[str] = None, profile: UserProfile = DEFAULT_PROFILE):
        self.session_id = session_id or uuid.uuid4().hex
        self.state = ViewState.WELCOME
        self.language = profile.language
        self.profile = profile
        self.advice: Optional[FinancialAdvice] = None
        self.transcript: Transcript = ()
        self.chat_open = False
        self.advice_pending = False
        self.chat_pending = False
        self.last_error: Optional[str] = None

    def _require(self, *states: ViewState) -> None:
        if self.state not in states:
            raise InvalidTransitionError(
                f"Not allowed from '{self.state.value}' "
                f"(expected {', '.join(s.value for s in states)})"
            )

    def start(self) -> None:
        """Leave the welcome screen for the profile form."""
        self._require(ViewState.WELCOME)
        self.state = ViewState.PROFILE_ENTRY

    def select_language(self, language: Language) -> None:
        """Switch the response language; from welcome this also starts.

        Not allowed while advice is loading, so the advice on screen always
        matches the language shown with it.
        """
        self._require(ViewState.WELCOME, ViewState.PROFILE_ENTRY, ViewState.DASHBOARD)
        self.language = language
        self.profile = self.profile.with_language(language)
        if self.state == ViewState.WELCOME:
            self.state = ViewState.PROFILE_ENTRY

    def back(self) -> None:
        """Go one screen back: profile -> welcome, dashboard -> profile."""
        self._require(ViewState.PROFILE_ENTRY, ViewState.DASHBOARD)
        if self.state == ViewState.PROFILE_ENTRY:
            self.state = ViewState.WELCOME
            self.chat_open = False
        else:
            self.state = ViewState.PROFILE_ENTRY

    def open_chat(self) -> None:
        """Show the chat panel."""
        self._require(*CHAT_STATES)
        self.chat_open = True

    def close_chat(self) -> None:
        """Hide the chat panel; the transcript is kept."""
        self.chat_open = False

    async def submit_profile(
        self,
        advisor: AdvisorService,
        profile: UserProfile,
    ) -> Optional[FinancialAdvice]:
        """
        Request advice for ``profile``.

        The session's language wins over the one in the form. While the call
        is in flight the screen is LOADING and further submissions are
        ignored.

        Args:
            advisor: Advisor service
            profile: Submitted profile

        Returns:
            The new advice, or None if ignored or the call failed. On failure
            the screen returns to the profile form and any earlier advice is
            kept as it was.
        """
        if self.advice_pending:
            logger.info("Ignoring duplicate profile submission", session_id=self.session_id)
            return None
        self._require(ViewState.PROFILE_ENTRY, ViewState.DASHBOARD)

        self.profile = profile.with_language(self.language)
        self.state = ViewState.LOADING
        self.advice_pending = True
        self.last_error = None

        try:
            advice = await advisor.generate_advice(self.profile)
        except Exception as e:
            logger.warning(
                "Advice request failed, returning to profile form",
                session_id=self.session_id,
                error=str(e),
            )
            self.state = ViewState.PROFILE_ENTRY
            self.last_error = ADVICE_UNAVAILABLE
            return None
        finally:
            self.advice_pending = False

        self.advice = advice
        self.state = ViewState.DASHBOARD
        return advice

    async def send_message(self, advisor: AdvisorService, text: str) -> Optional[str]:
        """
        Send a chat message.

        The user turn is recorded before the call. A reply is appended only
        when the call succeeds; a failed call leaves the transcript one turn
        longer and sets ``last_error``.

        Args:
            advisor: Advisor service
            text: Message typed by the user

        Returns:
            Reply text, or None if ignored or the call failed
        """
        message = (text or "").strip()
        if not message or self.chat_pending:
            return None
        self._require(*CHAT_STATES)

        history = self.transcript
        self.transcript = append_turn(history, ChatRole.USER, message)
        self.chat_pending = True
        self.last_error = None

        try:
            reply = await advisor.chat(
                profile=self.profile.with_language(self.language),
                history=history,
                message=message,
            )
        except Exception as e:
            logger.warning("Chat reply withheld", session_id=self.session_id, error=str(e))
            self.last_error = CHAT_UNAVAILABLE
            return None
        finally:
            self.chat_pending = False

        self.transcript = append_turn(self.transcript, ChatRole.MODEL, reply)
        return reply

    def snapshot(self) -> SessionSnapshot:
        """Current view of the session."""
        dashboard = None
        if self.advice is not None and self.state == ViewState.DASHBOARD:
            dashboard = build_dashboard(self.advice, self.language)

        return SessionSnapshot(
            session_id=self.session_id,
            state=self.state,
            language=self.language,
            profile=self.profile,
            dashboard=dashboard,
            chat_open=self.chat_open and self.state in CHAT_STATES,
            transcript=list(self.transcript),
            advice_pending=self.advice_pending,
            chat_pending=self.chat_pending,
            last_error=self.last_error,
        )


class SessionStore:
    """In-memory sessions keyed by id, oldest evicted first."""

    def __init__(self, max_sessions: int = 10000):
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, AdvisorSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: Optional[str]) -> Optional[AdvisorSession]:
        """Return the session if it exists."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def get_or_create(self, session_id: Optional[str]) -> AdvisorSession:
        """Return the session for ``session_id``, creating a new one if unknown."""
        session = self.get(session_id)
        if session is not None:
            return session

        session = AdvisorSession()
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.debug("Evicted session", session_id=evicted_id)
        logger.info("Session created", session_id=session.session_id)
        return session

    def clear(self) -> None:
        self._sessions.clear()


# Global store instance
session_store = SessionStore()
