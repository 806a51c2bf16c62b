"""Session API endpoints: screen navigation and language selection."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from finora.dependencies import get_session
from finora.logging_config import get_logger
from finora.schemas.profile import Language
from finora.services.session import AdvisorSession, SessionSnapshot

logger = get_logger(__name__)
router = APIRouter()


class LanguageRequest(BaseModel):
    """Request to change the response language."""

    language: Language = Field(..., description="One of the supported languages")


@router.get("", response_model=SessionSnapshot)
async def get_session_state(
    session: AdvisorSession = Depends(get_session),
) -> SessionSnapshot:
    """Get the current screen, profile, dashboard and transcript."""
    return session.snapshot()


@router.post("/start", response_model=SessionSnapshot)
async def start_session(
    session: AdvisorSession = Depends(get_session),
) -> SessionSnapshot:
    """Move from the welcome screen to the profile form."""
    session.start()
    return session.snapshot()


@router.post("/back", response_model=SessionSnapshot)
async def go_back(
    session: AdvisorSession = Depends(get_session),
) -> SessionSnapshot:
    """Go back one screen (profile -> welcome, dashboard -> profile)."""
    session.back()
    return session.snapshot()


@router.post("/language", response_model=SessionSnapshot)
async def select_language(
    language_request: LanguageRequest,
    session: AdvisorSession = Depends(get_session),
) -> SessionSnapshot:
    """Select the response language.

    From the welcome screen this also opens the profile form. Existing advice
    is not regenerated; new chat replies use the new language.
    """
    session.select_language(language_request.language)
    logger.info("Language selected", language=language_request.language.value)
    return session.snapshot()
