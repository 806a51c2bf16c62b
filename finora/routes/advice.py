"""Advice API endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from finora.dependencies import get_session
from finora.logging_config import get_logger
from finora.schemas.advice import FinancialAdvice
from finora.schemas.profile import DEFAULT_PROFILE, Language, RiskTolerance, UserProfile
from finora.services.advisor_service import (
    AdviceGenerationError,
    AdvisorService,
    get_advisor,
)
from finora.services.session import AdvisorSession, SessionSnapshot

logger = get_logger(__name__)
router = APIRouter()


@router.get("/options")
async def get_profile_options() -> dict:
    """Get the choices and defaults for the profile form.

    Returns:
        Supported languages, risk tolerances and the prefilled profile
    """
    return {
        "languages": [language.value for language in Language],
        "riskTolerances": [risk.value for risk in RiskTolerance],
        "defaultProfile": DEFAULT_PROFILE.to_context(),
    }


@router.post("", response_model=SessionSnapshot)
async def submit_profile(
    profile: UserProfile,
    session: AdvisorSession = Depends(get_session),
    advisor: AdvisorService = Depends(get_advisor),
) -> SessionSnapshot:
    """Submit the profile form and get the dashboard.

    The call blocks until the model answers. On failure the session is back
    on the profile form with ``lastError`` set and the response is still 200;
    the snapshot is the only signal.

    Args:
        profile: Profile form contents
        session: Browser session
        advisor: Advisor service

    Returns:
        Session snapshot after the request
    """
    if session.advice_pending:
        raise HTTPException(status_code=409, detail="Advice request already in progress")

    await session.submit_profile(advisor, profile)
    return session.snapshot()


@router.post("/preview", response_model=FinancialAdvice)
async def preview_advice(
    profile: UserProfile,
    advisor: AdvisorService = Depends(get_advisor),
) -> FinancialAdvice:
    """Generate advice for a profile without touching the session.

    Returns the raw advice contract; fields the model left out are null.
    """
    try:
        return await advisor.generate_advice(profile)
    except AdviceGenerationError as e:
        logger.error("Advice preview failed", error=str(e))
        raise HTTPException(status_code=502, detail="Advice service is unavailable")
