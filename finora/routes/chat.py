"""Chat API endpoints for the advisor panel."""

from fastapi import APIRouter, Depends, HTTPException

from finora.dependencies import get_session
from finora.schemas.chat import ChatMessageRequest
from finora.services.advisor_service import AdvisorService, get_advisor
from finora.services.session import AdvisorSession, SessionSnapshot

router = APIRouter()


@router.post("", response_model=SessionSnapshot)
async def send_chat_message(
    chat_request: ChatMessageRequest,
    session: AdvisorSession = Depends(get_session),
    advisor: AdvisorService = Depends(get_advisor),
) -> SessionSnapshot:
    """
    Send a message to the advisor.

    The profile and the whole transcript so far go with every message. If
    the model call fails the user's message stays in the transcript without
    a reply and ``lastError`` is set.
    """
    if session.chat_pending:
        raise HTTPException(status_code=409, detail="A reply is still pending")

    await session.send_message(advisor, chat_request.message)
    return session.snapshot()


@router.post("/open", response_model=SessionSnapshot)
async def open_chat(session: AdvisorSession = Depends(get_session)) -> SessionSnapshot:
    """Open the chat panel."""
    session.open_chat()
    return session.snapshot()


@router.post("/close", response_model=SessionSnapshot)
async def close_chat(session: AdvisorSession = Depends(get_session)) -> SessionSnapshot:
    """Close the chat panel."""
    session.close_chat()
    return session.snapshot()
