"""Shared FastAPI dependencies."""

from fastapi import Request, Response

from finora.config import settings
from finora.services.session import AdvisorSession, session_store


async def get_session(request: Request, response: Response) -> AdvisorSession:
    """
    Resolve the browser session from its cookie, creating one when missing.

    The cookie is refreshed on every response so the browser keeps the id
    for as long as the tab lives. It is a session cookie: no expiry is set.
    """
    session_id = request.cookies.get(settings.session_cookie_name)
    session = session_store.get_or_create(session_id)

    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.session_id,
        httponly=True,
        samesite="lax",
    )
    request.state.session_id = session.session_id
    return session
