"""
Authentifizierungs-Middleware und Dependencies.

Löst bei jeder geschützten Anfrage das Session-Cookie auf, verlängert den
Session-Eintrag und hängt die bereinigte Identität an request.state.
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Request, Response

from sulabh_session.api.auth_context import get_auth_context
from sulabh_session.api.error_handling import handle_auth_errors
from sulabh_session.auth.errors import AuthenticationError, AuthorizationError
from sulabh_session.auth.lifecycle import AuthenticatedSession
from sulabh_session.auth.tokens import create_session_token, read_session_token
from sulabh_session.config import AuthSettings
from sulabh_session.domain.account import AccountRole


logger = logging.getLogger("uvicorn.error")


def get_session_id(request: Request, settings: AuthSettings) -> Optional[str]:
    """Session id from the signed cookie, None if absent or tampered with."""
    return read_session_token(request.cookies.get(settings.cookie_name), settings.jwt_secret)


def set_session_cookie(response: Response, settings: AuthSettings, session_id: str, max_age: timedelta) -> None:
    """Issues (or re-issues) the session cookie with the given lifetime."""
    response.set_cookie(
        key=settings.cookie_name,
        value=create_session_token(session_id, settings.jwt_secret),
        max_age=int(max_age.total_seconds()),
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: AuthSettings) -> None:
    # Drop any cookie issued earlier in this request before expiring it
    if "set-cookie" in response.headers:
        del response.headers["set-cookie"]
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )


@handle_auth_errors("session validation")
async def require_auth(request: Request, response: Response) -> AuthenticatedSession:
    """
    Dependency: valid session required.

    Raises:
        AuthenticationError: No cookie, tampered cookie, unknown account or
            expired session (the error response also deletes the cookie)
    """
    context = get_auth_context(request)
    settings = context.settings

    session_id = get_session_id(request, settings)
    if session_id is None and request.cookies.get(settings.cookie_name):
        logger.info("AUTH 401: session cookie with invalid signature")
        raise AuthenticationError(
            "Invalid session, please log in again",
            reason="invalid_session",
            clear_session=True,
        )

    session = await context.lifecycle.authenticate(session_id)

    set_session_cookie(response, settings, session.session_id, session.max_age)
    request.state.user = session.user
    request.state.session_id = session.session_id
    return session


async def optional_auth(request: Request, response: Response) -> Optional[AuthenticatedSession]:
    """Dependency: attaches the identity when a valid session exists, never rejects."""
    try:
        return await require_auth(request, response)
    except AuthenticationError as exc:
        if exc.clear_session:
            clear_session_cookie(response, get_auth_context(request).settings)
        request.state.user = None
        return None


def require_role(*roles):
    """
    Dependency factory: valid session plus one of the given roles.

    Verwendung:
        @router.get("/admin", dependencies=[Depends(require_role("admin"))])
    """
    allowed = [role.value if isinstance(role, AccountRole) else str(role) for role in roles]

    async def role_dependency(session: AuthenticatedSession = Depends(require_auth)) -> AuthenticatedSession:
        if session.account.role.value not in allowed:
            raise AuthorizationError(f"Access denied. Required role: {' or '.join(allowed)}")
        return session

    return role_dependency
