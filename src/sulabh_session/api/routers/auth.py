"""
Authentication API Router - Registrierung, Login und Session-Management.
"""

from fastapi import APIRouter, Depends, Request, Response, status

from sulabh_session.api.auth_context import get_auth_context
from sulabh_session.api.auth_middleware import (
    clear_session_cookie,
    get_session_id,
    require_auth,
    set_session_cookie,
)
from sulabh_session.api.error_handling import handle_auth_errors
from sulabh_session.api.models import (
    LoginRequest,
    MessageResponse,
    MessageUserResponse,
    RegisterRequest,
    SessionStatusResponse,
    UserEnvelope,
)
from sulabh_session.auth.lifecycle import AuthenticatedSession

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=MessageUserResponse, status_code=status.HTTP_201_CREATED)
@handle_auth_errors("user registration")
async def register(payload: RegisterRequest, request: Request):
    """
    Registriert ein neues Bürger-Konto.

    Öffnet keine Session; der Client meldet sich danach separat an.
    """
    context = get_auth_context(request)
    account = await context.lifecycle.register(
        email=payload.email,
        username=payload.username,
        password=payload.password,
        first_name=payload.firstName,
        last_name=payload.lastName,
        phone=payload.phone,
    )
    return {"message": "User registered successfully", "user": account.public_view()}


@router.post("/login", response_model=MessageUserResponse)
@handle_auth_errors("user login")
async def login(credentials: LoginRequest, request: Request, response: Response):
    """
    User-Login mit E-Mail oder Benutzername.

    Ersetzt eine evtl. mitgeschickte Session und setzt das Session-Cookie
    (5 Minuten, mit rememberMe 30 Tage).
    """
    context = get_auth_context(request)
    result = await context.lifecycle.login(
        identifier=credentials.identifier,
        password=credentials.password,
        remember_me=credentials.rememberMe,
        current_session_id=get_session_id(request, context.settings),
    )

    set_session_cookie(response, context.settings, result.session_id, result.max_age)
    request.state.user = result.account.public_view()

    return {"message": "Login successful", "user": result.account.public_view()}


@router.post("/logout", response_model=MessageResponse)
@handle_auth_errors("user logout")
async def logout(request: Request, response: Response, session: AuthenticatedSession = Depends(require_auth)):
    """
    User-Logout - Löscht nur die Session dieses Geräts.
    """
    context = get_auth_context(request)
    await context.lifecycle.logout(session.session_id, session.account.id)

    clear_session_cookie(response, context.settings)
    return {"message": "Logout successful"}


@router.get("/profile", response_model=UserEnvelope)
@handle_auth_errors("fetch profile")
async def profile(session: AuthenticatedSession = Depends(require_auth)):
    """
    Gibt das bereinigte Profil des angemeldeten Users zurück.
    """
    return {"user": session.user}


@router.get("/session", response_model=SessionStatusResponse)
async def session_status(request: Request):
    """
    Session-Status ohne Validierung oder Verlängerung; schlägt nie fehl.
    """
    context = getattr(request.app.state, "auth_context", None)
    if context is None:
        return {"authenticated": False, "sessionId": None, "userId": None}

    session_id = get_session_id(request, context.settings)
    return context.lifecycle.session_status(session_id)
