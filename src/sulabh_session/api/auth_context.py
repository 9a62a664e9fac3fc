"""
Centralized auth context storage for the app.
"""

# minimal helper for shared auth state.

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from sulabh_session.auth.errors import InternalError
from sulabh_session.auth.lifecycle import SessionLifecycleManager
from sulabh_session.config import AuthSettings


@dataclass(frozen=True)
class AuthContext:
    lifecycle: SessionLifecycleManager
    settings: AuthSettings


def set_auth_context(
    app,
    lifecycle: SessionLifecycleManager,
    settings: AuthSettings,
) -> None:
    """Attach auth context to the FastAPI app state."""
    app.state.auth_context = AuthContext(
        lifecycle=lifecycle,
        settings=settings,
    )


def get_auth_context(request: Request) -> AuthContext:
    """Fetch auth context from the FastAPI app state."""
    context: Optional[AuthContext] = getattr(request.app.state, "auth_context", None)
    if not context:
        raise InternalError("Authentication service not initialized")
    return context
