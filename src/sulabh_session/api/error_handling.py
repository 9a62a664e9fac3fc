"""
Zentrale Fehlerbehandlung für die Session-API
Bietet konsistente Error-Handling-Patterns für Router und Auth-Dependencies
"""

import asyncio
import logging
from functools import wraps
from typing import Callable, Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mysql.connector.errors import Error as MySQLError

from sulabh_session.auth.errors import AuthError, AuthenticationError, InternalError, RateLimitError, ValidationError


logger = logging.getLogger("uvicorn.error")


def handle_auth_errors(operation_name: str = "auth operation"):
    """
    Decorator für einheitliche Fehlerbehandlung in Endpunkten und Dependencies.

    Bekannte AuthErrors werden durchgereicht; Datenbank- und unerwartete
    Fehler werden geloggt und als InternalError (500) ohne Details gemeldet.

    Args:
        operation_name: Name der Operation für Log-Meldungen

    Verwendung:
        @router.get("/endpoint")
        @handle_auth_errors("fetch profile")
        async def my_endpoint(...):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            try:
                return await func(*args, **kwargs)
            except AuthError:
                raise
            except MySQLError as exc:
                logger.exception(f"Database error in {operation_name}: {exc}")
                raise InternalError(f"Internal server error during {operation_name}") from exc
            except Exception as exc:
                logger.exception(f"Unexpected error in {operation_name}: {exc}")
                raise InternalError(f"Internal server error during {operation_name}") from exc

        @wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except AuthError:
                raise
            except MySQLError as exc:
                logger.exception(f"Database error in {operation_name}: {exc}")
                raise InternalError(f"Internal server error during {operation_name}") from exc
            except Exception as exc:
                logger.exception(f"Unexpected error in {operation_name}: {exc}")
                raise InternalError(f"Internal server error during {operation_name}") from exc

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def auth_error_response(request: Request, exc: AuthError) -> JSONResponse:
    """Renders an AuthError as {error, message[, reason]}."""
    response = JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    if isinstance(exc, RateLimitError) and exc.retry_after:
        response.headers["Retry-After"] = str(exc.retry_after)

    if isinstance(exc, AuthenticationError) and exc.clear_session:
        context = getattr(request.app.state, "auth_context", None)
        if context is not None:
            response.delete_cookie(
                key=context.settings.cookie_name,
                path="/",
                httponly=True,
                samesite="lax",
                secure=context.settings.secure_cookies,
            )

    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Installs the JSON error renderers on the app."""

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        return auth_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        fields = sorted({
            str(error["loc"][-1]) for error in exc.errors()
            if error.get("loc")
        })
        message = "Invalid request body"
        if fields:
            message = f"Invalid request body: {', '.join(fields)}"
        return auth_error_response(request, ValidationError(message, reason="invalid_body"))
