#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Error taxonomy of the session authentication core.
#
"""
Error taxonomy of the session authentication core.

Every error a client can see carries a stable machine-readable kind and a
human message. Internal details never travel in these objects.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for errors rendered to clients."""
    status_code = 500
    kind = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, reason: Optional[str] = None):
        self.message = message or self.default_message
        self.reason = reason
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.kind, "message": self.message}
        if self.reason:
            body["reason"] = self.reason
        return body


class ValidationError(AuthError):
    """Missing or malformed input."""
    status_code = 400
    kind = "validation_error"
    default_message = "Invalid request"


class AuthenticationError(AuthError):
    """Bad credentials, or no/invalid session."""
    status_code = 401
    kind = "authentication_error"
    default_message = "Please log in to access this resource"

    def __init__(
        self,
        message: Optional[str] = None,
        reason: Optional[str] = None,
        clear_session: bool = False,
    ):
        super().__init__(message, reason)
        self.clear_session = clear_session


class AuthorizationError(AuthError):
    """Authenticated identity lacks the required role."""
    status_code = 403
    kind = "authorization_error"
    default_message = "Insufficient permissions"


class ConflictError(AuthError):
    """Duplicate identity."""
    status_code = 409
    kind = "conflict"
    default_message = "User already exists"


class RateLimitError(AuthError):
    """Too many login attempts for an identifier."""
    status_code = 429
    kind = "rate_limited"
    default_message = "Too many failed login attempts. Please try again in 15 minutes."

    def __init__(self, message: Optional[str] = None, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after


class InternalError(AuthError):
    """Store or hashing backend failure."""


class CredentialBackendError(Exception):
    """The hashing backend failed (not a credential mismatch)."""
