#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Authentication and session management module.
#
"""
Authentication and session management module.
"""

from .credentials import CredentialVerifier
from .lifecycle import AuthenticatedSession, LoginResult, SessionLifecycleManager
from .rate_limiter import LoginRateLimiter
from .session_store import SessionStore
from .transport import TransportSessionStore

__all__ = [
    'AuthenticatedSession',
    'CredentialVerifier',
    'LoginRateLimiter',
    'LoginResult',
    'SessionLifecycleManager',
    'SessionStore',
    'TransportSessionStore',
]
