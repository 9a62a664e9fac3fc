#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: In-memory transport session store.
#
"""
In-memory transport session store.

Maps the opaque id carried by the session cookie to the account it was
issued for. The cookie never contains the account id itself.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

from sulabh_session.auth.clock import Clock, utcnow


class SessionNotFoundError(Exception):
    """Session id does not exist."""
    pass


class SessionExpiredError(Exception):
    """Session has expired."""
    pass


@dataclass
class TransportSession:
    session_id: str
    account_id: str
    remember_me: bool
    created_at: datetime
    last_activity: datetime
    expires_at: datetime


class TransportSessionStore:
    """
    In-memory transport session store.

    Sessions roll: every touch moves expires_at to now + max_age.
    State is process-local and only accessed from the event loop.
    """

    def __init__(self, clock: Clock = utcnow):
        """
        Initializes the transport session store.

        Args:
            clock: Returns the current aware datetime
        """
        self.sessions: Dict[str, TransportSession] = {}
        self.clock = clock

    @staticmethod
    def new_session_id() -> str:
        """Returns a fresh URL-safe session id."""
        return secrets.token_urlsafe(32)

    def create_session(
        self,
        session_id: str,
        account_id: str,
        remember_me: bool,
        max_age: timedelta,
    ) -> TransportSession:
        """
        Binds a session id to an account.

        Args:
            session_id: Opaque id (see new_session_id)
            account_id: Authenticated account
            remember_me: Whether the login asked for a long-lived session
            max_age: Initial lifetime

        Returns:
            The stored session
        """
        now = self.clock()
        session = TransportSession(
            session_id=session_id,
            account_id=account_id,
            remember_me=remember_me,
            created_at=now,
            last_activity=now,
            expires_at=now + max_age,
        )
        self.sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> TransportSession:
        """
        Looks up a live session.

        Args:
            session_id: Session id

        Returns:
            The session

        Raises:
            SessionNotFoundError: Session does not exist
            SessionExpiredError: Session has expired (it is deleted)
        """
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError("Session not found")

        if session.expires_at <= self.clock():
            self.delete_session(session_id)
            raise SessionExpiredError("Session expired")

        return session

    def peek(self, session_id: Optional[str]) -> Optional[TransportSession]:
        """Returns the live session for session_id or None; never raises, never touches."""
        if not session_id:
            return None
        session = self.sessions.get(session_id)
        if session is None or session.expires_at <= self.clock():
            return None
        return session

    def touch(self, session_id: str, max_age: timedelta) -> None:
        """
        Rolls the session's expiry forward.

        Args:
            session_id: Session id
            max_age: Lifetime from now

        Raises:
            SessionNotFoundError: Session does not exist
        """
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError("Session not found")

        now = self.clock()
        session.last_activity = now
        session.expires_at = now + max_age

    def delete_session(self, session_id: str) -> None:
        """
        Deletes a session; no-op if absent.

        Args:
            session_id: Session id
        """
        self.sessions.pop(session_id, None)

    def cleanup_expired_sessions(self) -> int:
        """
        Removes expired sessions.

        Returns:
            Number of deleted sessions
        """
        now = self.clock()
        expired = [
            session_id for session_id, session in self.sessions.items()
            if session.expires_at <= now
        ]

        for session_id in expired:
            self.delete_session(session_id)

        return len(expired)

    def get_session_count(self) -> int:
        """Returns the number of stored sessions."""
        return len(self.sessions)
