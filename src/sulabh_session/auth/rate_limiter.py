#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Rate limiting for login attempts.
#
"""
Rate limiting for login attempts.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Protocol

from sulabh_session.auth.clock import Clock, utcnow


logger = logging.getLogger(__name__)


class AttemptLimiter(Protocol):
    """Keyed attempt counter consulted before every login."""

    def allow(self, key: str) -> bool: ...

    def reset(self, key: str) -> None: ...

    def retry_after(self, key: str) -> int: ...


@dataclass
class AttemptWindow:
    count: int
    window_started_at: datetime


class LoginRateLimiter:
    """
    Brute-force protection for login.

    Counts attempts per identifier (as supplied, not normalized) within a
    fixed window that starts at the first attempt. State is process-local.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_minutes: int = 15,
        clock: Clock = utcnow,
    ):
        """
        Initializes the rate limiter.

        Args:
            max_attempts: Maximum attempts within the time window
            window_minutes: Time window in minutes
            clock: Returns the current aware datetime
        """
        self.attempts: Dict[str, AttemptWindow] = {}
        self.max_attempts = max_attempts
        self.window = timedelta(minutes=window_minutes)
        self.clock = clock

    def allow(self, key: str) -> bool:
        """
        Records a login attempt and tells whether it may proceed.

        Fails open: an internal error is logged and the attempt is allowed.

        Args:
            key: Login identifier

        Returns:
            True if the attempt is allowed
        """
        try:
            return self._register_attempt(key)
        except Exception:
            logger.exception("Login rate limiter failed, allowing attempt")
            return True

    def _register_attempt(self, key: str) -> bool:
        now = self.clock()
        entry = self.attempts.get(key)

        if entry is None or now - entry.window_started_at >= self.window:
            self.attempts[key] = AttemptWindow(count=1, window_started_at=now)
            return True

        # Rejected attempts inside the window do not grow the counter further
        if entry.count > self.max_attempts:
            return False

        entry.count += 1
        if entry.count > self.max_attempts:
            logger.warning("Login attempts exhausted for identifier, locked for %s", self.window)
            return False
        return True

    def reset(self, key: str) -> None:
        """
        Resets login attempts for an identifier.

        Args:
            key: Login identifier
        """
        self.attempts.pop(key, None)

    def remaining_attempts(self, key: str) -> int:
        """
        Returns remaining login attempts in the current window.

        Args:
            key: Login identifier

        Returns:
            Number of remaining attempts
        """
        entry = self.attempts.get(key)
        if entry is None or self.clock() - entry.window_started_at >= self.window:
            return self.max_attempts
        return max(0, self.max_attempts - entry.count)

    def retry_after(self, key: str) -> int:
        """
        Returns seconds until the window of a locked identifier elapses.

        Args:
            key: Login identifier

        Returns:
            Seconds until unlock (0 if not locked)
        """
        entry = self.attempts.get(key)
        if entry is None or entry.count <= self.max_attempts:
            return 0

        unlock_time = entry.window_started_at + self.window
        remaining = (unlock_time - self.clock()).total_seconds()
        return max(0, int(remaining))

    def cleanup_expired(self) -> int:
        """
        Drops identifiers whose window has elapsed.

        Returns:
            Number of removed entries
        """
        now = self.clock()
        expired = [
            key for key, entry in self.attempts.items()
            if entry.window_started_at + self.window <= now
        ]

        for key in expired:
            del self.attempts[key]

        return len(expired)
