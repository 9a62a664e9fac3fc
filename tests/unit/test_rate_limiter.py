#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Login rate limiter tests
#
import logging

import pytest

from sulabh_session.auth.rate_limiter import LoginRateLimiter

logger = logging.getLogger(__name__)

pytestmark = [pytest.mark.unit, pytest.mark.security]


@pytest.fixture
def limiter(clock):
    return LoginRateLimiter(max_attempts=5, window_minutes=15, clock=clock)


class TestAttemptWindow:
    """Fixed window that starts at the first attempt."""

    def test_first_five_attempts_allowed(self, limiter):
        assert all(limiter.allow("asha") for _ in range(5))
        assert limiter.remaining_attempts("asha") == 0

    def test_sixth_attempt_rejected(self, limiter):
        for _ in range(5):
            limiter.allow("asha")
        assert limiter.allow("asha") is False
        assert limiter.allow("asha") is False
        logger.info("✓ Sixth attempt inside the window rejected")

    def test_retry_after_counts_down_to_window_end(self, limiter, clock):
        for _ in range(6):
            limiter.allow("asha")
        assert limiter.retry_after("asha") == 15 * 60

        clock.advance(minutes=10)
        assert limiter.retry_after("asha") == 5 * 60

    def test_retry_after_zero_when_not_locked(self, limiter):
        limiter.allow("asha")
        assert limiter.retry_after("asha") == 0
        assert limiter.retry_after("unknown") == 0

    def test_window_does_not_slide(self, limiter, clock):
        limiter.allow("asha")
        clock.advance(minutes=14)
        for _ in range(4):
            assert limiter.allow("asha")
        assert limiter.allow("asha") is False

        # 15 minutes after the first attempt a fresh window begins
        clock.advance(minutes=1)
        assert limiter.allow("asha") is True
        assert limiter.remaining_attempts("asha") == 4

    def test_keys_are_independent(self, limiter):
        for _ in range(6):
            limiter.allow("asha")
        assert limiter.allow("ravi") is True

    def test_identifier_is_not_normalized(self, limiter):
        for _ in range(6):
            limiter.allow("Asha@Example.org")
        assert limiter.allow("asha@example.org") is True


class TestReset:

    def test_reset_clears_lock(self, limiter):
        for _ in range(6):
            limiter.allow("asha")
        limiter.reset("asha")

        assert limiter.allow("asha") is True
        assert len(limiter.attempts) == 1

    def test_reset_unknown_key_is_noop(self, limiter):
        limiter.reset("nobody")
        assert limiter.attempts == {}


class TestFailOpen:

    def test_internal_error_allows_attempt(self, caplog):
        def broken_clock():
            raise RuntimeError("clock unavailable")

        limiter = LoginRateLimiter(clock=broken_clock)

        with caplog.at_level(logging.ERROR):
            assert limiter.allow("asha") is True
        assert "rate limiter failed" in caplog.text


class TestCleanup:

    def test_drops_elapsed_windows(self, limiter, clock):
        for index in range(1000):
            limiter.allow(f"spray-{index}@example.org")
        clock.advance(minutes=10)
        limiter.allow("asha")
        clock.advance(minutes=5)

        assert limiter.cleanup_expired() == 1000
        assert list(limiter.attempts) == ["asha"]
        logger.info("✓ Elapsed attempt windows dropped")

    def test_keeps_locked_identifier_until_window_ends(self, limiter, clock):
        for _ in range(6):
            limiter.allow("asha")
        clock.advance(minutes=14)

        assert limiter.cleanup_expired() == 0
        assert limiter.allow("asha") is False
