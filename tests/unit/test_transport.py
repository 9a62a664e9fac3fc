#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Transport session store and cookie token tests
#
from datetime import timedelta

import jwt
import pytest

from sulabh_session.auth.tokens import create_session_token, read_session_token
from sulabh_session.auth.transport import SessionExpiredError, SessionNotFoundError, TransportSessionStore
from tests.conftest import TEST_SECRET

pytestmark = pytest.mark.unit


@pytest.fixture
def transport(clock):
    return TransportSessionStore(clock=clock)


class TestTransportSessionStore:

    def test_new_session_ids_are_unique(self):
        ids = {TransportSessionStore.new_session_id() for _ in range(100)}
        assert len(ids) == 100
        assert all(len(i) >= 43 for i in ids)

    def test_create_and_get(self, transport, clock):
        transport.create_session("sid-1", "42", False, timedelta(minutes=5))

        session = transport.get_session("sid-1")

        assert session.account_id == "42"
        assert session.expires_at == clock() + timedelta(minutes=5)

    def test_get_unknown_raises(self, transport):
        with pytest.raises(SessionNotFoundError):
            transport.get_session("missing")

    def test_get_expired_raises_and_deletes(self, transport, clock):
        transport.create_session("sid-1", "42", False, timedelta(minutes=5))
        clock.advance(minutes=5)

        with pytest.raises(SessionExpiredError):
            transport.get_session("sid-1")
        assert transport.get_session_count() == 0

    def test_touch_rolls_expiry(self, transport, clock):
        transport.create_session("sid-1", "42", False, timedelta(minutes=5))
        clock.advance(minutes=4)

        transport.touch("sid-1", timedelta(minutes=5))

        assert transport.get_session("sid-1").expires_at == clock() + timedelta(minutes=5)

    def test_touch_unknown_raises(self, transport):
        with pytest.raises(SessionNotFoundError):
            transport.touch("missing", timedelta(minutes=5))

    def test_peek_never_raises(self, transport, clock):
        transport.create_session("sid-1", "42", True, timedelta(days=30))

        assert transport.peek(None) is None
        assert transport.peek("missing") is None
        assert transport.peek("sid-1").remember_me is True

        clock.advance(days=30)
        assert transport.peek("sid-1") is None

    def test_delete_is_idempotent(self, transport):
        transport.create_session("sid-1", "42", False, timedelta(minutes=5))
        transport.delete_session("sid-1")
        transport.delete_session("sid-1")
        assert transport.get_session_count() == 0

    def test_cleanup_expired(self, transport, clock):
        transport.create_session("short", "1", False, timedelta(minutes=5))
        transport.create_session("long", "2", True, timedelta(days=30))
        clock.advance(minutes=10)

        assert transport.cleanup_expired_sessions() == 1
        assert transport.peek("long").account_id == "2"
        assert transport.get_session_count() == 1


class TestSessionToken:

    def test_round_trip(self):
        token = create_session_token("sid-1", TEST_SECRET)
        assert read_session_token(token, TEST_SECRET) == "sid-1"

    def test_token_carries_only_the_session_id(self):
        token = create_session_token("sid-1", TEST_SECRET)
        payload = jwt.decode(token, TEST_SECRET, algorithms=["HS256"])
        assert payload == {"sid": "sid-1"}

    def test_wrong_secret_rejected(self):
        token = create_session_token("sid-1", TEST_SECRET)
        assert read_session_token(token, "another-secret-with-at-least-32-bytes") is None

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    def test_malformed_tokens_rejected(self, token):
        assert read_session_token(token, TEST_SECRET) is None

    def test_token_without_sid_rejected(self):
        token = jwt.encode({"user": "42"}, TEST_SECRET, algorithm="HS256")
        assert read_session_token(token, TEST_SECRET) is None
