#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: /auth endpoint tests (register, login, logout, profile, session)
#
import logging

import pytest
from fastapi.testclient import TestClient

from tests.conftest import COOKIE_NAME, DEFAULT_PASSWORD
from tests.data.factories import RegistrationFactory
from tests.fixtures.assertions import APIAssertions, CookieAssertions

logger = logging.getLogger(__name__)

pytestmark = pytest.mark.integration


class TestRegisterEndpoint:

    def test_register_returns_sanitized_user(self, client):
        payload = RegistrationFactory()
        response = client.post("/auth/register", json=payload)

        data = APIAssertions.assert_response_success(response, 201)
        assert data["message"] == "User registered successfully"
        APIAssertions.assert_sanitized_user(data["user"])
        assert data["user"]["email"] == payload["email"]
        assert data["user"]["role"] == "citizen"
        assert data["user"]["isVerified"] is True
        assert data["user"]["lastLogin"] is None
        CookieAssertions.assert_no_cookie(response, COOKIE_NAME)
        logger.info("✓ Registration returns the identity view only")

    def test_duplicate_email_conflict(self, client, register_user):
        payload = register_user()

        response = client.post("/auth/register", json={**payload, "username": "someone-else"})

        data = APIAssertions.assert_error(response, 409, "conflict")
        assert data["message"] == "This email is already registered"

    def test_duplicate_username_conflict(self, client, register_user):
        payload = register_user()

        response = client.post("/auth/register", json={**payload, "email": "other@example.org"})

        data = APIAssertions.assert_error(response, 409, "conflict")
        assert data["message"] == "Username is already taken"

    def test_missing_fields(self, client):
        response = client.post("/auth/register", json={"email": "asha@example.org"})
        APIAssertions.assert_error(response, 400, "validation_error", reason="missing_fields")

    def test_short_password(self, client):
        response = client.post("/auth/register", json=RegistrationFactory(password="12345"))
        APIAssertions.assert_error(response, 400, "validation_error", reason="weak_password")

    def test_malformed_body(self, client):
        response = client.post("/auth/register", json=["not", "an", "object"])
        APIAssertions.assert_error(response, 400, "validation_error", reason="invalid_body")


class TestLoginEndpoint:

    def test_login_by_email_sets_short_cookie(self, client, register_user):
        payload = register_user()

        response = client.post("/auth/login", json={
            "identifier": payload["email"],
            "password": payload["password"],
        })

        data = APIAssertions.assert_response_success(response)
        assert data["message"] == "Login successful"
        APIAssertions.assert_sanitized_user(data["user"])
        assert data["user"]["lastLogin"] is not None
        CookieAssertions.assert_cookie_set(response, COOKIE_NAME, max_age=300)

    def test_login_by_username(self, client, register_user):
        payload = register_user()

        response = client.post("/auth/login", json={
            "identifier": payload["username"],
            "password": payload["password"],
        })

        assert APIAssertions.assert_response_success(response)["user"]["username"] == payload["username"]

    def test_login_email_is_case_insensitive(self, client, register_user):
        payload = register_user()

        response = client.post("/auth/login", json={
            "identifier": payload["email"].upper(),
            "password": payload["password"],
        })

        assert response.status_code == 200

    def test_remember_me_sets_thirty_day_cookie(self, client, register_user):
        payload = register_user()

        response = client.post("/auth/login", json={
            "identifier": payload["email"],
            "password": payload["password"],
            "rememberMe": True,
        })

        assert response.status_code == 200
        CookieAssertions.assert_cookie_set(response, COOKIE_NAME, max_age=30 * 24 * 3600)

    def test_wrong_password_indistinguishable_from_unknown_account(self, client, register_user):
        payload = register_user()

        wrong_password = client.post("/auth/login", json={"identifier": payload["email"], "password": "nope-nope"})
        unknown = client.post("/auth/login", json={"identifier": "ghost@example.org", "password": "nope-nope"})

        assert wrong_password.status_code == unknown.status_code == 401
        assert wrong_password.json() == unknown.json()
        CookieAssertions.assert_no_cookie(wrong_password, COOKIE_NAME)

    def test_missing_credentials(self, client):
        response = client.post("/auth/login", json={"identifier": "asha"})
        APIAssertions.assert_error(response, 400, "validation_error", reason="missing_credentials")

    def test_relogin_replaces_previous_session(self, client, register_user, repository):
        payload = register_user()
        credentials = {"identifier": payload["email"], "password": payload["password"]}

        first = client.post("/auth/login", json=credentials)
        second = client.post("/auth/login", json=credentials)

        user_id = second.json()["user"]["id"]
        assert first.status_code == second.status_code == 200
        assert len(repository.list_sessions(user_id)) == 1


class TestLogoutEndpoint:

    def test_logout_clears_cookie_and_session(self, client, logged_in, repository):
        _, user = logged_in()

        response = client.post("/auth/logout")

        data = APIAssertions.assert_response_success(response)
        assert data["message"] == "Logout successful"
        CookieAssertions.assert_cookie_cleared(response, COOKIE_NAME)
        assert repository.list_sessions(user["id"]) == []
        assert client.get("/auth/profile").status_code == 401

    def test_logout_requires_session(self, client):
        response = client.post("/auth/logout")
        APIAssertions.assert_error(response, 401, "authentication_error", reason="authentication_required")

    def test_logout_on_one_device_keeps_others(self, app, client, logged_in, repository):
        payload, user = logged_in()
        laptop = TestClient(app)
        laptop.post("/auth/login", json={"identifier": payload["username"], "password": DEFAULT_PASSWORD})
        assert len(repository.list_sessions(user["id"])) == 2

        assert client.post("/auth/logout").status_code == 200

        assert client.get("/auth/profile").status_code == 401
        assert laptop.get("/auth/profile").status_code == 200
        assert len(repository.list_sessions(user["id"])) == 1
        logger.info("✓ Logout ends only the device that asked for it")


class TestProfileEndpoint:

    def test_profile_returns_identity_and_rolls_cookie(self, client, logged_in):
        payload, user = logged_in()

        response = client.get("/auth/profile")

        data = APIAssertions.assert_response_success(response)
        assert data["user"]["id"] == user["id"]
        assert data["user"]["email"] == payload["email"]
        APIAssertions.assert_sanitized_user(data["user"])
        CookieAssertions.assert_cookie_set(response, COOKIE_NAME, max_age=300)

    def test_profile_requires_session(self, client):
        response = client.get("/auth/profile")

        APIAssertions.assert_error(response, 401, "authentication_error", reason="authentication_required")
        CookieAssertions.assert_no_cookie(response, COOKIE_NAME)

    def test_tampered_cookie_rejected_and_cleared(self, client, logged_in):
        logged_in()
        token = client.cookies.get(COOKIE_NAME)
        client.cookies.clear()
        client.cookies.set(COOKIE_NAME, token + "x")

        response = client.get("/auth/profile")

        APIAssertions.assert_error(response, 401, "authentication_error", reason="invalid_session")
        CookieAssertions.assert_cookie_cleared(response, COOKIE_NAME)


class TestSessionEndpoint:

    def test_anonymous(self, client):
        response = client.get("/auth/session")

        assert APIAssertions.assert_response_success(response) == {
            "authenticated": False,
            "sessionId": None,
            "userId": None,
        }

    def test_authenticated(self, client, logged_in):
        _, user = logged_in()

        data = APIAssertions.assert_response_success(client.get("/auth/session"))

        assert data["authenticated"] is True
        assert data["userId"] == user["id"]
        assert data["sessionId"]

    def test_garbage_cookie_never_fails(self, client):
        client.cookies.set(COOKIE_NAME, "garbage")

        response = client.get("/auth/session")

        assert response.status_code == 200
        assert response.json()["authenticated"] is False


class TestHealthEndpoint:

    def test_health(self, client):
        data = APIAssertions.assert_response_success(client.get("/health"))
        assert data["status"] == "healthy"
