#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Pytest configuration and shared fixtures for the session test suite
#
"""
Pytest Configuration and Shared Fixtures for the Sulabh session test suite.

This module provides:
- A controllable clock for expiry tests
- Fast auth settings (low bcrypt cost)
- In-memory repository, lifecycle manager and ASGI test client
- Helpers to register and log in test citizens
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import pytest
from dotenv import load_dotenv
from fastapi.testclient import TestClient

from sulabh_session.api.main import create_app
from sulabh_session.auth.credentials import CredentialVerifier
from sulabh_session.auth.lifecycle import SessionLifecycleManager
from sulabh_session.config import AuthSettings, DatabaseSettings, Settings
from sulabh_session.domain.account import AccountRole, NewAccount
from sulabh_session.repositories.account_repository import InMemoryAccountRepository
from tests.data.factories import RegistrationFactory

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

TEST_SECRET = "sulabh-test-secret-with-at-least-32-bytes"
COOKIE_NAME = "sulabh.sid"
DEFAULT_PASSWORD = "citizen-pass-123"


# ============================================================================
# CLOCK
# ============================================================================

class FakeClock:
    """Settable time source; every session component reads the same instance."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# CONFIGURATION
# ============================================================================

@pytest.fixture
def auth_settings() -> AuthSettings:
    """Auth settings with production TTLs but a cheap bcrypt cost."""
    return AuthSettings(jwt_secret=TEST_SECRET, bcrypt_rounds=4)


@pytest.fixture
def settings(auth_settings) -> Settings:
    return Settings(auth=auth_settings, database=DatabaseSettings(backend="memory"))


# ============================================================================
# CORE COMPONENTS
# ============================================================================

@pytest.fixture
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def verifier() -> CredentialVerifier:
    return CredentialVerifier(rounds=4)


@pytest.fixture
def lifecycle(auth_settings, repository, clock) -> SessionLifecycleManager:
    return SessionLifecycleManager.from_settings(auth_settings, repository, clock=clock)


@pytest.fixture
def make_account(repository, verifier, clock):
    """Creates an account directly in the repository (bypasses registration rules)."""
    def _make(role: AccountRole = AccountRole.CITIZEN, password: str = DEFAULT_PASSWORD, **overrides):
        payload = RegistrationFactory(**overrides)
        return repository.create_account(
            NewAccount(
                email=payload["email"],
                username=payload["username"],
                password_hash=verifier.hash(password),
                first_name=payload["firstName"],
                last_name=payload["lastName"],
                phone=payload["phone"],
                role=role,
            ),
            clock(),
        )
    return _make


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def app(settings, repository, clock):
    return create_app(settings, repository=repository, clock=clock)


@pytest.fixture
def client(app) -> TestClient:
    """
    HTTP client against the ASGI app (no network, no lifespan sweeper).

    Keeps cookies between requests like a browser tab.
    """
    return TestClient(app)


@pytest.fixture
def register_user(client):
    """Registers a citizen through the API and returns the payload used."""
    def _register(**overrides) -> Dict[str, Any]:
        payload = RegistrationFactory(**overrides)
        response = client.post("/auth/register", json=payload)
        assert response.status_code == 201, response.text
        return payload
    return _register


@pytest.fixture
def logged_in(client, register_user):
    """Registers a citizen, logs in and returns (payload, user view)."""
    def _login(remember_me: bool = False, **overrides):
        payload = register_user(**overrides)
        response = client.post("/auth/login", json={
            "identifier": payload["email"],
            "password": payload["password"],
            "rememberMe": remember_me,
        })
        assert response.status_code == 200, response.text
        return payload, response.json()["user"]
    return _login
