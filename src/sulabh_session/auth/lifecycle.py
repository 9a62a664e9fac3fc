#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Session lifecycle: register, login, touch, logout, expiry.
#
"""
Session lifecycle: register, login, touch, logout, expiry.

Per (account, session id) a session moves Absent -> Active(short) or
Active(long) -> Expired/Removed. Repository and hashing work is blocking
and runs in the threadpool; the rate limiter and the transport store are
only touched from the event loop.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from starlette.concurrency import run_in_threadpool

from sulabh_session.auth.clock import Clock, utcnow
from sulabh_session.auth.credentials import MAX_SECRET_BYTES, CredentialVerifier
from sulabh_session.auth.errors import (
    AuthenticationError,
    ConflictError,
    CredentialBackendError,
    InternalError,
    RateLimitError,
    ValidationError,
)
from sulabh_session.auth.rate_limiter import AttemptLimiter, LoginRateLimiter
from sulabh_session.auth.session_store import SessionStore
from sulabh_session.auth.transport import SessionExpiredError, SessionNotFoundError, TransportSessionStore
from sulabh_session.config import AuthSettings
from sulabh_session.domain.account import Account, NewAccount, SessionPolicy, SessionRecord
from sulabh_session.repositories.account_repository import AccountRepository, DuplicateAccountError


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid email/username or password"
DUPLICATE_MESSAGES = {
    "email": "This email is already registered",
    "username": "Username is already taken",
}


@dataclass(frozen=True)
class LoginResult:
    account: Account
    session_id: str
    record: SessionRecord
    max_age: timedelta


@dataclass(frozen=True)
class AuthenticatedSession:
    """Identity resolved for one request."""
    account: Account
    session_id: str
    record: SessionRecord
    max_age: timedelta

    @property
    def user(self) -> dict:
        return self.account.public_view()


@dataclass(frozen=True)
class SweepResult:
    transport_sessions: int
    session_records: int
    rate_limit_entries: int = 0


class SessionLifecycleManager:
    """Orchestrates credentials, session records, transport sessions and throttling."""

    def __init__(
        self,
        repository: AccountRepository,
        session_store: SessionStore,
        transport: TransportSessionStore,
        verifier: CredentialVerifier,
        rate_limiter: AttemptLimiter,
        clock: Clock = utcnow,
    ):
        self.repository = repository
        self.session_store = session_store
        self.transport = transport
        self.verifier = verifier
        self.rate_limiter = rate_limiter
        self.clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: AuthSettings,
        repository: AccountRepository,
        clock: Clock = utcnow,
        rate_limiter: Optional[AttemptLimiter] = None,
    ) -> "SessionLifecycleManager":
        """Wires the default in-process components from auth settings."""
        return cls(
            repository=repository,
            session_store=SessionStore(
                repository,
                short_ttl=settings.short_session_ttl,
                long_ttl=settings.long_session_ttl,
                clock=clock,
            ),
            transport=TransportSessionStore(clock=clock),
            verifier=CredentialVerifier(rounds=settings.bcrypt_rounds),
            rate_limiter=rate_limiter or LoginRateLimiter(
                max_attempts=settings.max_login_attempts,
                window_minutes=settings.lockout_minutes,
                clock=clock,
            ),
            clock=clock,
        )

    # Registration

    async def register(
        self,
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        first_name: Optional[str],
        last_name: Optional[str],
        phone: Optional[str] = None,
    ) -> Account:
        """
        Creates a verified citizen account.

        Raises:
            ValidationError: Missing fields or unacceptable password
            ConflictError: Email or username already taken
        """
        email = (email or "").strip().lower()
        username = (username or "").strip()
        first_name = (first_name or "").strip()
        last_name = (last_name or "").strip()
        phone = (phone or "").strip() or None

        if not all([email, username, password, first_name, last_name]):
            raise ValidationError(
                "Email, username, password, first name, and last name are required",
                reason="missing_fields",
            )
        if "@" not in email:
            raise ValidationError("Email address is not valid", reason="invalid_email")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                reason="weak_password",
            )
        if len(password.encode("utf-8")) > MAX_SECRET_BYTES:
            raise ValidationError(
                f"Password must not exceed {MAX_SECRET_BYTES} bytes",
                reason="password_too_long",
            )

        duplicate = await run_in_threadpool(self.repository.find_duplicate, email, username)
        if duplicate:
            raise ConflictError(DUPLICATE_MESSAGES[duplicate])

        password_hash = await self._hash(password)
        new_account = NewAccount(
            email=email,
            username=username,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
        )
        try:
            account = await run_in_threadpool(self.repository.create_account, new_account, self.clock())
        except DuplicateAccountError as exc:
            raise ConflictError(DUPLICATE_MESSAGES.get(exc.field, "User already exists")) from exc

        logger.info("Registered account %s", account.id)
        return account

    # Login / logout

    async def login(
        self,
        identifier: Optional[str],
        password: Optional[str],
        remember_me: bool = False,
        current_session_id: Optional[str] = None,
    ) -> LoginResult:
        """
        Verifies credentials and opens a new session.

        Args:
            identifier: Email or username, as typed
            password: Cleartext password
            remember_me: Long-lived (30 days) instead of short-lived session
            current_session_id: Transport session presented with the request, discarded on success

        Raises:
            ValidationError: Missing credentials
            RateLimitError: Too many attempts for this identifier
            AuthenticationError: Unknown account or wrong password (same message)
        """
        if not identifier or not password:
            raise ValidationError("Email/username and password are required", reason="missing_credentials")

        if not self.rate_limiter.allow(identifier):
            retry_after = self.rate_limiter.retry_after(identifier)
            raise RateLimitError(retry_after=retry_after)

        account = await run_in_threadpool(self.repository.find_by_identifier, identifier)
        if account is None:
            await self._verify_dummy(password)
            raise AuthenticationError(INVALID_CREDENTIALS, reason="invalid_credentials")

        if not await self._verify(password, account.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS, reason="invalid_credentials")

        if current_session_id:
            await self._discard_transport_session(current_session_id)

        session_id = self.transport.new_session_id()
        await run_in_threadpool(self.session_store.clean_expired_sessions, account.id)
        record = await run_in_threadpool(self.session_store.add_session, account.id, session_id)

        if remember_me:
            extended = await run_in_threadpool(
                self.session_store.extend_session, account.id, session_id, SessionPolicy.LONG_LIVED
            )
            if extended is None:
                raise InternalError("Failed to create session")
            record = extended

        now = self.clock()
        await run_in_threadpool(self.repository.update_last_login, account.id, now)
        account.last_login = now

        max_age = self.session_store.ttl_for(record.policy)
        self.transport.create_session(session_id, account.id, remember_me, max_age)
        self.rate_limiter.reset(identifier)

        logger.info("Login for account %s (%s session)", account.id, record.policy.value)
        return LoginResult(account=account, session_id=session_id, record=record, max_age=max_age)

    async def logout(self, session_id: str, account_id: str) -> None:
        """Removes the session record and the transport session. Idempotent."""
        await run_in_threadpool(self.session_store.remove_session, account_id, session_id)
        self.transport.delete_session(session_id)
        logger.info("Logout for account %s", account_id)

    # Per-request validation

    async def authenticate(self, session_id: Optional[str]) -> AuthenticatedSession:
        """
        Resolves a transport session to an account and touches its record.

        Raises:
            AuthenticationError: No session, unknown account or expired record;
                clear_session tells the caller to drop the cookie
        """
        if not session_id:
            raise AuthenticationError(
                "Please log in to access this resource",
                reason="authentication_required",
            )

        try:
            transport_session = self.transport.get_session(session_id)
        except (SessionNotFoundError, SessionExpiredError):
            raise AuthenticationError(
                "Your session has expired, please log in again",
                reason="session_expired",
                clear_session=True,
            )

        account = await run_in_threadpool(self.repository.get_by_id, transport_session.account_id)
        if account is None:
            self.transport.delete_session(session_id)
            logger.warning("Session bound to missing account %s rejected", transport_session.account_id)
            raise AuthenticationError(
                "User not found, please log in again",
                reason="invalid_session",
                clear_session=True,
            )

        record = await run_in_threadpool(
            self.session_store.touch_session, account.id, session_id, self.clock()
        )
        if record is None:
            self.transport.delete_session(session_id)
            logger.info("Expired or removed session rejected for account %s", account.id)
            raise AuthenticationError(
                "Your session has expired, please log in again",
                reason="session_expired",
                clear_session=True,
            )

        max_age = self.session_store.ttl_for(record.policy)
        # A concurrent logout may have dropped the transport entry meanwhile
        if self.transport.peek(session_id) is None:
            await run_in_threadpool(self.session_store.remove_session, account.id, session_id)
            raise AuthenticationError(
                "Your session has expired, please log in again",
                reason="session_expired",
                clear_session=True,
            )
        self.transport.touch(session_id, max_age)

        return AuthenticatedSession(account=account, session_id=session_id, record=record, max_age=max_age)

    def session_status(self, session_id: Optional[str]) -> dict:
        """Transport state only; never raises and never extends anything."""
        session = self.transport.peek(session_id)
        return {
            "authenticated": session is not None,
            "sessionId": session_id if session is not None else None,
            "userId": session.account_id if session is not None else None,
        }

    async def sweep(self) -> SweepResult:
        """Drops expired transport sessions, session records and elapsed rate limit windows."""
        transport_removed = self.transport.cleanup_expired_sessions()
        records_removed = await run_in_threadpool(self.session_store.sweep_expired)

        # Injected limiters may keep their own expiry
        cleanup_limiter = getattr(self.rate_limiter, "cleanup_expired", None)
        limiter_removed = cleanup_limiter() if cleanup_limiter is not None else 0

        if transport_removed or records_removed or limiter_removed:
            logger.info(
                "Session sweep removed %d transport session(s), %d record(s), %d rate limit entr(ies)",
                transport_removed,
                records_removed,
                limiter_removed,
            )
        logger.debug("%d transport session(s) remain after sweep", self.transport.get_session_count())
        return SweepResult(
            transport_sessions=transport_removed,
            session_records=records_removed,
            rate_limit_entries=limiter_removed,
        )

    # Helpers

    async def _discard_transport_session(self, session_id: str) -> None:
        previous = self.transport.peek(session_id)
        self.transport.delete_session(session_id)
        if previous is not None:
            await run_in_threadpool(self.session_store.remove_session, previous.account_id, session_id)

    async def _hash(self, password: str) -> str:
        try:
            return await run_in_threadpool(self.verifier.hash, password)
        except CredentialBackendError as exc:
            logger.exception("Password hashing backend failed")
            raise InternalError() from exc

    async def _verify(self, password: str, digest: str) -> bool:
        try:
            return await run_in_threadpool(self.verifier.verify, password, digest)
        except CredentialBackendError as exc:
            logger.exception("Password verification backend failed")
            raise InternalError() from exc

    async def _verify_dummy(self, password: str) -> None:
        try:
            await run_in_threadpool(self.verifier.verify_dummy, password)
        except CredentialBackendError as exc:
            logger.exception("Password verification backend failed")
            raise InternalError() from exc
