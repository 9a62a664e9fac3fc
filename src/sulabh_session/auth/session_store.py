#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Per-account session records with rolling expiry.
#
"""
Per-account session records with rolling expiry.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sulabh_session.auth.clock import Clock, utcnow
from sulabh_session.domain.account import SessionPolicy, SessionRecord
from sulabh_session.repositories.account_repository import AccountRepository


logger = logging.getLogger(__name__)


class SessionStore:
    """
    Session records owned by accounts.

    Records are only reached through these operations; each one is a single
    atomic repository call and re-reads the account's state, nothing is
    cached between requests. A record whose expires_at is not in the future
    is treated as absent everywhere.
    """

    def __init__(
        self,
        repository: AccountRepository,
        short_ttl: timedelta = timedelta(minutes=5),
        long_ttl: timedelta = timedelta(days=30),
        clock: Clock = utcnow,
    ):
        """
        Initializes the session store.

        Args:
            repository: Account repository holding the records
            short_ttl: Rolling lifetime of a short-lived session
            long_ttl: Rolling lifetime of a remember-me session
            clock: Returns the current aware datetime
        """
        self.repository = repository
        self.ttl: Dict[SessionPolicy, timedelta] = {
            SessionPolicy.SHORT_LIVED: short_ttl,
            SessionPolicy.LONG_LIVED: long_ttl,
        }
        self.clock = clock

    def ttl_for(self, policy: SessionPolicy) -> timedelta:
        return self.ttl[policy]

    def add_session(self, account_id: str, session_id: str) -> SessionRecord:
        """
        Records a new short-lived session for an account.

        A record with the same session_id is replaced rather than duplicated.

        Args:
            account_id: Owning account
            session_id: Transport session identifier

        Returns:
            The stored record
        """
        now = self.clock()
        record = SessionRecord(
            session_id=session_id,
            created_at=now,
            expires_at=now + self.ttl[SessionPolicy.SHORT_LIVED],
            policy=SessionPolicy.SHORT_LIVED,
        )
        self.repository.upsert_session(account_id, record)
        return record

    def remove_session(self, account_id: str, session_id: str) -> int:
        """
        Deletes every record with this session_id; no-op if absent.

        Returns:
            Number of removed records
        """
        return self.repository.delete_session(account_id, session_id)

    def clean_expired_sessions(self, account_id: str) -> int:
        """
        Drops the account's records whose expiry has passed.

        Returns:
            Number of removed records
        """
        removed = self.repository.delete_expired_sessions(account_id, self.clock())
        if removed:
            logger.debug("Dropped %d expired session(s) for account %s", removed, account_id)
        return removed

    def touch_session(self, account_id: str, session_id: str, now: Optional[datetime] = None) -> Optional[SessionRecord]:
        """
        Pushes the expiry of a live session forward by its policy's TTL.

        Args:
            account_id: Owning account
            session_id: Transport session identifier
            now: Time of the request (defaults to the clock)

        Returns:
            The touched record, or None if no live record exists
        """
        now = now or self.clock()
        expiry_by_policy = {policy: now + ttl for policy, ttl in self.ttl.items()}
        return self.repository.extend_session(account_id, session_id, now, expiry_by_policy)

    def extend_session(
        self,
        account_id: str,
        session_id: str,
        policy: SessionPolicy,
    ) -> Optional[SessionRecord]:
        """
        Re-classifies a live session and extends it by the new policy's TTL.

        Used to turn a freshly added session into a remember-me session.

        Returns:
            The updated record, or None if no live record exists
        """
        now = self.clock()
        return self.repository.reclassify_session(
            account_id, session_id, now, policy, now + self.ttl[policy]
        )

    def find_active_session(self, account_id: str, session_id: str) -> Optional[SessionRecord]:
        """Returns the live record for session_id, without touching it."""
        return self.repository.get_active_session(account_id, session_id, self.clock())

    def list_sessions(self, account_id: str) -> List[SessionRecord]:
        """Returns a copy of all records of an account, expired ones included."""
        return list(self.repository.list_sessions(account_id))

    def sweep_expired(self) -> int:
        """Drops expired records of every account."""
        return self.repository.delete_all_expired_sessions(self.clock())
