"""
Account repository contract and the in-process implementation.
"""

import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Protocol

from sulabh_session.domain.account import Account, NewAccount, SessionPolicy, SessionRecord


class DuplicateAccountError(Exception):
    """Raised when an email or username is already taken."""

    def __init__(self, field: str):
        super().__init__(f"Duplicate account {field}")
        self.field = field


class AccountRepository(Protocol):
    """
    Persistent user store.

    Session methods are the only way to reach an account's session records;
    each one is atomic with respect to that account.
    """

    def create_account(self, new_account: NewAccount, now: datetime) -> Account: ...

    def find_duplicate(self, email: str, username: str) -> Optional[str]: ...

    def get_by_id(self, account_id: str) -> Optional[Account]: ...

    def find_by_identifier(self, identifier: str) -> Optional[Account]: ...

    def update_last_login(self, account_id: str, when: datetime) -> None: ...

    def upsert_session(self, account_id: str, record: SessionRecord) -> None: ...

    def delete_session(self, account_id: str, session_id: str) -> int: ...

    def delete_expired_sessions(self, account_id: str, now: datetime) -> int: ...

    def delete_all_expired_sessions(self, now: datetime) -> int: ...

    def get_active_session(self, account_id: str, session_id: str, now: datetime) -> Optional[SessionRecord]: ...

    def list_sessions(self, account_id: str) -> List[SessionRecord]: ...

    def extend_session(
        self,
        account_id: str,
        session_id: str,
        now: datetime,
        expiry_by_policy: Mapping[SessionPolicy, datetime],
    ) -> Optional[SessionRecord]: ...

    def reclassify_session(
        self,
        account_id: str,
        session_id: str,
        now: datetime,
        policy: SessionPolicy,
        expires_at: datetime,
    ) -> Optional[SessionRecord]: ...


class InMemoryAccountRepository:
    """
    Account store kept in process memory.

    Suitable for a single process and for tests. Operations run in the
    threadpool, so every access holds the repository lock.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._accounts: Dict[str, Account] = {}
        self._sessions: Dict[str, List[SessionRecord]] = {}

    def create_account(self, new_account: NewAccount, now: datetime) -> Account:
        with self._lock:
            duplicate = self.find_duplicate(new_account.email, new_account.username)
            if duplicate:
                raise DuplicateAccountError(duplicate)

            account = Account(
                id=uuid.uuid4().hex,
                email=new_account.email,
                username=new_account.username,
                password_hash=new_account.password_hash,
                first_name=new_account.first_name,
                last_name=new_account.last_name,
                phone=new_account.phone,
                role=new_account.role,
                is_verified=new_account.is_verified,
                created_at=now,
            )
            self._accounts[account.id] = account
            self._sessions[account.id] = []
            return replace(account)

    def find_duplicate(self, email: str, username: str) -> Optional[str]:
        """Returns 'email' or 'username' for the first clash, else None."""
        with self._lock:
            for account in self._accounts.values():
                if account.email == email.lower():
                    return "email"
                if account.username == username:
                    return "username"
            return None

    def get_by_id(self, account_id: str) -> Optional[Account]:
        with self._lock:
            account = self._accounts.get(account_id)
            return replace(account) if account else None

    def find_by_identifier(self, identifier: str) -> Optional[Account]:
        email = identifier.strip().lower()
        with self._lock:
            for account in self._accounts.values():
                if account.email == email or account.username == identifier:
                    return replace(account)
            return None

    def update_last_login(self, account_id: str, when: datetime) -> None:
        with self._lock:
            account = self._accounts.get(account_id)
            if account:
                account.last_login = when

    def delete_account(self, account_id: str) -> bool:
        """Removes an account together with all its sessions."""
        with self._lock:
            self._sessions.pop(account_id, None)
            return self._accounts.pop(account_id, None) is not None

    # Session records

    def upsert_session(self, account_id: str, record: SessionRecord) -> None:
        with self._lock:
            if account_id not in self._accounts:
                return
            sessions = [s for s in self._sessions[account_id] if s.session_id != record.session_id]
            sessions.append(record)
            self._sessions[account_id] = sessions

    def delete_session(self, account_id: str, session_id: str) -> int:
        with self._lock:
            sessions = self._sessions.get(account_id, [])
            kept = [s for s in sessions if s.session_id != session_id]
            if account_id in self._sessions:
                self._sessions[account_id] = kept
            return len(sessions) - len(kept)

    def delete_expired_sessions(self, account_id: str, now: datetime) -> int:
        with self._lock:
            sessions = self._sessions.get(account_id, [])
            kept = [s for s in sessions if s.is_active(now)]
            if account_id in self._sessions:
                self._sessions[account_id] = kept
            return len(sessions) - len(kept)

    def delete_all_expired_sessions(self, now: datetime) -> int:
        with self._lock:
            return sum(self.delete_expired_sessions(account_id, now) for account_id in list(self._sessions))

    def get_active_session(self, account_id: str, session_id: str, now: datetime) -> Optional[SessionRecord]:
        with self._lock:
            return self._find_active(account_id, session_id, now)

    def list_sessions(self, account_id: str) -> List[SessionRecord]:
        with self._lock:
            return list(self._sessions.get(account_id, []))

    def extend_session(
        self,
        account_id: str,
        session_id: str,
        now: datetime,
        expiry_by_policy: Mapping[SessionPolicy, datetime],
    ) -> Optional[SessionRecord]:
        with self._lock:
            record = self._find_active(account_id, session_id, now)
            if record is None:
                return None
            return self._replace(account_id, record, expires_at=expiry_by_policy[record.policy])

    def reclassify_session(
        self,
        account_id: str,
        session_id: str,
        now: datetime,
        policy: SessionPolicy,
        expires_at: datetime,
    ) -> Optional[SessionRecord]:
        with self._lock:
            record = self._find_active(account_id, session_id, now)
            if record is None:
                return None
            return self._replace(account_id, record, policy=policy, expires_at=expires_at)

    def _find_active(self, account_id: str, session_id: str, now: datetime) -> Optional[SessionRecord]:
        for record in self._sessions.get(account_id, []):
            if record.session_id == session_id and record.is_active(now):
                return record
        return None

    def _replace(self, account_id: str, record: SessionRecord, **changes) -> SessionRecord:
        updated = replace(record, **changes)
        self._sessions[account_id] = [
            updated if s.session_id == record.session_id else s
            for s in self._sessions[account_id]
        ]
        return updated
