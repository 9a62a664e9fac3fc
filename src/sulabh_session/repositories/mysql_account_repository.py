#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: MySQL account store with owned session records.
#
"""
MySQL account store with owned session records.

Session records live in tbl_accountSession and cascade with their account.
Every mutation is a single conditional statement so sibling sessions of
the same account are never lost and removed records are never revived.
"""

from datetime import datetime, timezone
from typing import List, Mapping, Optional

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from sulabh_session.domain.account import Account, AccountRole, NewAccount, SessionPolicy, SessionRecord
from sulabh_session.infrastructure.connection_pool import ConnectionPool
from sulabh_session.repositories.account_repository import DuplicateAccountError
from sulabh_session.repositories.error_handling import handle_repository_errors


SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS tbl_account (
        id INT NOT NULL AUTO_INCREMENT,
        email VARCHAR(255) NOT NULL,
        username VARCHAR(64) COLLATE utf8mb4_bin NOT NULL,
        password_hash VARCHAR(100) NOT NULL,
        first_name VARCHAR(100) NOT NULL,
        last_name VARCHAR(100) NOT NULL,
        phone VARCHAR(32) NULL,
        role ENUM('citizen', 'admin', 'department') NOT NULL DEFAULT 'citizen',
        is_verified TINYINT(1) NOT NULL DEFAULT 0,
        last_login DATETIME(6) NULL,
        created_at DATETIME(6) NOT NULL,
        PRIMARY KEY (id),
        UNIQUE KEY uq_account_email (email),
        UNIQUE KEY uq_account_username (username)
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
    """
    CREATE TABLE IF NOT EXISTS tbl_accountSession (
        id INT NOT NULL AUTO_INCREMENT,
        account_id INT NOT NULL,
        session_id VARCHAR(128) NOT NULL,
        policy ENUM('short', 'long') NOT NULL DEFAULT 'short',
        created_at DATETIME(6) NOT NULL,
        expires_at DATETIME(6) NOT NULL,
        PRIMARY KEY (id),
        UNIQUE KEY uq_accountSession (account_id, session_id),
        KEY idx_accountSession_expires (expires_at),
        CONSTRAINT fk_accountSession_account FOREIGN KEY (account_id)
            REFERENCES tbl_account (id) ON DELETE CASCADE
    ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
)

_ACCOUNT_COLUMNS = """
    id, email, username, password_hash, first_name, last_name,
    phone, role, is_verified, last_login, created_at
"""

_SESSION_COLUMNS = "session_id, policy, created_at, expires_at"


def _to_db(value: datetime) -> datetime:
    """MySQL DATETIME has no zone; store naive UTC."""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def _row_to_account(row: dict) -> Account:
    return Account(
        id=str(row["id"]),
        email=row["email"],
        username=row["username"],
        password_hash=row["password_hash"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        phone=row["phone"],
        role=AccountRole(row["role"]),
        is_verified=bool(row["is_verified"]),
        last_login=_from_db(row["last_login"]),
        created_at=_from_db(row["created_at"]),
    )


def _row_to_session(row: dict) -> SessionRecord:
    return SessionRecord(
        session_id=row["session_id"],
        created_at=_from_db(row["created_at"]),
        expires_at=_from_db(row["expires_at"]),
        policy=SessionPolicy(row["policy"]),
    )


def _account_key(account_id: str) -> Optional[int]:
    # Ids from other backends (hex strings) never match a MySQL row
    try:
        return int(account_id)
    except (TypeError, ValueError):
        return None


class MySQLAccountRepository:
    """Account repository backed by MySQL/MariaDB."""

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    @handle_repository_errors("create schema")
    def ensure_schema(self) -> None:
        with self.pool.unit_of_work() as uow:
            for statement in SCHEMA_STATEMENTS:
                uow.cursor.execute(statement)

    @handle_repository_errors("create account")
    def create_account(self, new_account: NewAccount, now: datetime) -> Account:
        query = """
            INSERT INTO tbl_account
                (email, username, password_hash, first_name, last_name, phone, role, is_verified, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        try:
            with self.pool.unit_of_work() as uow:
                uow.cursor.execute(query, (
                    new_account.email,
                    new_account.username,
                    new_account.password_hash,
                    new_account.first_name,
                    new_account.last_name,
                    new_account.phone,
                    new_account.role.value,
                    int(new_account.is_verified),
                    _to_db(now),
                ))
                account_id = uow.cursor.lastrowid
        except IntegrityError as exc:
            if exc.errno == errorcode.ER_DUP_ENTRY:
                field = "email" if "uq_account_email" in str(exc) else "username"
                raise DuplicateAccountError(field) from exc
            raise

        return Account(
            id=str(account_id),
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

    @handle_repository_errors("find duplicate account")
    def find_duplicate(self, email: str, username: str) -> Optional[str]:
        query = """
            SELECT email, username
            FROM tbl_account
            WHERE email = %s OR username = %s
            LIMIT 1
        """
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(query, (email.lower(), username))
            row = uow.cursor.fetchone()
        if not row:
            return None
        return "email" if row["email"] == email.lower() else "username"

    @handle_repository_errors("get account")
    def get_by_id(self, account_id: str) -> Optional[Account]:
        key = _account_key(account_id)
        if key is None:
            return None
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(f"SELECT {_ACCOUNT_COLUMNS} FROM tbl_account WHERE id = %s", (key,))
            row = uow.cursor.fetchone()
        return _row_to_account(row) if row else None

    @handle_repository_errors("find account by identifier")
    def find_by_identifier(self, identifier: str) -> Optional[Account]:
        query = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM tbl_account
            WHERE email = %s OR username = %s
            ORDER BY email = %s DESC
            LIMIT 1
        """
        email = identifier.strip().lower()
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(query, (email, identifier, email))
            row = uow.cursor.fetchone()
        return _row_to_account(row) if row else None

    @handle_repository_errors("update last login")
    def update_last_login(self, account_id: str, when: datetime) -> None:
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(
                "UPDATE tbl_account SET last_login = %s WHERE id = %s",
                (_to_db(when), _account_key(account_id)),
            )

    # Session records

    @handle_repository_errors("add session")
    def upsert_session(self, account_id: str, record: SessionRecord) -> None:
        query = """
            INSERT INTO tbl_accountSession (account_id, session_id, policy, created_at, expires_at)
            SELECT id, %s, %s, %s, %s FROM tbl_account WHERE id = %s
            ON DUPLICATE KEY UPDATE
                policy = VALUES(policy),
                created_at = VALUES(created_at),
                expires_at = VALUES(expires_at)
        """
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(query, (
                record.session_id,
                record.policy.value,
                _to_db(record.created_at),
                _to_db(record.expires_at),
                _account_key(account_id),
            ))

    @handle_repository_errors("remove session")
    def delete_session(self, account_id: str, session_id: str) -> int:
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(
                "DELETE FROM tbl_accountSession WHERE account_id = %s AND session_id = %s",
                (_account_key(account_id), session_id),
            )
            return uow.cursor.rowcount

    @handle_repository_errors("clean expired sessions")
    def delete_expired_sessions(self, account_id: str, now: datetime) -> int:
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(
                "DELETE FROM tbl_accountSession WHERE account_id = %s AND expires_at <= %s",
                (_account_key(account_id), _to_db(now)),
            )
            return uow.cursor.rowcount

    @handle_repository_errors("sweep expired sessions")
    def delete_all_expired_sessions(self, now: datetime) -> int:
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute("DELETE FROM tbl_accountSession WHERE expires_at <= %s", (_to_db(now),))
            return uow.cursor.rowcount

    @handle_repository_errors("get session")
    def get_active_session(self, account_id: str, session_id: str, now: datetime) -> Optional[SessionRecord]:
        with self.pool.unit_of_work() as uow:
            return self._select_active(uow.cursor, account_id, session_id, now)

    @handle_repository_errors("list sessions")
    def list_sessions(self, account_id: str) -> List[SessionRecord]:
        query = f"""
            SELECT {_SESSION_COLUMNS}
            FROM tbl_accountSession
            WHERE account_id = %s
            ORDER BY id
        """
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(query, (_account_key(account_id),))
            rows = uow.cursor.fetchall()
        return [_row_to_session(row) for row in rows]

    @handle_repository_errors("touch session")
    def extend_session(
        self,
        account_id: str,
        session_id: str,
        now: datetime,
        expiry_by_policy: Mapping[SessionPolicy, datetime],
    ) -> Optional[SessionRecord]:
        query = """
            UPDATE tbl_accountSession
            SET expires_at = CASE policy WHEN 'long' THEN %s ELSE %s END
            WHERE account_id = %s AND session_id = %s AND expires_at > %s
        """
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(query, (
                _to_db(expiry_by_policy[SessionPolicy.LONG_LIVED]),
                _to_db(expiry_by_policy[SessionPolicy.SHORT_LIVED]),
                _account_key(account_id),
                session_id,
                _to_db(now),
            ))
            if uow.cursor.rowcount == 0:
                return None
            return self._select_active(uow.cursor, account_id, session_id, now)

    @handle_repository_errors("reclassify session")
    def reclassify_session(
        self,
        account_id: str,
        session_id: str,
        now: datetime,
        policy: SessionPolicy,
        expires_at: datetime,
    ) -> Optional[SessionRecord]:
        query = """
            UPDATE tbl_accountSession
            SET policy = %s, expires_at = %s
            WHERE account_id = %s AND session_id = %s AND expires_at > %s
        """
        with self.pool.unit_of_work() as uow:
            uow.cursor.execute(query, (
                policy.value,
                _to_db(expires_at),
                _account_key(account_id),
                session_id,
                _to_db(now),
            ))
            if uow.cursor.rowcount == 0:
                return None
            return self._select_active(uow.cursor, account_id, session_id, now)

    def _select_active(self, cursor, account_id: str, session_id: str, now: datetime) -> Optional[SessionRecord]:
        query = f"""
            SELECT {_SESSION_COLUMNS}
            FROM tbl_accountSession
            WHERE account_id = %s AND session_id = %s AND expires_at > %s
        """
        cursor.execute(query, (_account_key(account_id), session_id, _to_db(now)))
        row = cursor.fetchone()
        return _row_to_session(row) if row else None
