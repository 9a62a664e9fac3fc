from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class AccountRole(str, Enum):
    CITIZEN = "citizen"
    ADMIN = "admin"
    DEPARTMENT = "department"


class SessionPolicy(str, Enum):
    """Expiry policy of a session record."""
    SHORT_LIVED = "short"
    LONG_LIVED = "long"


@dataclass(frozen=True)
class SessionRecord:
    session_id: str
    created_at: datetime
    expires_at: datetime
    policy: SessionPolicy = SessionPolicy.SHORT_LIVED

    def is_active(self, now: datetime) -> bool:
        return self.expires_at > now


@dataclass
class Account:
    id: str
    email: str
    username: str
    password_hash: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: AccountRole = AccountRole.CITIZEN
    is_verified: bool = False
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def public_view(self) -> dict:
        """Identity as presented to clients and downstream handlers (no password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "phone": self.phone,
            "role": self.role.value,
            "isVerified": self.is_verified,
            "lastLogin": self.last_login.isoformat() if self.last_login else None,
        }


@dataclass(frozen=True)
class NewAccount:
    """Validated registration data, password already hashed."""
    email: str
    username: str
    password_hash: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: AccountRole = AccountRole.CITIZEN
    is_verified: bool = True
