"""
Pydantic models for API request/response validation
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Optional


class RegisterRequest(BaseModel):
    """Registration request; presence of required fields is checked by the lifecycle"""
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(BaseModel):
    """Login request, identifier is email or username"""
    identifier: Optional[str] = None
    password: Optional[str] = None
    rememberMe: bool = False


class UserResponse(BaseModel):
    """Sanitized identity view (never contains the password hash)"""
    id: str
    email: str
    username: str
    firstName: str
    lastName: str
    phone: Optional[str] = None
    role: str
    isVerified: bool
    lastLogin: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserEnvelope(BaseModel):
    user: UserResponse


class MessageUserResponse(BaseModel):
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class SessionStatusResponse(BaseModel):
    authenticated: bool
    sessionId: Optional[str] = None
    userId: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
