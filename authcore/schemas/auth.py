"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    """Registration payload. Fields are optional so the validator reports absence."""

    email: str | None = Field(default=None, description="Email address (unique)")
    password: str | None = Field(default=None, description="Password")
    name: str | None = Field(default=None, description="Display name")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str | None = Field(default=None, description="Email address")
    password: str | None = Field(default=None, description="Password")


class PublicAccount(BaseModel):
    """Account as returned to clients (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str


class AccountProfile(PublicAccount):
    """Profile view; adds the creation timestamp."""

    createdAt: datetime | None = None

    @classmethod
    def from_account(cls, account: Any) -> "AccountProfile":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            role=account.role,
            createdAt=account.created_at,
        )


class AuthResponse(BaseModel):
    """Token and account returned after registration or login."""

    success: bool = True
    message: str
    token: str = Field(..., description="Signed JWT; send it in the auth header")
    user: PublicAccount


class ProfileResponse(BaseModel):
    success: bool = True
    user: AccountProfile


class Identity(BaseModel):
    """Identity resolved from a verified token by the authorization gate."""

    subject_id: str
    role: str


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: bool = True
    message: str
    details: dict[str, str] | None = None
    field: str | None = None
