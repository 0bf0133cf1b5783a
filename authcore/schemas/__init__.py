"""Pydantic request/response schemas."""

from authcore.schemas.auth import (
    AccountProfile,
    AuthResponse,
    ErrorResponse,
    Identity,
    LoginRequest,
    ProfileResponse,
    PublicAccount,
    RegisterRequest,
)
from authcore.schemas.health import HealthResponse

__all__ = [
    "AccountProfile",
    "AuthResponse",
    "ErrorResponse",
    "HealthResponse",
    "Identity",
    "LoginRequest",
    "ProfileResponse",
    "PublicAccount",
    "RegisterRequest",
]
