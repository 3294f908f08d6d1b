"""Models package exports."""

from authcore.models.auth import (
    AccessClaims,
    LoginRequest,
    LoginResult,
    LogoutRequest,
    RefreshClaims,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    UpdateEmailRequest,
    UpdatePasswordRequest,
)
from authcore.models.user import RefreshTokenRecord, User

__all__ = [
    "AccessClaims",
    "LoginRequest",
    "LoginResult",
    "LogoutRequest",
    "RefreshClaims",
    "RefreshRequest",
    "RefreshTokenRecord",
    "RegisterRequest",
    "TokenPair",
    "UpdateEmailRequest",
    "UpdatePasswordRequest",
    "User",
]
