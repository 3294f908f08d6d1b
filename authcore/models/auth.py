"""Token claim records and auth request/response models.

Request models only describe the shape of the payload. Length and format
rules live in authcore.services.validators so that every caller, HTTP or
not, hits the same checks in the same order.
"""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Token claims
# ---------------------------------------------------------------------------

class _BaseClaims(BaseModel):
    sub: str
    iat: int
    exp: int
    jti: str


class AccessClaims(_BaseClaims):
    """Claim set carried by a short-lived access token."""

    typ: Literal["access"] = "access"


class RefreshClaims(_BaseClaims):
    """Claim set carried by a long-lived refresh token."""

    typ: Literal["refresh"] = "refresh"


class TokenPair(BaseModel):
    """A freshly issued access/refresh token pair."""

    access_token: str
    refresh_token: str
    refresh_jti: str


class LoginResult(BaseModel):
    """Successful authentication result.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Long-lived signed JWT for obtaining new access tokens
        refresh_handle: Opaque key of the refresh record held in Redis
        token_type: Always "bearer"
        expires_in: Access token lifetime in seconds
    """

    access_token: str
    refresh_token: str
    refresh_handle: str
    token_type: str = "bearer"
    expires_in: int = Field(ge=1, description="Access token lifetime in seconds")


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    """Login credentials; identifier may be a username or an email."""

    identifier: str
    password: str


class UpdateEmailRequest(BaseModel):
    user_id: UUID
    old_email: str
    new_email: str


class UpdatePasswordRequest(BaseModel):
    user_id: UUID
    old_password: str
    new_password: str


class RefreshRequest(BaseModel):
    """Request to exchange a refresh token for a new token pair."""

    refresh_token: str
    refresh_handle: str


class LogoutRequest(BaseModel):
    refresh_handle: str


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

class MessageResponse(BaseModel):
    message: str


class UserSummary(BaseModel):
    """Compact user representation for API responses."""

    id: UUID
    username: str
    email: str
