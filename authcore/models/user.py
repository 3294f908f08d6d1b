"""User and refresh-token record models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class User(BaseModel):
    """A registered user, as owned by the user directory."""

    id: UUID
    username: str
    email: str
    password_hash: bytes = Field(repr=False)
    created_at: datetime
    updated_at: datetime


class RefreshTokenRecord(BaseModel):
    """The value stored in Redis under a refresh-token handle."""

    user_id: UUID
    jti: str
    issued_at: int
