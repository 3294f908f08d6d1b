"""User directory contract and its asyncpg implementation."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Protocol
from uuid import UUID

import asyncpg
import structlog

from authcore.errors import (
    DirectoryUnavailable,
    EmailTaken,
    UserAlreadyExists,
    UserNotFound,
    WrongEmail,
)
from authcore.models.user import User

logger = structlog.get_logger(__name__)

IDENTIFIER_FIELDS = ("username", "email")

_USER_COLUMNS = "id, username, email, password_hash, created_at, updated_at"


class UserDirectory(Protocol):
    """What the auth core needs from the relational user store.

    Username and email comparisons are case-insensitive.
    """

    async def save_user(self, username: str, email: str, password_hash: bytes) -> User: ...

    async def find_user_by_identifier(self, field: str, value: str) -> User: ...

    async def username_available(self, username: str) -> bool: ...

    async def email_available(self, email: str) -> bool: ...

    async def confirm_email(self, user_id: UUID, email: str) -> None: ...

    async def get_password_hash(self, user_id: UUID) -> bytes: ...

    async def update_email(self, user_id: UUID, new_email: str) -> None: ...

    async def update_password(self, user_id: UUID, password_hash: bytes) -> None: ...

    async def get_user(self, user_id: UUID) -> User: ...


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        password_hash=bytes(row["password_hash"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresUserDirectory:
    """UserDirectory backed by the users table through an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection, turning driver failures into DirectoryUnavailable."""
        try:
            async with self._pool.acquire() as conn:
                yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("user_directory_query_failed", error=str(e))
            raise DirectoryUnavailable() from e

    async def save_user(self, username: str, email: str, password_hash: bytes) -> User:
        """Insert a new user.

        Raises:
            UserAlreadyExists: If the username or email unique index rejects the row
        """
        now = datetime.now(timezone.utc)

        async with self._connection() as conn:
            try:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO users (username, email, password_hash, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5)
                    RETURNING {_USER_COLUMNS}
                    """,
                    username,
                    email,
                    password_hash,
                    now,
                    now,
                )
            except asyncpg.UniqueViolationError as e:
                logger.warning("user_insert_conflict", username=username)
                raise UserAlreadyExists() from e

        user = _row_to_user(row)
        logger.info("user_created", user_id=str(user.id), username=username)
        return user

    async def find_user_by_identifier(self, field: str, value: str) -> User:
        """Get a user by username or email (case-insensitive).

        Raises:
            ValueError: If field is not a known identifier column
            UserNotFound: If no user matches
        """
        if field not in IDENTIFIER_FIELDS:
            raise ValueError(f"Unknown identifier field: {field}")

        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE LOWER({field}) = LOWER($1)",
                value,
            )

        if row is None:
            raise UserNotFound()
        return _row_to_user(row)

    async def username_available(self, username: str) -> bool:
        async with self._connection() as conn:
            user_id = await conn.fetchval(
                "SELECT id FROM users WHERE LOWER(username) = LOWER($1)",
                username,
            )
        return user_id is None

    async def email_available(self, email: str) -> bool:
        async with self._connection() as conn:
            user_id = await conn.fetchval(
                "SELECT id FROM users WHERE LOWER(email) = LOWER($1)",
                email,
            )
        return user_id is None

    async def confirm_email(self, user_id: UUID, email: str) -> None:
        """Check that email is the user's current address.

        Raises:
            UserNotFound: If the user does not exist
            WrongEmail: If the user exists but has a different email
        """
        async with self._connection() as conn:
            current = await conn.fetchval("SELECT email FROM users WHERE id = $1", user_id)

        if current is None:
            raise UserNotFound()
        if current.lower() != email.lower():
            raise WrongEmail()

    async def get_password_hash(self, user_id: UUID) -> bytes:
        """Fetch the stored password hash by user id alone.

        Raises:
            UserNotFound: If the user does not exist
        """
        async with self._connection() as conn:
            password_hash = await conn.fetchval(
                "SELECT password_hash FROM users WHERE id = $1",
                user_id,
            )

        if password_hash is None:
            raise UserNotFound()
        return bytes(password_hash)

    async def update_email(self, user_id: UUID, new_email: str) -> None:
        """Replace the user's email.

        Raises:
            UserNotFound: If no row was updated
            EmailTaken: If another user claimed the address concurrently
        """
        async with self._connection() as conn:
            try:
                result = await conn.execute(
                    "UPDATE users SET email = $1, updated_at = $2 WHERE id = $3",
                    new_email,
                    datetime.now(timezone.utc),
                    user_id,
                )
            except asyncpg.UniqueViolationError as e:
                raise EmailTaken() from e

        if result == "UPDATE 0":
            raise UserNotFound()
        logger.info("user_updated", user_id=str(user_id), fields_updated=["email"])

    async def update_password(self, user_id: UUID, password_hash: bytes) -> None:
        """Replace the user's password hash.

        Raises:
            UserNotFound: If no row was updated
        """
        async with self._connection() as conn:
            result = await conn.execute(
                "UPDATE users SET password_hash = $1, updated_at = $2 WHERE id = $3",
                password_hash,
                datetime.now(timezone.utc),
                user_id,
            )

        if result == "UPDATE 0":
            raise UserNotFound()
        logger.info("user_updated", user_id=str(user_id), fields_updated=["password_hash"])

    async def get_user(self, user_id: UUID) -> User:
        """Get a user by UUID.

        Raises:
            UserNotFound: If the user does not exist
        """
        async with self._connection() as conn:
            row = await conn.fetchrow(f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1", user_id)

        if row is None:
            raise UserNotFound()
        return _row_to_user(row)
