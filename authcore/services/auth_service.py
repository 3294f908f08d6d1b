"""Authentication orchestration: registration, login, and credential changes.

AuthService composes the validator, the user directory, the password hasher,
the token signer, and the refresh-token store. It keeps no per-request state,
so a single instance serves every concurrent request.

Each public operation:
  - runs under a deadline (operation_timeout_seconds). If the deadline passes,
    the operation raises OperationCancelled instead of starting more I/O;
  - tags every AuthError it raises with the operation name ("auth.login", ...);
  - never retries. Infrastructure failures propagate to the caller.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional, TypeVar
from uuid import UUID

import asyncpg
import redis.asyncio as redis
import structlog

from authcore.config import Settings
from authcore.errors import (
    AuthError,
    EmailTaken,
    InvalidCredentials,
    InvalidEmail,
    InvalidOrExpiredToken,
    OperationCancelled,
    UsernameTaken,
    UserNotFound,
    WrongPassword,
)
from authcore.models.auth import LoginResult
from authcore.models.user import User
from authcore.services.password_hasher import PasswordHasher
from authcore.services.refresh_token_store import RefreshTokenStore
from authcore.services.token_service import TokenSigner
from authcore.services.user_directory import PostgresUserDirectory, UserDirectory
from authcore.services.validators import (
    classify_identifier,
    is_valid_email,
    validate_login,
    validate_password_change,
    validate_registration,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_OPERATION_TIMEOUT_SECONDS = 5.0


class _OperationScope:
    """Deadline and bound logger for one running operation."""

    def __init__(self, op: str, deadline: asyncio.Timeout, log):
        self.op = op
        self.log = log
        self._deadline = deadline

    def checkpoint(self) -> None:
        """Raise OperationCancelled if the deadline has already passed."""
        when = self._deadline.when()
        if when is not None and asyncio.get_running_loop().time() >= when:
            self.log.warning("operation_cancelled_before_io")
            raise OperationCancelled(op=self.op)


class AuthService:
    """Service for registration, login, session refresh and credential changes."""

    def __init__(
        self,
        directory: UserDirectory,
        hasher: PasswordHasher,
        signer: TokenSigner,
        refresh_store: RefreshTokenStore,
        operation_timeout_seconds: Optional[float] = DEFAULT_OPERATION_TIMEOUT_SECONDS,
    ):
        self._directory = directory
        self._hasher = hasher
        self._signer = signer
        self._refresh_store = refresh_store
        self._timeout = operation_timeout_seconds

    @property
    def token_signer(self) -> TokenSigner:
        return self._signer

    @property
    def user_directory(self) -> UserDirectory:
        return self._directory

    @asynccontextmanager
    async def _operation(self, op: str, **context) -> AsyncIterator[_OperationScope]:
        log = logger.bind(op=op, **context)
        try:
            async with asyncio.timeout(self._timeout) as deadline:
                yield _OperationScope(op, deadline, log)
        except TimeoutError as e:
            log.warning("operation_deadline_exceeded", timeout_seconds=self._timeout)
            raise OperationCancelled("context deadline exceeded", op=op) from e
        except AuthError as e:
            if e.op is None:
                e.op = op
            if e.category == "infrastructure":
                log.error("operation_failed", error=e.message, error_type=type(e).__name__)
            raise

    async def _run_blocking(self, func: Callable[..., T], *args) -> T:
        """Run a CPU-bound call (bcrypt) off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def register(self, username: str, email: str, password: str) -> User:
        """Create a new account.

        Raises:
            CredentialValidationError: Input fails a shape check
            UsernameTaken, EmailTaken: The username or email is already in use
            UserAlreadyExists: A concurrent registration won the insert race
        """
        async with self._operation("auth.register", username=username) as scope:
            validate_registration(username, email, password)

            scope.checkpoint()
            if not await self._directory.username_available(username):
                raise UsernameTaken()

            scope.checkpoint()
            if not await self._directory.email_available(email):
                raise EmailTaken()

            scope.log.info("registering_new_user")
            scope.checkpoint()
            password_hash = await self._run_blocking(self._hasher.hash, password)

            scope.checkpoint()
            user = await self._directory.save_user(username, email, password_hash)

            scope.log.info("user_registered", user_id=str(user.id))
            return user

    async def login(self, identifier: str, password: str) -> LoginResult:
        """Authenticate by username or email and open a session.

        Unknown identifiers and wrong passwords both raise InvalidCredentials;
        the distinction is only logged.
        """
        async with self._operation("auth.login", identifier=identifier) as scope:
            validate_login(identifier, password)
            field = classify_identifier(identifier)

            scope.checkpoint()
            try:
                user = await self._directory.find_user_by_identifier(field, identifier)
            except UserNotFound:
                await self._run_blocking(self._hasher.dummy_verify, password)
                scope.log.warning("login_failed", reason="user_not_found", field=field)
                raise InvalidCredentials() from None

            scope.checkpoint()
            if not await self._run_blocking(self._hasher.verify, user.password_hash, password):
                scope.log.info("login_failed", reason="wrong_password", user_id=str(user.id))
                raise InvalidCredentials()

            result = await self._open_session(user.id, scope)
            scope.log.info("user_logged_in", user_id=str(user.id))
            return result

    async def refresh(self, refresh_token: str, refresh_handle: str) -> LoginResult:
        """Exchange a refresh token and its handle for a new session.

        The old handle is claimed by deleting it before the new one is issued;
        only the caller whose delete removed the record gets a session.
        """
        async with self._operation("auth.refresh") as scope:
            claims = self._signer.parse_refresh(refresh_token)

            scope.checkpoint()
            record = await self._refresh_store.verify(refresh_handle)
            if str(record.user_id) != claims.sub or record.jti != claims.jti:
                scope.log.warning("refresh_token_mismatch", user_id=str(record.user_id))
                raise InvalidOrExpiredToken()

            scope.checkpoint()
            if not await self._refresh_store.revoke(refresh_handle):
                scope.log.warning("refresh_handle_already_claimed", user_id=str(record.user_id))
                raise InvalidOrExpiredToken()

            result = await self._open_session(record.user_id, scope)
            scope.log.info("session_refreshed", user_id=str(record.user_id))
            return result

    async def logout(self, refresh_handle: str) -> str:
        """Revoke a refresh handle. Revoking an unknown handle succeeds."""
        async with self._operation("auth.logout") as scope:
            scope.checkpoint()
            await self._refresh_store.revoke(refresh_handle)
            return "logged out successfully"

    async def update_user_email(self, user_id: UUID, old_email: str, new_email: str) -> str:
        """Change a user's email after confirming the current one.

        Raises:
            InvalidEmail: Either address is malformed
            UserNotFound, WrongEmail: The current email could not be confirmed
            EmailTaken: Another user already owns new_email
        """
        async with self._operation("auth.update_user_email", user_id=str(user_id)) as scope:
            if not is_valid_email(old_email) or not is_valid_email(new_email):
                raise InvalidEmail()

            scope.log.info("confirming_user_email")
            scope.checkpoint()
            await self._directory.confirm_email(user_id, old_email)

            # a case-only change keeps ownership of the same address
            if old_email.lower() != new_email.lower():
                scope.checkpoint()
                if not await self._directory.email_available(new_email):
                    raise EmailTaken()

            scope.checkpoint()
            await self._directory.update_email(user_id, new_email)

            scope.log.info("user_email_updated")
            return "email updated successfully"

    async def update_user_password(
        self, user_id: UUID, old_password: str, new_password: str
    ) -> str:
        """Change a user's password after verifying the old one locally.

        Raises:
            CredentialValidationError: Too short, too long, or unchanged
            UserNotFound: The user does not exist
            WrongPassword: old_password does not match the stored hash
        """
        async with self._operation("auth.update_user_password", user_id=str(user_id)) as scope:
            validate_password_change(old_password, new_password)

            scope.log.info("fetching_password_hash")
            scope.checkpoint()
            stored_hash = await self._directory.get_password_hash(user_id)

            scope.checkpoint()
            if not await self._run_blocking(self._hasher.verify, stored_hash, old_password):
                scope.log.info("password_change_rejected", reason="wrong_password")
                raise WrongPassword()

            scope.log.info("hashing_new_password")
            scope.checkpoint()
            new_hash = await self._run_blocking(self._hasher.hash, new_password)

            scope.checkpoint()
            await self._directory.update_password(user_id, new_hash)

            scope.log.info("user_password_updated")
            return "password updated successfully"

    async def _open_session(self, user_id: UUID, scope: _OperationScope) -> LoginResult:
        pair = self._signer.issue_pair(user_id)

        scope.checkpoint()
        handle = await self._refresh_store.store(user_id, pair.refresh_jti)

        return LoginResult(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            refresh_handle=handle,
            expires_in=self._signer.access_ttl_seconds,
        )


def create_auth_service(
    settings: Settings, pool: asyncpg.Pool, redis_client: redis.Redis
) -> AuthService:
    """Wire an AuthService from settings and live backend clients."""
    return AuthService(
        directory=PostgresUserDirectory(pool),
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        signer=TokenSigner(
            settings.jwt_secret,
            access_ttl_seconds=settings.access_token_ttl_seconds,
            refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
        ),
        refresh_store=RefreshTokenStore(
            redis_client, ttl_seconds=settings.refresh_token_ttl_seconds
        ),
        operation_timeout_seconds=settings.operation_timeout_seconds,
    )
