"""Typed error hierarchy for the authentication core.

Every error raised by the core is an AuthError. Each carries a category
(validation, conflict, credential, infrastructure, cancellation) and, once
it has passed through an AuthService operation, the name of that operation.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for every error raised by the authentication core."""

    category = "internal"
    default_message = "authentication error"

    def __init__(self, message: Optional[str] = None, *, op: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.op = op
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.op:
            return f"{self.op}: {self.message}"
        return self.message


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

class CredentialValidationError(AuthError):
    """Input failed a shape check before any I/O was attempted."""

    category = "validation"


class EmptyField(CredentialValidationError):
    default_message = "all fields must be filled"


class InvalidEmail(CredentialValidationError):
    default_message = "email is invalid"


class LoginTooShort(CredentialValidationError):
    default_message = "login must be at least 3 characters"


class PasswordTooShort(CredentialValidationError):
    default_message = "password must be at least 8 characters"


class PasswordTooLong(CredentialValidationError):
    default_message = "password must be at most 72 bytes"


class PasswordUnchanged(CredentialValidationError):
    default_message = "new password must differ from the old one"


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------

class ConflictError(AuthError):
    category = "conflict"


class UsernameTaken(ConflictError):
    default_message = "this username already taken"


class EmailTaken(ConflictError):
    default_message = "this email already taken"


class UserAlreadyExists(ConflictError):
    default_message = "user already exists"


# ---------------------------------------------------------------------------
# Not-found / credential
# ---------------------------------------------------------------------------

class CredentialError(AuthError):
    """Deliberately coarse: messages never say which attribute failed."""

    category = "credential"


class UserNotFound(CredentialError):
    default_message = "user not found"


class InvalidCredentials(CredentialError):
    default_message = "invalid credentials"


class WrongEmail(CredentialError):
    default_message = "wrong email"


class WrongPassword(CredentialError):
    default_message = "wrong password"


class InvalidToken(CredentialError):
    default_message = "invalid token"


class MissingSubject(CredentialError):
    default_message = "invalid user_id in token"


class InvalidOrExpiredToken(CredentialError):
    default_message = "invalid or expired refresh token"


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

class InfrastructureError(AuthError):
    category = "infrastructure"


class DirectoryUnavailable(InfrastructureError):
    default_message = "user directory unavailable"


class StoreUnavailable(InfrastructureError):
    default_message = "refresh token store unavailable"


class HashingFailed(InfrastructureError):
    default_message = "failed to hash password"


class MalformedHash(InfrastructureError):
    default_message = "stored password hash is malformed"


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

class OperationCancelled(AuthError):
    """The operation's deadline passed before it could finish."""

    category = "cancellation"
    default_message = "context canceled"
