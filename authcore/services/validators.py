"""Credential shape checks.

Pure functions, no I/O. Each validate_* function runs its checks in a fixed
order and raises the first failure.
"""

import re

from authcore.errors import (
    EmptyField,
    InvalidEmail,
    LoginTooShort,
    PasswordTooLong,
    PasswordTooShort,
    PasswordUnchanged,
)

EMAIL_PATTERN = re.compile(r"[a-z0-9._%+\-]+@[a-z0-9.\-]+\.[a-z]{2,}", re.IGNORECASE)

MIN_LOGIN_LENGTH = 3
MIN_PASSWORD_LENGTH = 8
# bcrypt only looks at the first 72 bytes and current releases refuse more
MAX_PASSWORD_BYTES = 72


def is_valid_email(value: str) -> bool:
    """Return True if value looks like an ASCII email address."""
    return EMAIL_PATTERN.fullmatch(value) is not None


def classify_identifier(identifier: str) -> str:
    """Return the directory column a login identifier should be matched against."""
    if is_valid_email(identifier):
        return "email"
    return "username"


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordTooShort(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordTooLong(f"password must be at most {MAX_PASSWORD_BYTES} bytes")


def validate_registration(login: str, email: str, password: str) -> None:
    """Validate registration input.

    Raises:
        EmptyField, InvalidEmail, LoginTooShort, PasswordTooShort,
        PasswordTooLong: in that order of precedence
    """
    if not login or not email or not password:
        raise EmptyField()

    if not is_valid_email(email):
        raise InvalidEmail()

    if len(login) < MIN_LOGIN_LENGTH:
        raise LoginTooShort(f"login must be at least {MIN_LOGIN_LENGTH} characters")

    _check_password(password)


def validate_login(identifier: str, password: str) -> None:
    """Validate login input.

    The identifier is not checked as an email since it may be a username.
    """
    if not identifier or not password:
        raise EmptyField()

    if len(identifier) < MIN_LOGIN_LENGTH:
        raise LoginTooShort(f"login must be at least {MIN_LOGIN_LENGTH} characters")

    _check_password(password)


def validate_password_change(old_password: str, new_password: str) -> None:
    """Validate a password change request before touching the directory."""
    if not old_password or not new_password:
        raise EmptyField()

    if len(old_password) < MIN_PASSWORD_LENGTH or len(new_password) < MIN_PASSWORD_LENGTH:
        raise PasswordTooShort(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters"
        )

    if len(new_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise PasswordTooLong(f"password must be at most {MAX_PASSWORD_BYTES} bytes")

    if old_password == new_password:
        raise PasswordUnchanged()
