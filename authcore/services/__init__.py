"""Services package exports."""

from authcore.services.auth_service import AuthService, create_auth_service
from authcore.services.logging_service import configure_logging, get_logger
from authcore.services.password_hasher import PasswordHasher
from authcore.services.refresh_token_store import RefreshTokenStore
from authcore.services.token_service import TokenSigner
from authcore.services.user_directory import PostgresUserDirectory, UserDirectory

__all__ = [
    "AuthService",
    "PasswordHasher",
    "PostgresUserDirectory",
    "RefreshTokenStore",
    "TokenSigner",
    "UserDirectory",
    "configure_logging",
    "create_auth_service",
    "get_logger",
]
