"""FastAPI dependencies for authentication."""

from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from authcore.errors import CredentialError
from authcore.models.user import User
from authcore.services.auth_service import AuthService
from authcore.services.token_service import TokenSigner
from authcore.services.user_directory import UserDirectory

bearer_scheme = HTTPBearer()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_token_signer(request: Request) -> TokenSigner:
    return request.app.state.token_signer


def get_user_directory(request: Request) -> UserDirectory:
    return request.app.state.user_directory


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    signer: TokenSigner = Depends(get_token_signer),
    directory: UserDirectory = Depends(get_user_directory),
) -> User:
    """Extract and validate the current user from a JWT Bearer access token.

    Raises:
        HTTPException 401: If the token is invalid, expired, not an access
            token, or names a user that no longer exists
    """
    try:
        claims = signer.parse_access(credentials.credentials)
        return await directory.get_user(UUID(claims.sub))
    except (CredentialError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_same_user(user_id: UUID, current_user: User) -> None:
    """Reject requests that try to modify an account other than the caller's."""
    if current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot modify another user's account",
        )
