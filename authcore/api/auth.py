"""Authentication API endpoints.

Handlers only move parsed payloads into AuthService and results back out.
AuthError subclasses are turned into {"error": ...} responses by the
exception handlers registered in authcore.main.
"""

from fastapi import APIRouter, Depends, status

from authcore.api.dependencies import get_auth_service, get_current_user, require_same_user
from authcore.models.auth import (
    LoginRequest,
    LoginResult,
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    UpdateEmailRequest,
    UpdatePasswordRequest,
    UserSummary,
)
from authcore.models.user import User
from authcore.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Create a new account."""
    await auth_service.register(request.username, request.email, request.password)
    return MessageResponse(message="user created")


@router.post("/login")
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResult:
    """Login with a username or email and a password.

    Returns:
        LoginResult with access token, refresh token, and refresh handle
    """
    return await auth_service.login(request.identifier, request.password)


@router.post("/refresh")
async def refresh(
    request: RefreshRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResult:
    """Rotate a refresh handle and issue a fresh token pair."""
    return await auth_service.refresh(request.refresh_token, request.refresh_handle)


@router.post("/logout")
async def logout(
    request: LogoutRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    message = await auth_service.logout(request.refresh_handle)
    return MessageResponse(message=message)


@router.patch("/email")
async def update_email(
    request: UpdateEmailRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the caller's email after confirming the current one."""
    require_same_user(request.user_id, current_user)
    message = await auth_service.update_user_email(
        request.user_id, request.old_email, request.new_email
    )
    return MessageResponse(message=message)


@router.patch("/password")
async def update_password(
    request: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change the caller's password after verifying the old one."""
    require_same_user(request.user_id, current_user)
    message = await auth_service.update_user_password(
        request.user_id, request.old_password, request.new_password
    )
    return MessageResponse(message=message)


@router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)) -> UserSummary:
    """Get current authenticated user info."""
    return UserSummary(
        id=current_user.id,
        username=current_user.username,
        email=current_user.email,
    )
