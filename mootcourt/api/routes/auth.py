"""
Authentication and password-recovery endpoints.

Registration, OAuth2 password login, the current-user lookup, and the
reset-token flow (request, redeem, admin override).
"""

import logging
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from mootcourt.api.deps import get_current_user, require_admin
from mootcourt.core.config import get_settings
from mootcourt.core.exceptions import (
    InvalidResetTokenError,
    NotAuthenticatedError,
    ValidationFailedError,
)
from mootcourt.core.models import (
    AdminResetPasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    MessageResponse,
    ResetPasswordRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
)
from mootcourt.core.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    verify_password,
)
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If your email is registered, you will receive reset instructions."


@router.post("/auth/register", response_model=UserResponse, status_code=201)
async def register(body: UserCreate) -> UserResponse:
    """Create a regular (non-admin) account."""
    async with get_session() as session:
        repo = TrainingRepository(session)
        user = await repo.create_user(
            username=body.username,
            password_hash=hash_password(body.password),
            email=body.email,
        )
        logger.info("Registered user %s", user.id)
        return UserResponse.model_validate(user)


@router.post("/auth/token", response_model=TokenResponse)
async def login(form_data: OAuth2PasswordRequestForm = Depends()) -> TokenResponse:
    """Exchange username + password for a bearer token."""
    async with get_session() as session:
        user = await TrainingRepository(session).get_user_by_username(form_data.username)
    if user is None or not verify_password(form_data.password, user.password_hash):
        raise NotAuthenticatedError("Incorrect username or password")
    return TokenResponse(access_token=create_access_token(user.id))


@router.get("/auth/me", response_model=UserResponse)
async def me(user: UserResponse = Depends(get_current_user)) -> UserResponse:
    return user


@router.post("/forgot-password", response_model=ForgotPasswordResponse)
async def forgot_password(body: ForgotPasswordRequest) -> ForgotPasswordResponse:
    """Issue a reset token; the response never reveals whether the email exists."""
    settings = get_settings()
    async with get_session() as session:
        repo = TrainingRepository(session)
        user = await repo.get_user_by_email(body.email)
        if user is None:
            return ForgotPasswordResponse(message=FORGOT_PASSWORD_MESSAGE)

        expires_at = datetime.now(UTC) + timedelta(hours=settings.reset_token_ttl_hours)
        reset_token = await repo.replace_reset_token(user.id, generate_reset_token(), expires_at)
        logger.info("Issued password reset token for user %s", user.id)

    # No mail delivery: the token is only echoed in development
    token = reset_token.token if settings.expose_reset_tokens else None
    return ForgotPasswordResponse(message=FORGOT_PASSWORD_MESSAGE, token=token)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(body: ResetPasswordRequest) -> MessageResponse:
    async with get_session() as session:
        repo = TrainingRepository(session)
        reset_token = await repo.get_valid_reset_token(body.token)
        if reset_token is None:
            raise InvalidResetTokenError()
        await repo.update_password(reset_token.user_id, hash_password(body.new_password))
        await repo.delete_reset_token(reset_token.id)
    return MessageResponse(message="Password updated successfully")


@router.post("/admin/users/{user_id}/reset-password", response_model=MessageResponse)
async def admin_reset_password(
    user_id: int,
    body: AdminResetPasswordRequest,
    _admin: UserResponse = Depends(require_admin),
) -> MessageResponse:
    """Set a user's password directly and revoke their outstanding reset tokens."""
    new_password = body.new_password
    if not isinstance(new_password, str) or not new_password.strip():
        raise ValidationFailedError("New password is required and must be a non-empty string")

    async with get_session() as session:
        repo = TrainingRepository(session)
        await repo.update_password(user_id, hash_password(new_password.strip()))
        await repo.delete_reset_tokens_for_user(user_id)
    logger.info("Password reset by admin for user %s", user_id)
    return MessageResponse(message="Password reset successfully")
