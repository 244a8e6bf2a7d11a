"""
Authentication dependencies shared by the routers.

Bearer tokens come from ``POST /api/auth/token``; ``get_current_user``
resolves them to the stored user and ``require_admin`` additionally checks
the admin flag.
"""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from mootcourt.core.exceptions import ForbiddenError, NotAuthenticatedError, UserNotFoundError
from mootcourt.core.models import UserResponse
from mootcourt.core.security import decode_access_token
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository
from mootcourt.services.storage.video_store import VideoStore

# auto_error=False so missing credentials go through the domain error envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


async def get_current_user(token: str | None = Depends(oauth2_scheme)) -> UserResponse:
    """Resolve the bearer token to a user or raise :class:`NotAuthenticatedError`."""
    if not token:
        raise NotAuthenticatedError()
    user_id = decode_access_token(token)
    async with get_session() as session:
        try:
            user = await TrainingRepository(session).get_user(user_id)
        except UserNotFoundError as exc:
            raise NotAuthenticatedError("Could not validate credentials") from exc
        return UserResponse.model_validate(user)


async def require_admin(user: UserResponse = Depends(get_current_user)) -> UserResponse:
    if not user.is_admin:
        raise ForbiddenError()
    return user


def get_video_store() -> VideoStore:
    """Video store rooted at ``settings.videos_dir`` (overridden in tests)."""
    return VideoStore()
