"""
Progress endpoints.

A progress record joins one user to one exercise and holds the submitted
video URL; it is created lazily the first time the user opens the exercise.
"""

import logging

from fastapi import APIRouter, Depends

from mootcourt.api.deps import get_current_user, require_admin
from mootcourt.core.models import (
    AdminProgressResponse,
    FeedbackResponse,
    ProgressResponse,
    ProgressUpdate,
    UserResponse,
)
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["progress"])


def _to_response(progress) -> ProgressResponse:
    return ProgressResponse(
        id=progress.id,
        user_id=progress.user_id,
        exercise_id=progress.exercise_id,
        video_url=progress.video_url,
        completed=progress.completed,
        updated_at=progress.updated_at,
        feedback=[FeedbackResponse.model_validate(f) for f in progress.feedback],
    )


def _to_admin_response(progress) -> AdminProgressResponse:
    base = _to_response(progress)
    return AdminProgressResponse(
        **base.model_dump(),
        username=progress.user.username,
        email=progress.user.email,
        exercise_title=progress.exercise.title,
    )


@router.get("/progress", response_model=list[ProgressResponse])
async def list_progress(user: UserResponse = Depends(get_current_user)):
    """Return the caller's progress records with their feedback."""
    async with get_session() as session:
        records = await TrainingRepository(session).list_progress_for_user(user.id)
        return [_to_response(p) for p in records]


@router.get("/progress/{exercise_id}", response_model=ProgressResponse)
async def get_progress(exercise_id: int, user: UserResponse = Depends(get_current_user)):
    """Return (creating if needed) the caller's progress for an exercise."""
    async with get_session() as session:
        progress = await TrainingRepository(session).get_or_create_progress(user.id, exercise_id)
        return _to_response(progress)


@router.post("/progress/{exercise_id}", response_model=ProgressResponse)
async def update_progress(
    exercise_id: int,
    body: ProgressUpdate,
    user: UserResponse = Depends(get_current_user),
):
    """Record a submission; a new video URL invalidates earlier AI feedback."""
    async with get_session() as session:
        progress = await TrainingRepository(session).upsert_progress(
            user.id, exercise_id, video_url=body.video_url, completed=body.completed
        )
        logger.info(
            "Progress updated for user %s exercise %s (completed=%s)",
            user.id,
            exercise_id,
            body.completed,
        )
        return _to_response(progress)


@router.get("/admin/progress", response_model=list[AdminProgressResponse])
async def list_all_progress(_admin: UserResponse = Depends(require_admin)):
    async with get_session() as session:
        records = await TrainingRepository(session).list_all_progress()
        return [_to_admin_response(p) for p in records]


@router.post("/admin/progress/{progress_id}/reset", response_model=ProgressResponse)
async def reset_progress(progress_id: int, _admin: UserResponse = Depends(require_admin)):
    """Clear a submission so the user can record again."""
    async with get_session() as session:
        progress = await TrainingRepository(session).reset_progress(progress_id)
        return _to_response(progress)
