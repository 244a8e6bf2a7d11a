"""
Feedback endpoints.

Trainees leave feedback on their own submissions; admins trigger AI
analysis, which runs in the background and is polled via the status route.
"""

import logging

from fastapi import APIRouter, Depends

from mootcourt.api.deps import get_current_user, require_admin
from mootcourt.core.exceptions import ProgressNotFoundError
from mootcourt.core.models import (
    AIFeedbackStartResponse,
    AnalysisStatus,
    FeedbackCreate,
    FeedbackResponse,
    UserResponse,
)
from mootcourt.services import analysis
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feedback"])


@router.post("/feedback/{progress_id}", response_model=FeedbackResponse)
async def create_feedback(
    progress_id: int,
    body: FeedbackCreate,
    user: UserResponse = Depends(get_current_user),
):
    """Attach feedback to one of the caller's own progress records."""
    async with get_session() as session:
        repo = TrainingRepository(session)
        await repo.get_user_progress(progress_id, user.id)
        feedback = await repo.create_feedback(progress_id, body.content, body.rating)
        return FeedbackResponse.model_validate(feedback)


@router.post("/ai-feedback/{progress_id}", response_model=AIFeedbackStartResponse)
async def start_ai_feedback(progress_id: int, _admin: UserResponse = Depends(require_admin)):
    """Replace any AI feedback with a pending entry and schedule the analysis."""
    async with get_session() as session:
        repo = TrainingRepository(session)
        progress = await repo.get_progress(progress_id)
        if not progress.video_url:
            raise ProgressNotFoundError(
                progress_id, detail="Progress record not found or no video submitted"
            )
        await repo.delete_ai_feedback(progress_id)
        feedback = await repo.create_feedback(
            progress_id,
            content=analysis.PENDING_CONTENT,
            rating=analysis.PENDING_RATING,
            is_ai_generated=True,
            ai_analysis_status=AnalysisStatus.pending.value,
        )
        feedback_id = feedback.id

    # Must run after commit: the task reads the pending row in its own session
    analysis.schedule_analysis(feedback_id)
    logger.info("AI analysis scheduled for feedback %s (progress %s)", feedback_id, progress_id)
    return AIFeedbackStartResponse(feedback_id=feedback_id)


@router.get("/ai-feedback/{progress_id}/status", response_model=FeedbackResponse | None)
async def ai_feedback_status(progress_id: int, user: UserResponse = Depends(get_current_user)):
    """Return the AI feedback for a progress record, or null.

    Trainees may only poll their own progress; admins may poll any.
    """
    async with get_session() as session:
        repo = TrainingRepository(session)
        if not user.is_admin:
            await repo.get_user_progress(progress_id, user.id)
        feedback = await repo.get_ai_feedback(progress_id)
        return FeedbackResponse.model_validate(feedback) if feedback else None
