"""
Exercise endpoints.

Trainees list and open exercises; admins create, edit and delete them.
Deleting an exercise removes every progress record (and feedback) for it.
"""

import logging

from fastapi import APIRouter, Depends

from mootcourt.api.deps import get_current_user, require_admin
from mootcourt.core.models import ExerciseCreate, ExerciseResponse, MessageResponse, UserResponse
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["exercises"])


def _to_response(exercise) -> ExerciseResponse:
    """Convert an ORM ``Exercise`` to its API response model."""
    return ExerciseResponse(
        id=exercise.id,
        title=exercise.title,
        description=exercise.description,
        demo_video_url=exercise.demo_video_url,
        professional_answer_url=exercise.professional_answer_url,
        pdf_url=exercise.pdf_url,
        order=exercise.order,
        switch_times=exercise.switch_times or [],
        updated_at=exercise.updated_at,
    )


@router.get("/exercises", response_model=list[ExerciseResponse])
async def list_exercises(_user: UserResponse = Depends(get_current_user)):
    """List all exercises in display order."""
    async with get_session() as session:
        exercises = await TrainingRepository(session).list_exercises()
    return [_to_response(e) for e in exercises]


@router.get("/exercises/{exercise_id}", response_model=ExerciseResponse)
async def get_exercise(exercise_id: int, _user: UserResponse = Depends(get_current_user)):
    async with get_session() as session:
        exercise = await TrainingRepository(session).get_exercise(exercise_id)
    return _to_response(exercise)


@router.post("/admin/exercises", response_model=ExerciseResponse)
async def create_exercise(body: ExerciseCreate, _admin: UserResponse = Depends(require_admin)):
    async with get_session() as session:
        exercise = await TrainingRepository(session).create_exercise(**body.model_dump())
        logger.info("Created exercise %s", exercise.id)
        return _to_response(exercise)


@router.put("/admin/exercises/{exercise_id}", response_model=ExerciseResponse)
async def update_exercise(
    exercise_id: int,
    body: ExerciseCreate,
    _admin: UserResponse = Depends(require_admin),
):
    async with get_session() as session:
        exercise = await TrainingRepository(session).update_exercise(
            exercise_id, **body.model_dump()
        )
        return _to_response(exercise)


@router.delete("/admin/exercises/{exercise_id}", response_model=MessageResponse)
async def delete_exercise(exercise_id: int, _admin: UserResponse = Depends(require_admin)):
    async with get_session() as session:
        await TrainingRepository(session).delete_exercise(exercise_id)
    logger.info("Deleted exercise %s", exercise_id)
    return MessageResponse(message="Exercise deleted successfully")
