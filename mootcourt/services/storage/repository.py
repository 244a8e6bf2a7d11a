"""
CRUD repository for all MootCourt tables.

``TrainingRepository`` receives an ``AsyncSession`` and provides all
data-access methods.  It calls ``flush()`` rather than ``commit()`` so
that transaction boundaries are controlled by the caller (typically
:func:`get_session`).
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mootcourt.core.exceptions import (
    AIModelNotFoundError,
    DuplicateUserError,
    ExerciseNotFoundError,
    FeedbackNotFoundError,
    ProgressNotFoundError,
    ToolNotFoundError,
    UserNotFoundError,
)
from mootcourt.services.storage.models_db import (
    AIModel,
    Exercise,
    Feedback,
    PasswordResetToken,
    Progress,
    Tool,
    User,
)

logger = logging.getLogger(__name__)


def _naive_utc(value: datetime) -> datetime:
    """SQLite returns naive datetimes; normalize both sides before comparing."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.replace(tzinfo=None)


class TrainingRepository:
    """Data-access layer for the MootCourt schema.

    All methods use ``flush()`` instead of ``commit()`` so transaction
    boundaries are controlled by the caller (typically ``get_session()``
    context manager which commits on clean exit).

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(
        self,
        username: str,
        password_hash: str,
        email: str,
        is_admin: bool = False,
    ) -> User:
        """Create a user or raise :class:`DuplicateUserError`."""
        if await self.get_user_by_username(username) is not None:
            raise DuplicateUserError("username")
        if await self.get_user_by_email(email) is not None:
            raise DuplicateUserError("email")
        user = User(
            username=username,
            password_hash=password_hash,
            email=email,
            is_admin=is_admin,
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def get_user(self, user_id: int) -> User:
        """Return a user by ID or raise :class:`UserNotFoundError`."""
        user = await self._session.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_user_by_username(self, username: str) -> User | None:
        result = await self._session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self._session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def update_password(self, user_id: int, password_hash: str) -> User:
        user = await self.get_user(user_id)
        user.password_hash = password_hash
        await self._session.flush()
        return user

    # ------------------------------------------------------------------
    # Password reset tokens
    # ------------------------------------------------------------------

    async def replace_reset_token(
        self,
        user_id: int,
        token: str,
        expires_at: datetime,
    ) -> PasswordResetToken:
        """Drop any outstanding tokens for *user_id* and store a new one."""
        await self.delete_reset_tokens_for_user(user_id)
        reset_token = PasswordResetToken(user_id=user_id, token=token, expires_at=expires_at)
        self._session.add(reset_token)
        await self._session.flush()
        return reset_token

    async def get_valid_reset_token(
        self,
        token: str,
        now: datetime | None = None,
    ) -> PasswordResetToken | None:
        """Return the token row if it exists and has not expired."""
        result = await self._session.execute(
            select(PasswordResetToken).where(PasswordResetToken.token == token)
        )
        reset_token = result.scalar_one_or_none()
        if reset_token is None:
            return None
        current = _naive_utc(now or datetime.now(UTC))
        if _naive_utc(reset_token.expires_at) <= current:
            return None
        return reset_token

    async def delete_reset_token(self, token_id: int) -> None:
        await self._session.execute(
            delete(PasswordResetToken).where(PasswordResetToken.id == token_id)
        )
        await self._session.flush()

    async def delete_reset_tokens_for_user(self, user_id: int) -> None:
        await self._session.execute(
            delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        )
        await self._session.flush()

    # ------------------------------------------------------------------
    # Exercises
    # ------------------------------------------------------------------

    async def list_exercises(self) -> list[Exercise]:
        """Return all exercises ordered by their ordering index."""
        result = await self._session.execute(
            select(Exercise).order_by(Exercise.order, Exercise.id)
        )
        return list(result.scalars().all())

    async def get_exercise(self, exercise_id: int) -> Exercise:
        """Return an exercise by ID or raise :class:`ExerciseNotFoundError`."""
        exercise = await self._session.get(Exercise, exercise_id)
        if exercise is None:
            raise ExerciseNotFoundError(exercise_id)
        return exercise

    async def create_exercise(self, **fields) -> Exercise:
        exercise = Exercise(**fields)
        self._session.add(exercise)
        await self._session.flush()
        return exercise

    async def update_exercise(self, exercise_id: int, **fields) -> Exercise:
        exercise = await self.get_exercise(exercise_id)
        for name, value in fields.items():
            setattr(exercise, name, value)
        exercise.updated_at = datetime.now(UTC)
        await self._session.flush()
        return exercise

    async def delete_exercise(self, exercise_id: int) -> None:
        """Delete an exercise along with its progress rows and their feedback."""
        exercise = await self.get_exercise(exercise_id)
        progress_ids = select(Progress.id).where(Progress.exercise_id == exercise_id)
        await self._session.execute(
            delete(Feedback).where(Feedback.progress_id.in_(progress_ids))
        )
        result = await self._session.execute(
            delete(Progress).where(Progress.exercise_id == exercise_id)
        )
        if result.rowcount:
            logger.info(
                "Deleted %s progress records for exercise %s", result.rowcount, exercise_id
            )
        await self._session.delete(exercise)
        await self._session.flush()

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    async def list_progress_for_user(self, user_id: int) -> list[Progress]:
        """Return the user's progress rows with feedback eager-loaded."""
        stmt = (
            select(Progress)
            .where(Progress.user_id == user_id)
            .order_by(Progress.id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_all_progress(self) -> list[Progress]:
        """Return every progress row (admin view) with user and exercise loaded."""
        stmt = select(Progress).order_by(Progress.id).execution_options(populate_existing=True)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_progress(self, progress_id: int) -> Progress:
        """Return a progress row by ID or raise :class:`ProgressNotFoundError`."""
        stmt = (
            select(Progress)
            .where(Progress.id == progress_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        progress = result.scalar_one_or_none()
        if progress is None:
            raise ProgressNotFoundError(progress_id)
        return progress

    async def get_user_progress(self, progress_id: int, user_id: int) -> Progress:
        """Return *progress_id* only if it belongs to *user_id*."""
        progress = await self.get_progress(progress_id)
        if progress.user_id != user_id:
            raise ProgressNotFoundError(progress_id, detail="Progress record not found")
        return progress

    async def find_progress(self, user_id: int, exercise_id: int) -> Progress | None:
        stmt = (
            select(Progress)
            .where(Progress.user_id == user_id, Progress.exercise_id == exercise_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_progress(self, user_id: int, exercise_id: int) -> Progress:
        """Return the (user, exercise) progress row, creating it lazily."""
        progress = await self.find_progress(user_id, exercise_id)
        if progress is not None:
            return progress
        await self.get_exercise(exercise_id)
        progress = Progress(user_id=user_id, exercise_id=exercise_id, completed=False)
        self._session.add(progress)
        await self._session.flush()
        return await self.get_progress(progress.id)

    async def upsert_progress(
        self,
        user_id: int,
        exercise_id: int,
        video_url: str | None,
        completed: bool,
    ) -> Progress:
        """Create or update the user's progress for an exercise.

        Submitting a new, different video invalidates any AI feedback
        attached to the previous submission.
        """
        progress = await self.find_progress(user_id, exercise_id)
        if progress is None:
            await self.get_exercise(exercise_id)
            progress = Progress(
                user_id=user_id,
                exercise_id=exercise_id,
                video_url=video_url,
                completed=completed,
            )
            self._session.add(progress)
            await self._session.flush()
            return await self.get_progress(progress.id)

        if video_url and progress.video_url != video_url:
            removed = await self.delete_ai_feedback(progress.id)
            if removed:
                logger.info("Cleared %s AI feedback rows for progress %s", removed, progress.id)

        progress.video_url = video_url
        progress.completed = completed
        progress.updated_at = datetime.now(UTC)
        await self._session.flush()
        return await self.get_progress(progress.id)

    async def reset_progress(self, progress_id: int) -> Progress:
        """Clear a submission so the user can record again."""
        progress = await self.get_progress(progress_id)
        progress.video_url = None
        progress.completed = False
        progress.updated_at = datetime.now(UTC)
        await self._session.flush()
        return progress

    # ------------------------------------------------------------------
    # Feedback
    # ------------------------------------------------------------------

    async def create_feedback(
        self,
        progress_id: int,
        content: str,
        rating: int,
        is_ai_generated: bool = False,
        ai_analysis_status: str | None = None,
        ai_confidence_score: int | None = None,
    ) -> Feedback:
        """Attach a feedback entry to an existing progress row."""
        await self.get_progress(progress_id)
        feedback = Feedback(
            progress_id=progress_id,
            content=content,
            rating=rating,
            is_ai_generated=is_ai_generated,
            ai_analysis_status=ai_analysis_status,
            ai_confidence_score=ai_confidence_score,
        )
        self._session.add(feedback)
        await self._session.flush()
        return feedback

    async def get_feedback(self, feedback_id: int) -> Feedback:
        feedback = await self._session.get(Feedback, feedback_id)
        if feedback is None:
            raise FeedbackNotFoundError(feedback_id)
        return feedback

    async def get_ai_feedback(self, progress_id: int) -> Feedback | None:
        """Return the AI-authored feedback for a progress row, if any."""
        stmt = (
            select(Feedback)
            .where(Feedback.progress_id == progress_id, Feedback.is_ai_generated.is_(True))
            .order_by(Feedback.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_ai_feedback(self, progress_id: int) -> int:
        """Delete all AI-authored feedback for a progress row; return the count."""
        result = await self._session.execute(
            delete(Feedback).where(
                Feedback.progress_id == progress_id,
                Feedback.is_ai_generated.is_(True),
            )
        )
        await self._session.flush()
        return result.rowcount or 0

    async def update_feedback(self, feedback_id: int, **fields) -> Feedback:
        feedback = await self.get_feedback(feedback_id)
        for name, value in fields.items():
            setattr(feedback, name, value)
        await self._session.flush()
        return feedback

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def list_tools(self, active_only: bool = False) -> list[Tool]:
        stmt = select(Tool).order_by(Tool.created_at, Tool.id)
        if active_only:
            stmt = stmt.where(Tool.is_active.is_(True))
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_tool(self, tool_id: int, active_only: bool = False) -> Tool:
        """Return a tool or raise :class:`ToolNotFoundError`."""
        tool = await self._session.get(Tool, tool_id)
        if tool is None or (active_only and not tool.is_active):
            raise ToolNotFoundError(tool_id)
        return tool

    async def create_tool(self, **fields) -> Tool:
        tool = Tool(**fields)
        self._session.add(tool)
        await self._session.flush()
        return tool

    async def update_tool(self, tool_id: int, **fields) -> Tool:
        tool = await self.get_tool(tool_id)
        for name, value in fields.items():
            setattr(tool, name, value)
        tool.updated_at = datetime.now(UTC)
        await self._session.flush()
        return tool

    async def delete_tool(self, tool_id: int) -> None:
        tool = await self.get_tool(tool_id)
        await self._session.delete(tool)
        await self._session.flush()

    # ------------------------------------------------------------------
    # AI models
    # ------------------------------------------------------------------

    async def list_ai_models(self) -> list[AIModel]:
        result = await self._session.execute(select(AIModel).order_by(AIModel.created_at, AIModel.id))
        return list(result.scalars().all())

    async def get_ai_model(self, model_id: int) -> AIModel:
        model = await self._session.get(AIModel, model_id)
        if model is None:
            raise AIModelNotFoundError(model_id)
        return model

    async def get_default_ai_model(self) -> AIModel | None:
        """Return the active model flagged as default, if any."""
        stmt = (
            select(AIModel)
            .where(AIModel.is_default.is_(True), AIModel.is_active.is_(True))
            .order_by(AIModel.id)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _clear_default_flag(self) -> None:
        await self._session.execute(
            update(AIModel).where(AIModel.is_default.is_(True)).values(is_default=False)
        )

    async def create_ai_model(self, **fields) -> AIModel:
        """Create a model config; a new default demotes the previous one."""
        if fields.get("is_default"):
            await self._clear_default_flag()
        model = AIModel(**fields)
        self._session.add(model)
        await self._session.flush()
        return model

    async def update_ai_model(self, model_id: int, **fields) -> AIModel:
        """Update a model config; an empty ``api_key`` keeps the stored key."""
        model = await self.get_ai_model(model_id)
        if not (fields.get("api_key") or "").strip():
            fields.pop("api_key", None)
        if fields.get("is_default"):
            await self._clear_default_flag()
            # The bulk UPDATE bypasses the identity map
            await self._session.refresh(model)
        for name, value in fields.items():
            setattr(model, name, value)
        model.updated_at = datetime.now(UTC)
        await self._session.flush()
        return model

    async def delete_ai_model(self, model_id: int) -> None:
        model = await self.get_ai_model(model_id)
        await self._session.delete(model)
        await self._session.flush()
