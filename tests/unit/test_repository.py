"""Tests for the TrainingRepository CRUD layer.

Covers users and reset tokens, exercises (including the cascade on delete),
lazy progress creation, submission updates that invalidate AI feedback, and
tool / AI model configuration. All tests use the in-memory ``repository``
fixture.
"""

from datetime import UTC, datetime, timedelta

import pytest

from mootcourt.core.exceptions import (
    AIModelNotFoundError,
    DuplicateUserError,
    ExerciseNotFoundError,
    ProgressNotFoundError,
    ToolNotFoundError,
    UserNotFoundError,
)
from mootcourt.services.storage.repository import TrainingRepository

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _make_user(repo: TrainingRepository, name: str = "alice"):
    return await repo.create_user(name, "hash", f"{name}@example.org")


async def _make_exercise(repo: TrainingRepository, order: int = 1, title: str = "Opening"):
    return await repo.create_exercise(
        title=title,
        description="Present your opening submissions.",
        demo_video_url="https://v/demo.mp4",
        professional_answer_url="https://v/pro.mp4",
        order=order,
        switch_times=[10.0, 20.5],
    )


async def _submission(repo: TrainingRepository, video_url: str = "/api/video/a.webm"):
    user = await _make_user(repo)
    exercise = await _make_exercise(repo)
    progress = await repo.upsert_progress(user.id, exercise.id, video_url, True)
    return user, exercise, progress


# ===================================================================
# Users
# ===================================================================


class TestUsers:
    async def test_create_and_lookup(self, repository: TrainingRepository) -> None:
        user = await _make_user(repository)
        assert user.id is not None
        assert user.is_admin is False
        assert (await repository.get_user_by_username("alice")).id == user.id
        assert (await repository.get_user_by_email("alice@example.org")).id == user.id

    async def test_duplicate_username(self, repository: TrainingRepository) -> None:
        await _make_user(repository)
        with pytest.raises(DuplicateUserError, match="username"):
            await repository.create_user("alice", "h", "other@example.org")

    async def test_duplicate_email(self, repository: TrainingRepository) -> None:
        await _make_user(repository)
        with pytest.raises(DuplicateUserError, match="email"):
            await repository.create_user("bob", "h", "alice@example.org")

    async def test_update_password_unknown_user(self, repository: TrainingRepository) -> None:
        with pytest.raises(UserNotFoundError):
            await repository.update_password(999, "h")


class TestResetTokens:
    async def test_replace_invalidates_previous(self, repository: TrainingRepository) -> None:
        user = await _make_user(repository)
        expires = datetime.now(UTC) + timedelta(hours=24)
        await repository.replace_reset_token(user.id, "first", expires)
        await repository.replace_reset_token(user.id, "second", expires)

        assert await repository.get_valid_reset_token("first") is None
        assert (await repository.get_valid_reset_token("second")).user_id == user.id

    async def test_expired_token_invalid(self, repository: TrainingRepository) -> None:
        user = await _make_user(repository)
        expires = datetime.now(UTC) + timedelta(hours=1)
        await repository.replace_reset_token(user.id, "tok", expires)

        later = datetime.now(UTC) + timedelta(hours=2)
        assert await repository.get_valid_reset_token("tok", now=later) is None

    async def test_delete_token(self, repository: TrainingRepository) -> None:
        user = await _make_user(repository)
        token = await repository.replace_reset_token(
            user.id, "tok", datetime.now(UTC) + timedelta(hours=1)
        )
        await repository.delete_reset_token(token.id)
        assert await repository.get_valid_reset_token("tok") is None


# ===================================================================
# Exercises
# ===================================================================


class TestExercises:
    async def test_list_ordered(self, repository: TrainingRepository) -> None:
        await _make_exercise(repository, order=2, title="Rebuttal")
        await _make_exercise(repository, order=1, title="Opening")
        titles = [e.title for e in await repository.list_exercises()]
        assert titles == ["Opening", "Rebuttal"]

    async def test_switch_times_stored(self, repository: TrainingRepository) -> None:
        exercise = await _make_exercise(repository)
        assert (await repository.get_exercise(exercise.id)).switch_times == [10.0, 20.5]

    async def test_update_sets_timestamp(self, repository: TrainingRepository) -> None:
        exercise = await _make_exercise(repository)
        updated = await repository.update_exercise(exercise.id, title="Changed")
        assert updated.title == "Changed"
        assert updated.updated_at is not None

    async def test_get_missing(self, repository: TrainingRepository) -> None:
        with pytest.raises(ExerciseNotFoundError):
            await repository.get_exercise(42)

    async def test_delete_cascades(self, repository: TrainingRepository) -> None:
        """Deleting an exercise removes its progress and their feedback."""
        _user, exercise, progress = await _submission(repository)
        feedback = await repository.create_feedback(progress.id, "Good", 4)

        await repository.delete_exercise(exercise.id)

        with pytest.raises(ExerciseNotFoundError):
            await repository.get_exercise(exercise.id)
        with pytest.raises(ProgressNotFoundError):
            await repository.get_progress(progress.id)
        assert await repository.list_all_progress() == []
        assert await repository.get_ai_feedback(progress.id) is None
        assert feedback.id is not None


# ===================================================================
# Progress
# ===================================================================


class TestProgress:
    async def test_get_or_create_is_lazy_and_unique(self, repository: TrainingRepository) -> None:
        user = await _make_user(repository)
        exercise = await _make_exercise(repository)

        first = await repository.get_or_create_progress(user.id, exercise.id)
        second = await repository.get_or_create_progress(user.id, exercise.id)

        assert first.id == second.id
        assert first.completed is False
        assert first.video_url is None
        assert first.feedback == []

    async def test_get_or_create_unknown_exercise(self, repository: TrainingRepository) -> None:
        user = await _make_user(repository)
        with pytest.raises(ExerciseNotFoundError):
            await repository.get_or_create_progress(user.id, 404)

    async def test_new_video_clears_ai_feedback(self, repository: TrainingRepository) -> None:
        """Submitting a different video drops AI feedback but keeps human feedback."""
        user, exercise, progress = await _submission(repository)
        await repository.create_feedback(progress.id, "AI says", 4, is_ai_generated=True)
        await repository.create_feedback(progress.id, "Coach says", 3)

        updated = await repository.upsert_progress(user.id, exercise.id, "/api/video/b.webm", True)

        assert updated.video_url == "/api/video/b.webm"
        assert [f.content for f in updated.feedback] == ["Coach says"]

    async def test_same_video_keeps_ai_feedback(self, repository: TrainingRepository) -> None:
        user, exercise, progress = await _submission(repository)
        await repository.create_feedback(progress.id, "AI says", 4, is_ai_generated=True)

        updated = await repository.upsert_progress(user.id, exercise.id, "/api/video/a.webm", False)

        assert updated.completed is False
        assert len(updated.feedback) == 1

    async def test_get_user_progress_checks_owner(self, repository: TrainingRepository) -> None:
        _user, _exercise, progress = await _submission(repository)
        other = await _make_user(repository, "mallory")
        with pytest.raises(ProgressNotFoundError, match="Progress record not found"):
            await repository.get_user_progress(progress.id, other.id)

    async def test_reset(self, repository: TrainingRepository) -> None:
        _user, _exercise, progress = await _submission(repository)
        reset = await repository.reset_progress(progress.id)
        assert reset.video_url is None
        assert reset.completed is False

    async def test_admin_listing_loads_relations(self, repository: TrainingRepository) -> None:
        await _submission(repository)
        records = await repository.list_all_progress()
        assert records[0].user.username == "alice"
        assert records[0].exercise.title == "Opening"


# ===================================================================
# Feedback
# ===================================================================


class TestFeedback:
    async def test_ai_feedback_lifecycle(self, repository: TrainingRepository) -> None:
        _user, _exercise, progress = await _submission(repository)
        pending = await repository.create_feedback(
            progress.id, "pending", 3, is_ai_generated=True, ai_analysis_status="pending"
        )

        await repository.update_feedback(
            pending.id, content="Done", ai_analysis_status="completed", ai_confidence_score=70
        )
        ai = await repository.get_ai_feedback(progress.id)
        assert ai.content == "Done"
        assert ai.ai_confidence_score == 70

        assert await repository.delete_ai_feedback(progress.id) == 1
        assert await repository.get_ai_feedback(progress.id) is None

    async def test_feedback_requires_progress(self, repository: TrainingRepository) -> None:
        with pytest.raises(ProgressNotFoundError):
            await repository.create_feedback(77, "x", 3)


# ===================================================================
# Tools and AI models
# ===================================================================


class TestTools:
    async def test_active_filter(self, repository: TrainingRepository) -> None:
        active = await repository.create_tool(
            title="Timer", description="d", download_url="https://t", is_active=True
        )
        hidden = await repository.create_tool(
            title="Old", description="d", download_url="https://o", is_active=False
        )

        assert [t.id for t in await repository.list_tools(active_only=True)] == [active.id]
        assert len(await repository.list_tools()) == 2
        with pytest.raises(ToolNotFoundError):
            await repository.get_tool(hidden.id, active_only=True)
        assert (await repository.get_tool(hidden.id)).title == "Old"


class TestAIModels:
    @staticmethod
    def _fields(name: str, **overrides) -> dict:
        fields = {
            "name": name,
            "provider": "openai",
            "api_key": "sk-1",
            "endpoint": "https://api",
            "model": "m",
            "temperature": 70,
            "max_tokens": 1000,
            "system_prompt": "judge",
            "is_active": True,
            "is_default": False,
        }
        fields.update(overrides)
        return fields

    async def test_single_default(self, repository: TrainingRepository) -> None:
        first = await repository.create_ai_model(**self._fields("A", is_default=True))
        second = await repository.create_ai_model(**self._fields("B", is_default=True))

        default = await repository.get_default_ai_model()
        assert default.id == second.id
        assert (await repository.get_ai_model(first.id)).is_default is False

    async def test_inactive_default_ignored(self, repository: TrainingRepository) -> None:
        await repository.create_ai_model(**self._fields("A", is_default=True, is_active=False))
        assert await repository.get_default_ai_model() is None

    async def test_update_keeps_key_when_blank(self, repository: TrainingRepository) -> None:
        model = await repository.create_ai_model(**self._fields("A"))
        updated = await repository.update_ai_model(model.id, api_key="", name="A2")
        assert updated.api_key == "sk-1"
        assert updated.name == "A2"

    async def test_update_promotes_default(self, repository: TrainingRepository) -> None:
        first = await repository.create_ai_model(**self._fields("A", is_default=True))
        second = await repository.create_ai_model(**self._fields("B"))
        await repository.update_ai_model(second.id, is_default=True)
        assert (await repository.get_default_ai_model()).id == second.id
        assert (await repository.get_ai_model(first.id)).is_default is False

    async def test_delete(self, repository: TrainingRepository) -> None:
        model = await repository.create_ai_model(**self._fields("A"))
        await repository.delete_ai_model(model.id)
        with pytest.raises(AIModelNotFoundError):
            await repository.get_ai_model(model.id)
