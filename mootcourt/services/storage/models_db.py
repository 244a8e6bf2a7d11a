"""
SQLAlchemy ORM models for the MootCourt schema.

Tables: ``users``, ``password_reset_tokens``, ``exercises``,
``user_progress``, ``feedback``, ``tools``, ``ai_models``.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from mootcourt.services.storage.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """A registered trainee or administrator."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(256))
    email: Mapped[str] = mapped_column(String(256), unique=True, index=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)

    progress: Mapped[list["Progress"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reset_tokens: Mapped[list["PasswordResetToken"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


class PasswordResetToken(Base):
    """Short-lived credential-recovery token bound to a user."""

    __tablename__ = "password_reset_tokens"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    token: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    expires_at: Mapped[datetime] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)

    user: Mapped["User"] = relationship(back_populates="reset_tokens")

    def __repr__(self) -> str:
        return f"<PasswordResetToken id={self.id} user={self.user_id}>"


class Exercise(Base):
    """A training unit with demo media and an ordering index."""

    __tablename__ = "exercises"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text)
    demo_video_url: Mapped[str] = mapped_column(String(512))
    professional_answer_url: Mapped[str] = mapped_column(String(512))
    pdf_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    order: Mapped[int] = mapped_column(index=True)
    switch_times: Mapped[list] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow, onupdate=_utcnow)

    progress: Mapped[list["Progress"]] = relationship(
        back_populates="exercise",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Exercise id={self.id} order={self.order}>"


class Progress(Base):
    """One user's submission and completion state for one exercise."""

    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "exercise_id", name="uq_progress_user_exercise"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    exercise_id: Mapped[int] = mapped_column(
        ForeignKey("exercises.id", ondelete="CASCADE"), index=True
    )
    video_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow)

    user: Mapped["User"] = relationship(back_populates="progress", lazy="selectin")
    exercise: Mapped["Exercise"] = relationship(back_populates="progress", lazy="selectin")
    feedback: Mapped[list["Feedback"]] = relationship(
        back_populates="progress",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Feedback.id",
    )

    def __repr__(self) -> str:
        return f"<Progress id={self.id} user={self.user_id} exercise={self.exercise_id}>"


class Feedback(Base):
    """A rating plus commentary attached to a progress record."""

    __tablename__ = "feedback"
    __table_args__ = (Index("ix_feedback_progress_ai", "progress_id", "is_ai_generated"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    progress_id: Mapped[int] = mapped_column(ForeignKey("user_progress.id", ondelete="CASCADE"))
    content: Mapped[str] = mapped_column(Text)
    rating: Mapped[int] = mapped_column()
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_analysis_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    ai_confidence_score: Mapped[int | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)

    progress: Mapped["Progress"] = relationship(back_populates="feedback")

    def __repr__(self) -> str:
        return f"<Feedback id={self.id} progress={self.progress_id} ai={self.is_ai_generated}>"


class Tool(Base):
    """An admin-curated resource listing with an optional runnable snippet."""

    __tablename__ = "tools"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text)
    download_url: Mapped[str] = mapped_column(String(500))
    images: Mapped[list] = mapped_column(JSON, default=list)
    python_code: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<Tool id={self.id} active={self.is_active}>"


class AIModel(Base):
    """Configuration record for an external inference provider."""

    __tablename__ = "ai_models"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    provider: Mapped[str] = mapped_column(String(50))
    api_key: Mapped[str] = mapped_column(Text)
    endpoint: Mapped[str] = mapped_column(String(512))
    model: Mapped[str] = mapped_column(String(255))
    # Hundredths: 70 means 0.70
    temperature: Mapped[int] = mapped_column(default=70)
    max_tokens: Mapped[int] = mapped_column(default=1000)
    system_prompt: Mapped[str] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<AIModel id={self.id} provider={self.provider!r} default={self.is_default}>"
