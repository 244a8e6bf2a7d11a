"""
Pydantic v2 request / response models used across the API layer.

JSON bodies use camelCase keys (``videoUrl``, ``isAdmin``) to match the
web client; Python attributes stay snake_case. Request models accept
either spelling.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting both spellings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(BaseModel):
    """Generic ``{"message": ...}`` acknowledgement."""

    message: str


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class UserCreate(CamelModel):
    """POST /api/auth/register request body."""

    username: str = Field(min_length=3, max_length=128)
    password: str = Field(min_length=1)
    email: str = Field(min_length=3, max_length=256)


class UserResponse(CamelModel):
    """Public representation of a user (never includes the hash)."""

    id: int
    username: str
    email: str
    is_admin: bool = False
    created_at: datetime | None = None


class TokenResponse(BaseModel):
    """OAuth2 token response (snake_case per RFC 6749)."""

    access_token: str
    token_type: str = "bearer"


class ForgotPasswordRequest(CamelModel):
    email: str


class ForgotPasswordResponse(CamelModel):
    message: str
    token: str | None = None


class ResetPasswordRequest(CamelModel):
    token: str
    new_password: str


class AdminResetPasswordRequest(CamelModel):
    # Loosely typed so the route can answer 400 instead of 422
    new_password: Any = None


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------


class ExerciseCreate(CamelModel):
    """Admin create / update body for an exercise."""

    title: str
    description: str
    demo_video_url: str
    professional_answer_url: str
    pdf_url: str | None = None
    order: int
    switch_times: list[float] = Field(default_factory=list)


class ExerciseResponse(CamelModel):
    id: int
    title: str
    description: str
    demo_video_url: str
    professional_answer_url: str
    pdf_url: str | None = None
    order: int
    switch_times: list[float] = Field(default_factory=list)
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------


class AnalysisStatus(StrEnum):
    """Lifecycle of an AI-authored feedback entry."""

    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class FeedbackCreate(CamelModel):
    """POST /api/feedback/{progress_id} request body."""

    content: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)


class FeedbackResponse(CamelModel):
    id: int
    progress_id: int
    content: str
    rating: int
    is_ai_generated: bool = False
    ai_analysis_status: AnalysisStatus | None = None
    ai_confidence_score: int | None = None
    created_at: datetime | None = None


class AIFeedbackStartResponse(CamelModel):
    message: str = "AI analysis initiated"
    feedback_id: int


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class ProgressUpdate(CamelModel):
    """POST /api/progress/{exercise_id} request body."""

    video_url: str | None = None
    completed: bool = False


class ProgressResponse(CamelModel):
    id: int
    user_id: int
    exercise_id: int
    video_url: str | None = None
    completed: bool = False
    updated_at: datetime | None = None
    feedback: list[FeedbackResponse] = Field(default_factory=list)


class AdminProgressResponse(ProgressResponse):
    """Progress row joined with the owning user and exercise title."""

    username: str
    email: str
    exercise_title: str


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------


class VideoUploadResponse(CamelModel):
    video_url: str


class DeleteVideoRequest(CamelModel):
    video_url: str | None = None


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


class ToolCreate(CamelModel):
    """Admin create / update body for a tool.

    Required fields default to empty strings so the route can report
    the missing-field message with a 400.
    """

    title: str = ""
    description: str = ""
    download_url: str = ""
    images: list[str] = Field(default_factory=list)
    python_code: str | None = None
    is_active: bool | None = None


class ToolResponse(CamelModel):
    id: int
    title: str
    description: str
    download_url: str
    images: list[str] = Field(default_factory=list)
    python_code: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ToolRunRequest(CamelModel):
    user_input: str | None = None


class RunPythonRequest(CamelModel):
    code: Any = None


class ToolRunResponse(CamelModel):
    output: str


# ---------------------------------------------------------------------------
# AI models
# ---------------------------------------------------------------------------


class AIModelCreate(CamelModel):
    """Admin create / update body for an AI model configuration.

    ``temperature`` is a float in [0, 2]; it is persisted as integer
    hundredths. An empty ``api_key`` on update keeps the stored key.
    """

    name: str = ""
    provider: str = ""
    api_key: str = ""
    endpoint: str = ""
    model: str = ""
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1)
    system_prompt: str = ""
    is_active: bool | None = None
    is_default: bool | None = None


class AIModelResponse(CamelModel):
    id: int
    name: str
    provider: str
    api_key: str
    endpoint: str
    model: str
    temperature: float
    max_tokens: int
    system_prompt: str
    is_active: bool
    is_default: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AIModelTestResponse(CamelModel):
    success: bool
    response: str
    model: str
    has_video_processing: bool = False
