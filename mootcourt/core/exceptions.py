"""
MootCourt exception hierarchy.

All server-side exceptions inherit from MootCourtError, enabling
centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class MootCourtError(Exception):
    """Base exception for all MootCourt server errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "MOOTCOURT_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)

    def to_payload(self) -> dict:
        """JSON error envelope.

        ``message`` mirrors ``detail``: the capture client reads ``message``
        from failed upload / delete responses.
        """
        return {
            "detail": self.detail,
            "message": self.detail,
            "code": self.code,
            "timestamp": self.timestamp,
        }


class NotAuthenticatedError(MootCourtError):
    """Raised when a request carries no valid credentials."""

    def __init__(self, detail: str = "Not authenticated") -> None:
        super().__init__(detail=detail, code="NOT_AUTHENTICATED", status_code=401)


class ForbiddenError(MootCourtError):
    """Raised when a non-admin user calls an admin endpoint."""

    def __init__(self) -> None:
        super().__init__(detail="Unauthorized", code="FORBIDDEN", status_code=403)


class ValidationFailedError(MootCourtError):
    """Raised when a request body fails a business-rule check."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail=detail, code="VALIDATION_FAILED", status_code=400)


class DuplicateUserError(MootCourtError):
    """Raised when registering a username or email that already exists."""

    def __init__(self, field: str) -> None:
        super().__init__(
            detail=f"{field} already exists",
            code="DUPLICATE_USER",
            status_code=409,
        )


class UserNotFoundError(MootCourtError):
    """Raised when a user ID does not exist."""

    def __init__(self, user_id: int | str) -> None:
        super().__init__(
            detail=f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            status_code=404,
        )


class InvalidResetTokenError(MootCourtError):
    """Raised when a password-reset token is unknown or expired."""

    def __init__(self) -> None:
        super().__init__(
            detail="Invalid or expired reset token",
            code="INVALID_RESET_TOKEN",
            status_code=400,
        )


class ExerciseNotFoundError(MootCourtError):
    """Raised when an exercise ID does not exist."""

    def __init__(self, exercise_id: int | str) -> None:
        super().__init__(
            detail=f"Exercise not found: {exercise_id}",
            code="EXERCISE_NOT_FOUND",
            status_code=404,
        )


class ProgressNotFoundError(MootCourtError):
    """Raised when a progress record does not exist or is not visible to the caller."""

    def __init__(self, progress_id: int | str, detail: str | None = None) -> None:
        super().__init__(
            detail=detail or f"Progress record not found: {progress_id}",
            code="PROGRESS_NOT_FOUND",
            status_code=404,
        )


class FeedbackNotFoundError(MootCourtError):
    """Raised when a feedback ID does not exist."""

    def __init__(self, feedback_id: int | str) -> None:
        super().__init__(
            detail=f"Feedback not found: {feedback_id}",
            code="FEEDBACK_NOT_FOUND",
            status_code=404,
        )


class ToolNotFoundError(MootCourtError):
    """Raised when a tool ID does not exist (or is inactive for public routes)."""

    def __init__(self, tool_id: int | str) -> None:
        super().__init__(
            detail=f"Tool not found or inactive: {tool_id}",
            code="TOOL_NOT_FOUND",
            status_code=404,
        )


class AIModelNotFoundError(MootCourtError):
    """Raised when an AI model configuration ID does not exist."""

    def __init__(self, model_id: int | str) -> None:
        super().__init__(
            detail=f"AI model not found: {model_id}",
            code="AI_MODEL_NOT_FOUND",
            status_code=404,
        )


class VideoNotFoundError(MootCourtError):
    """Raised when a stored video file is missing or empty."""

    def __init__(self, filename: str) -> None:
        super().__init__(
            detail=f"Video not found: {filename}",
            code="VIDEO_NOT_FOUND",
            status_code=404,
        )


class VideoStorageError(MootCourtError):
    """Raised when the video store cannot write or delete a file."""

    def __init__(self, detail: str = "Video storage failed") -> None:
        super().__init__(detail=detail, code="VIDEO_STORAGE_ERROR", status_code=500)


class AIProviderError(MootCourtError):
    """Raised when an external inference provider call fails."""

    def __init__(self, detail: str = "AI provider request failed") -> None:
        super().__init__(detail=detail, code="AI_PROVIDER_ERROR", status_code=502)


class ToolExecutionError(MootCourtError):
    """Raised when a tool script cannot be launched at all."""

    def __init__(self, detail: str = "Tool execution failed") -> None:
        super().__init__(detail=detail, code="TOOL_EXECUTION_ERROR", status_code=500)
