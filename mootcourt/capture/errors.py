"""
Capture-client exception hierarchy.

Every capture failure carries a ``user_message`` suitable for display next to
the recorder; the pipeline catches these at their origin instead of letting
them escape to the caller.
"""


class CaptureError(Exception):
    """Base exception for the recording pipeline."""

    def __init__(self, detail: str, user_message: str | None = None) -> None:
        self.detail = detail
        self.user_message = user_message or detail
        super().__init__(detail)


class RecorderError(CaptureError):
    """Raised when the recorder cannot start or fails mid-recording."""

    def __init__(self, detail: str, user_message: str | None = None) -> None:
        super().__init__(
            detail,
            user_message=user_message or f"Failed to start recording: {detail}",
        )


class EmptyRecordingError(CaptureError):
    """Raised when assembly finds no captured data."""

    def __init__(self, detail: str = "No recording data available") -> None:
        super().__init__(detail, user_message=f"Failed to process recording: {detail}")
