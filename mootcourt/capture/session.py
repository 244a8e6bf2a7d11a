"""End-to-end recording pipeline.

``RecordingSession`` runs acquire -> record -> assemble -> upload for one
take. Failures are caught where they happen and returned as a
user-facing message on :class:`RecordingOutcome`; nothing is retried.
"""

import logging
from dataclasses import dataclass

from mootcourt.capture.artifact import DEFAULT_MIME_TYPE, Artifact
from mootcourt.capture.devices import PreviewSurface, StreamHandle
from mootcourt.capture.errors import CaptureError
from mootcourt.capture.host import CaptureConstraints, MediaHost
from mootcourt.capture.recorder import VideoRecorder
from mootcourt.capture.upload import CompletionCallback, VideoUploader

logger = logging.getLogger(__name__)


@dataclass
class RecordingOutcome:
    """Result of one take.

    ``artifact`` is kept even when the upload fails so the caller can
    store it locally.
    """

    artifact: Artifact | None = None
    video_url: str | None = None
    error: str | None = None
    time_limit_reached: bool = False

    @property
    def uploaded(self) -> bool:
        return self.video_url is not None


class RecordingSession:
    """Wires the capture stages together for one exercise.

    Args:
        host: Host media subsystem.
        uploader: Transport for artifacts.
        exercise_id: When set, a successful upload is also recorded as the
            exercise submission.
        constraints: Capture hints passed to the host.
        timeslice: Seconds between periodic flushes.
        max_duration: Auto-stop limit in seconds.
        mime_type: Preferred container type.
        preview: Surface the live stream is shown on.
    """

    def __init__(
        self,
        host: MediaHost,
        uploader: VideoUploader,
        exercise_id: int | None = None,
        constraints: CaptureConstraints | None = None,
        timeslice: float = 1.0,
        max_duration: float = 300.0,
        mime_type: str = DEFAULT_MIME_TYPE,
        preview: PreviewSurface | None = None,
    ) -> None:
        self._host = host
        self._uploader = uploader
        self._exercise_id = exercise_id
        self._constraints = constraints
        self._timeslice = timeslice
        self._max_duration = max_duration
        self._mime_type = mime_type
        self._preview = preview

    async def record(
        self,
        duration: float,
        on_complete: CompletionCallback | None = None,
    ) -> RecordingOutcome:
        """Record for *duration* seconds (or until the time limit) and upload."""
        handle = StreamHandle(self._host, self._constraints, self._preview)
        try:
            async with handle:
                async with VideoRecorder(
                    handle,
                    timeslice=self._timeslice,
                    max_duration=self._max_duration,
                    mime_type=self._mime_type,
                ) as recorder:
                    await recorder.start()
                    await recorder.wait_for_stop(duration)
                    artifact = await recorder.stop()
                    time_limit_reached = recorder.time_limit_reached
        except CaptureError as exc:
            logger.warning("Recording attempt failed: %s", exc.detail)
            return RecordingOutcome(error=exc.user_message)

        video_url = await self._uploader.upload(artifact, on_complete)
        if video_url is None:
            reason = self._uploader.last_error.detail if self._uploader.last_error else "unknown"
            return RecordingOutcome(
                artifact=artifact,
                error=f"Failed to upload video: {reason}",
                time_limit_reached=time_limit_reached,
            )

        outcome = RecordingOutcome(
            artifact=artifact,
            video_url=video_url,
            time_limit_reached=time_limit_reached,
        )
        if self._exercise_id is not None:
            if not await self._uploader.submit_progress(self._exercise_id, video_url):
                outcome.error = "Failed to update progress"
        return outcome

    async def rerecord(
        self,
        previous_url: str | None,
        duration: float,
        on_complete: CompletionCallback | None = None,
    ) -> RecordingOutcome:
        """Delete the previous submission, then record a new take."""
        if previous_url and not await self._uploader.delete(previous_url):
            return RecordingOutcome(error="Failed to delete previous video")
        return await self.record(duration, on_complete)
