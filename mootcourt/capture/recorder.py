"""Recorder state machine.

``VideoRecorder`` drives a host :class:`NativeRecorder` through
``inactive -> recording -> inactive``. Data events append to a
:class:`ChunkBuffer`; :meth:`VideoRecorder.stop` requests a final flush and
waits for the native stop acknowledgment, which the host delivers only after
the last data event, before assembling the artifact.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from enum import StrEnum

from mootcourt.capture.artifact import DEFAULT_MIME_TYPE, Artifact, Chunk, ChunkBuffer, assemble
from mootcourt.capture.devices import StreamHandle
from mootcourt.capture.errors import RecorderError
from mootcourt.capture.host import NativeRecorder

logger = logging.getLogger(__name__)

RECORDING_FAILED_MESSAGE = "Recording failed due to an error"


class RecorderState(StrEnum):
    inactive = "inactive"
    recording = "recording"


class VideoRecorder:
    """Records the handle's stream into periodic chunks.

    Args:
        handle: An acquired stream handle; released by :meth:`close`.
        timeslice: Seconds between periodic flushes.
        max_duration: Recording is stopped automatically after this many seconds.
        mime_type: Preferred container type, used when the host supports it.
        stop_timeout: Upper bound on waiting for the stop acknowledgment.
        clock: Monotonic time source (overridden in tests).
    """

    def __init__(
        self,
        handle: StreamHandle,
        timeslice: float = 1.0,
        max_duration: float = 300.0,
        mime_type: str = DEFAULT_MIME_TYPE,
        stop_timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._handle = handle
        self._timeslice = timeslice
        self._max_duration = max_duration
        self._mime_type = mime_type
        self._stop_timeout = stop_timeout
        self._clock = clock

        self._state = RecorderState.inactive
        self._chunks = ChunkBuffer()
        self._native: NativeRecorder | None = None
        self._stopped = asyncio.Event()
        self._stop_requested = False
        self._guard: asyncio.Task | None = None
        self._error: RecorderError | None = None
        self._started_at: float | None = None
        self._elapsed = 0.0
        self._time_limit_reached = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def chunks(self) -> ChunkBuffer:
        return self._chunks

    @property
    def error(self) -> RecorderError | None:
        return self._error

    @property
    def time_limit_reached(self) -> bool:
        return self._time_limit_reached

    @property
    def elapsed(self) -> float:
        """Seconds recorded so far (or in total, once stopped)."""
        if self._state is RecorderState.recording and self._started_at is not None:
            return self._clock() - self._started_at
        return self._elapsed

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Move ``inactive -> recording``.

        Raises:
            RecorderError: If no stream is held, a recording is already
                running, or the host cannot create a recorder.
        """
        stream = self._handle.stream
        if stream is None:
            raise RecorderError("No media stream available")
        if self._state is RecorderState.recording:
            raise RecorderError("Recording already in progress")

        self._chunks.clear()
        self._error = None
        self._time_limit_reached = False
        self._stop_requested = False
        self._stopped = asyncio.Event()
        self._elapsed = 0.0

        host = self._handle.host
        mime_type = self._mime_type if host.is_type_supported(self._mime_type) else ""
        try:
            native = host.create_recorder(stream, mime_type)
        except Exception as exc:
            logger.error("Failed to create native recorder: %s", exc)
            message = f"Failed to create MediaRecorder: {exc}"
            raise RecorderError(message, user_message=message) from exc

        native.bind(self._on_data, self._on_stop, self._on_error)
        self._native = native
        native.start(self._timeslice)

        self._state = RecorderState.recording
        self._started_at = self._clock()
        self._guard = asyncio.create_task(self._enforce_time_limit())
        logger.info("Recording started (timeslice=%.1fs)", self._timeslice)

    async def stop(self) -> Artifact:
        """Stop recording and return the assembled artifact.

        Also collects the artifact of a recording that was already stopped
        by the max-duration guard.

        Raises:
            RecorderError: If nothing is recording, the native recorder
                failed, or the stop acknowledgment never arrived.
            EmptyRecordingError: If no data was captured.
        """
        if self._error is not None:
            raise self._error
        if self._native is None:
            raise RecorderError("Recorder is not recording")

        if self._state is RecorderState.recording:
            self._request_stop()
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=self._stop_timeout)
        except TimeoutError as exc:
            raise RecorderError(
                "Recorder did not acknowledge stop", user_message=RECORDING_FAILED_MESSAGE
            ) from exc
        finally:
            self._cancel_guard()

        if self._error is not None:
            raise self._error

        self._native = None
        try:
            return assemble(self._chunks)
        finally:
            self._chunks.clear()

    async def wait_for_stop(self, timeout: float | None = None) -> bool:
        """Wait until the recording stops on its own or *timeout* elapses.

        Returns:
            True if the recorder stopped (time limit or native error).
        """
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def close(self) -> None:
        """Tear down: stop any native recorder, drop chunks, release the stream."""
        self._cancel_guard()
        native = self._native
        if native is not None and native.state != RecorderState.inactive:
            native.stop()
        self._native = None
        self._state = RecorderState.inactive
        self._chunks.clear()
        self._handle.release()

    async def __aenter__(self) -> "VideoRecorder":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request_stop(self) -> None:
        if self._stop_requested or self._native is None:
            return
        self._stop_requested = True
        logger.info("Stopping recording...")
        # Final flush first; the host emits it before the stop event
        self._native.request_data()
        self._native.stop()

    def _cancel_guard(self) -> None:
        guard = self._guard
        self._guard = None
        if guard is not None and not guard.done() and guard is not asyncio.current_task():
            guard.cancel()

    async def _enforce_time_limit(self) -> None:
        await asyncio.sleep(self._max_duration)
        if self._state is RecorderState.recording:
            self._time_limit_reached = True
            logger.info("Time limit of %.0fs reached, stopping recording", self._max_duration)
            self._request_stop()

    def _finish(self) -> None:
        self._cancel_guard()
        if self._started_at is not None:
            self._elapsed = self._clock() - self._started_at
        self._started_at = None
        self._state = RecorderState.inactive
        self._stopped.set()

    def _on_data(self, chunk: Chunk) -> None:
        self._chunks.append(chunk)

    def _on_stop(self) -> None:
        logger.info("Recording stopped, chunks: %d", len(self._chunks))
        if not len(self._chunks):
            logger.warning("No data collected during recording")
        self._finish()

    def _on_error(self, exc: Exception) -> None:
        logger.error("Native recorder error: %s", exc)
        self._error = RecorderError(RECORDING_FAILED_MESSAGE, user_message=RECORDING_FAILED_MESSAGE)
        self._finish()
