"""
Host media subsystem interface.

The recording pipeline never talks to a camera directly. A :class:`MediaHost`
grants :class:`MediaStream` objects and builds :class:`NativeRecorder`
instances bound to them; concrete hosts wrap a browser bridge, a native
capture stack, or (for tooling and tests) a file on disk.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mootcourt.capture.artifact import Chunk


class HostMediaError(Exception):
    """Failure reported by the host media subsystem.

    ``name`` follows the host's error vocabulary (``NotAllowedError``,
    ``NotFoundError``, ...) and is classified by
    :func:`mootcourt.capture.devices.classify_device_error`.
    """

    def __init__(self, name: str, message: str = "") -> None:
        self.name = name
        self.message = message
        super().__init__(f"{name}: {message}" if message else name)


@dataclass(frozen=True)
class CaptureConstraints:
    """Resolution and processing hints passed to the host."""

    width: int = 1280
    max_width: int = 1920
    height: int = 720
    max_height: int = 1080
    frame_rate: int = 30
    echo_cancellation: bool = True
    noise_suppression: bool = True
    sample_rate: int = 44100

    def as_media_constraints(self) -> dict[str, Any]:
        """Return the constraints in ``getUserMedia`` shape."""
        return {
            "video": {
                "width": {"ideal": self.width, "max": self.max_width},
                "height": {"ideal": self.height, "max": self.max_height},
                "frameRate": {"ideal": self.frame_rate},
            },
            "audio": {
                "echoCancellation": self.echo_cancellation,
                "noiseSuppression": self.noise_suppression,
                "sampleRate": {"ideal": self.sample_rate},
            },
        }


class MediaTrack:
    """A single live video or audio track."""

    def __init__(self, kind: str, label: str = "") -> None:
        self.kind = kind
        self.label = label
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def stop(self) -> None:
        """Release the underlying device; safe to call repeatedly."""
        self._stopped = True

    def __repr__(self) -> str:
        return f"<MediaTrack kind={self.kind!r} stopped={self._stopped}>"


class MediaStream:
    """A set of tracks granted together by the host."""

    def __init__(self, tracks: list[MediaTrack] | None = None) -> None:
        self._tracks = list(tracks or [])

    @property
    def tracks(self) -> list[MediaTrack]:
        return list(self._tracks)

    def video_tracks(self) -> list[MediaTrack]:
        return [track for track in self._tracks if track.kind == "video"]

    def audio_tracks(self) -> list[MediaTrack]:
        return [track for track in self._tracks if track.kind == "audio"]

    @property
    def active(self) -> bool:
        return any(not track.stopped for track in self._tracks)

    def stop(self) -> None:
        for track in self._tracks:
            track.stop()


class NativeRecorder(ABC):
    """Host recorder bound to one stream.

    The owner registers callbacks with :meth:`bind`. Implementations must
    deliver every data event for a recording before its stop event, and
    call ``on_stop`` exactly once per :meth:`stop`.
    """

    def __init__(self, mime_type: str) -> None:
        self.mime_type = mime_type
        self._on_data: Callable[[Chunk], None] | None = None
        self._on_stop: Callable[[], None] | None = None
        self._on_error: Callable[[Exception], None] | None = None

    def bind(
        self,
        on_data: Callable[[Chunk], None],
        on_stop: Callable[[], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        self._on_data = on_data
        self._on_stop = on_stop
        self._on_error = on_error

    @property
    @abstractmethod
    def state(self) -> str:
        """``"inactive"`` or ``"recording"``."""

    @abstractmethod
    def start(self, timeslice: float) -> None:
        """Begin recording, emitting a data event every *timeslice* seconds."""

    @abstractmethod
    def request_data(self) -> None:
        """Flush whatever has been captured since the last data event."""

    @abstractmethod
    def stop(self) -> None:
        """Stop recording; the final data event precedes the stop event."""

    def _emit_data(self, chunk: Chunk) -> None:
        if self._on_data is not None:
            self._on_data(chunk)

    def _emit_stop(self) -> None:
        if self._on_stop is not None:
            self._on_stop()

    def _emit_error(self, exc: Exception) -> None:
        if self._on_error is not None:
            self._on_error(exc)


class MediaHost(ABC):
    """Entry point to the host's capture devices."""

    @abstractmethod
    async def get_user_media(self, constraints: CaptureConstraints) -> MediaStream:
        """Request camera and microphone access.

        Raises:
            HostMediaError: If access is refused or no device is usable.
        """

    @abstractmethod
    def create_recorder(self, stream: MediaStream, mime_type: str) -> NativeRecorder:
        """Build a recorder bound to *stream*."""

    def is_type_supported(self, mime_type: str) -> bool:
        return True
