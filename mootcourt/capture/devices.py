"""Camera and microphone acquisition.

:class:`StreamHandle` owns the live stream for one recorder: it requests
devices from the host, insists on both a video and an audio track, binds the
stream to a mirrored, muted preview, and releases every track on teardown.

Usage::

    async with StreamHandle(host) as handle:
        recorder = VideoRecorder(handle)
        ...
"""

import logging
from enum import StrEnum

from mootcourt.capture.errors import CaptureError
from mootcourt.capture.host import CaptureConstraints, HostMediaError, MediaHost, MediaStream

logger = logging.getLogger(__name__)

DEVICE_ERROR_PREFIX = "Failed to access camera and microphone. "


class DeviceErrorKind(StrEnum):
    """Classified causes of an acquisition failure."""

    permission_denied = "permission_denied"
    not_found = "not_found"
    device_busy = "device_busy"
    overconstrained = "overconstrained"
    security = "security"
    unsupported = "unsupported"
    unknown = "unknown"


# Host error names (including legacy aliases) -> kind
_ERROR_NAMES: dict[str, DeviceErrorKind] = {
    "NotAllowedError": DeviceErrorKind.permission_denied,
    "PermissionDeniedError": DeviceErrorKind.permission_denied,
    "NotFoundError": DeviceErrorKind.not_found,
    "DevicesNotFoundError": DeviceErrorKind.not_found,
    "NotReadableError": DeviceErrorKind.device_busy,
    "TrackStartError": DeviceErrorKind.device_busy,
    "OverconstrainedError": DeviceErrorKind.overconstrained,
    "ConstraintNotSatisfiedError": DeviceErrorKind.overconstrained,
    "SecurityError": DeviceErrorKind.security,
    "NotSupportedError": DeviceErrorKind.unsupported,
}

_MESSAGES: dict[DeviceErrorKind, str] = {
    DeviceErrorKind.permission_denied: (
        "Permission denied. Please allow camera and microphone access."
    ),
    DeviceErrorKind.not_found: "No camera or microphone found.",
    DeviceErrorKind.device_busy: "Camera is already in use by another application.",
    DeviceErrorKind.overconstrained: "Camera constraints could not be satisfied.",
    DeviceErrorKind.security: "Access denied due to security restrictions.",
    DeviceErrorKind.unsupported: "Media capture is not supported on this host.",
}


def classify_device_error(name: str) -> DeviceErrorKind:
    return _ERROR_NAMES.get(name, DeviceErrorKind.unknown)


def describe_device_error(kind: DeviceErrorKind, detail: str = "") -> str:
    """Return the user-facing message for an acquisition failure.

    Unclassified failures fall back to the raw *detail*.
    """
    sentence = _MESSAGES.get(kind) or detail or "Unknown error"
    return DEVICE_ERROR_PREFIX + sentence


class DeviceAccessError(CaptureError):
    """Raised when camera/microphone access fails."""

    def __init__(self, kind: DeviceErrorKind, detail: str = "") -> None:
        self.kind = kind
        super().__init__(detail or kind.value, user_message=describe_device_error(kind, detail))


class PreviewSurface:
    """Where the live stream is shown for self view.

    The preview is mirrored horizontally and muted so the user does not
    hear their own microphone.
    """

    def __init__(self, mirrored: bool = True, muted: bool = True) -> None:
        self.mirrored = mirrored
        self.muted = muted
        self.stream: MediaStream | None = None

    @property
    def attached(self) -> bool:
        return self.stream is not None

    def attach(self, stream: MediaStream) -> None:
        self.stream = stream

    def clear(self) -> None:
        self.stream = None


class StreamHandle:
    """Exclusively owned live capture stream.

    Args:
        host: The host media subsystem.
        constraints: Resolution / processing hints.
        preview: Surface the stream is bound to on success.
    """

    def __init__(
        self,
        host: MediaHost,
        constraints: CaptureConstraints | None = None,
        preview: PreviewSurface | None = None,
    ) -> None:
        self._host = host
        self._constraints = constraints or CaptureConstraints()
        self._preview = preview or PreviewSurface()
        self._stream: MediaStream | None = None

    @property
    def host(self) -> MediaHost:
        return self._host

    @property
    def preview(self) -> PreviewSurface:
        return self._preview

    @property
    def stream(self) -> MediaStream | None:
        return self._stream

    @property
    def active(self) -> bool:
        return self._stream is not None

    async def acquire(self) -> MediaStream:
        """Request a fresh camera + microphone stream.

        Any stream already held is released first.

        Raises:
            DeviceAccessError: If access fails or either track is missing.
        """
        self.release()

        try:
            stream = await self._host.get_user_media(self._constraints)
        except HostMediaError as exc:
            kind = classify_device_error(exc.name)
            logger.error("Failed to initialize media stream: %s", exc)
            raise DeviceAccessError(kind, exc.message or str(exc)) from exc

        if not stream.video_tracks():
            stream.stop()
            raise DeviceAccessError(DeviceErrorKind.not_found, "No video track available")
        if not stream.audio_tracks():
            stream.stop()
            raise DeviceAccessError(DeviceErrorKind.not_found, "No audio track available")

        self._stream = stream
        self._preview.attach(stream)
        logger.info("Media stream initialized successfully")
        return stream

    def release(self) -> None:
        """Stop every track and clear the preview. Idempotent."""
        if self._stream is None:
            return
        self._stream.stop()
        self._stream = None
        self._preview.clear()
        logger.debug("Media stream released")

    async def __aenter__(self) -> "StreamHandle":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
