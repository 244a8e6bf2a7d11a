"""Recording pipeline: device acquisition, recorder, artifact assembly and upload."""

from mootcourt.capture.artifact import Artifact, Chunk, ChunkBuffer, assemble
from mootcourt.capture.devices import (
    DeviceAccessError,
    DeviceErrorKind,
    PreviewSurface,
    StreamHandle,
    describe_device_error,
)
from mootcourt.capture.errors import CaptureError, EmptyRecordingError, RecorderError
from mootcourt.capture.host import (
    CaptureConstraints,
    HostMediaError,
    MediaHost,
    MediaStream,
    MediaTrack,
    NativeRecorder,
)
from mootcourt.capture.recorder import RecorderState, VideoRecorder
from mootcourt.capture.replay import FileReplayHost
from mootcourt.capture.session import RecordingOutcome, RecordingSession
from mootcourt.capture.upload import UploadError, VideoUploader

__all__ = [
    "Artifact",
    "CaptureConstraints",
    "CaptureError",
    "Chunk",
    "ChunkBuffer",
    "DeviceAccessError",
    "DeviceErrorKind",
    "EmptyRecordingError",
    "FileReplayHost",
    "HostMediaError",
    "MediaHost",
    "MediaStream",
    "MediaTrack",
    "NativeRecorder",
    "PreviewSurface",
    "RecorderError",
    "RecorderState",
    "RecordingOutcome",
    "RecordingSession",
    "StreamHandle",
    "UploadError",
    "VideoRecorder",
    "VideoUploader",
    "assemble",
    "describe_device_error",
]
