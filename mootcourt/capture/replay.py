"""File-backed media host.

``FileReplayHost`` stands in for a camera: it "grants" a video + audio stream
and replays an existing recording as periodic chunks, so the full pipeline
can run from a script or a CI job without capture hardware.
"""

import asyncio
import logging
import mimetypes
from pathlib import Path

from mootcourt.capture.artifact import DEFAULT_MIME_TYPE, Chunk
from mootcourt.capture.host import (
    CaptureConstraints,
    HostMediaError,
    MediaHost,
    MediaStream,
    MediaTrack,
    NativeRecorder,
)

logger = logging.getLogger(__name__)


class ReplayRecorder(NativeRecorder):
    """Emits slices of *data* at ``bytes_per_second``.

    ``speed`` compresses wall-clock time: at 4.0 each timeslice worth of data
    is emitted four times faster.
    """

    def __init__(
        self,
        data: bytes,
        mime_type: str,
        bytes_per_second: int,
        speed: float = 1.0,
    ) -> None:
        super().__init__(mime_type)
        self._data = data
        self._bytes_per_second = bytes_per_second
        self._speed = speed
        self._cursor = 0
        self._state = "inactive"
        self._task: asyncio.Task | None = None
        self._last_flush = 0.0

    @property
    def state(self) -> str:
        return self._state

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self._data)

    def start(self, timeslice: float) -> None:
        loop = asyncio.get_running_loop()
        self._state = "recording"
        self._last_flush = loop.time()
        self._task = loop.create_task(self._tick(timeslice))

    async def _tick(self, timeslice: float) -> None:
        while True:
            await asyncio.sleep(timeslice / self._speed)
            self._flush(timeslice)

    def _flush(self, seconds: float) -> None:
        self._last_flush = asyncio.get_running_loop().time()
        size = int(self._bytes_per_second * seconds)
        piece = self._data[self._cursor : self._cursor + size]
        self._cursor += len(piece)
        self._emit_data(Chunk(data=piece, mime_type=self.mime_type))

    def request_data(self) -> None:
        if self._state != "recording":
            return
        pending = (asyncio.get_running_loop().time() - self._last_flush) * self._speed
        self._flush(pending)

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if self._state == "inactive":
            return
        self._state = "inactive"
        # Stop is acknowledged after any data already emitted
        asyncio.get_running_loop().call_soon(self._emit_stop)


class FileReplayHost(MediaHost):
    """Media host that replays a file instead of opening devices.

    Args:
        path: Recording to replay.
        mime_type: Reported chunk type; guessed from the extension when omitted.
        bytes_per_second: Replay rate.
        speed: Wall-clock speed-up factor.
    """

    def __init__(
        self,
        path: str | Path,
        mime_type: str | None = None,
        bytes_per_second: int = 256 * 1024,
        speed: float = 1.0,
    ) -> None:
        self._path = Path(path)
        guessed, _ = mimetypes.guess_type(self._path.name)
        self._mime_type = mime_type or guessed or DEFAULT_MIME_TYPE
        self._bytes_per_second = bytes_per_second
        self._speed = speed

    @property
    def path(self) -> Path:
        return self._path

    def estimated_duration(self) -> float:
        """Wall-clock seconds needed to replay the whole file."""
        size = self._path.stat().st_size
        return size / self._bytes_per_second / self._speed

    async def get_user_media(self, constraints: CaptureConstraints) -> MediaStream:
        if not self._path.is_file():
            raise HostMediaError("NotFoundError", f"Replay source not found: {self._path}")
        logger.debug("Replaying %s with constraints %s", self._path, constraints)
        return MediaStream(
            [MediaTrack("video", label=self._path.name), MediaTrack("audio", label=self._path.name)]
        )

    def create_recorder(self, stream: MediaStream, mime_type: str) -> NativeRecorder:
        data = self._path.read_bytes()
        return ReplayRecorder(
            data,
            mime_type=self._mime_type,
            bytes_per_second=self._bytes_per_second,
            speed=self._speed,
        )

    def is_type_supported(self, mime_type: str) -> bool:
        return mime_type == self._mime_type
