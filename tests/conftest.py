"""Shared pytest fixtures for the MootCourt test suite.

Provides the in-memory database, repository, and a scripted media host
used by the capture tests.
"""

import asyncio

import pytest

from mootcourt.capture.artifact import Chunk
from mootcourt.capture.host import (
    CaptureConstraints,
    HostMediaError,
    MediaHost,
    MediaStream,
    MediaTrack,
    NativeRecorder,
)

# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with tables, dispose after test."""
    from mootcourt.services.storage.database import create_engine_for, init_db

    engine = create_engine_for("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Yield an AsyncSession bound to the test engine; rolls back after test."""
    from sqlalchemy.ext.asyncio import async_sessionmaker

    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def repository(db_session):
    """Return a TrainingRepository bound to the test session."""
    from mootcourt.services.storage.repository import TrainingRepository

    return TrainingRepository(db_session)


# ---------------------------------------------------------------------------
# Capture Fixtures
# ---------------------------------------------------------------------------


class FakeNativeRecorder(NativeRecorder):
    """Scripted recorder: emits ``chunks`` on demand and acks stop on the next loop turn.

    ``start`` emits nothing; tests push data with :meth:`emit` and
    ``request_data`` flushes ``final_chunk`` when set.
    """

    def __init__(self, mime_type: str = "video/webm", final_chunk: bytes | None = None) -> None:
        super().__init__(mime_type)
        self._state = "inactive"
        self.final_chunk = final_chunk
        self.timeslice: float | None = None
        self.stop_calls = 0
        self.ack_stop = True

    @property
    def state(self) -> str:
        return self._state

    def start(self, timeslice: float) -> None:
        self.timeslice = timeslice
        self._state = "recording"

    def emit(self, data: bytes) -> None:
        self._emit_data(Chunk(data=data, mime_type=self.mime_type))

    def fail(self, exc: Exception) -> None:
        self._state = "inactive"
        self._emit_error(exc)

    def request_data(self) -> None:
        if self.final_chunk is not None:
            self.emit(self.final_chunk)
            self.final_chunk = None

    def stop(self) -> None:
        self.stop_calls += 1
        if self._state == "inactive":
            return
        self._state = "inactive"
        if self.ack_stop:
            asyncio.get_running_loop().call_soon(self._emit_stop)


class FakeMediaHost(MediaHost):
    """Media host returning a fixed stream and :class:`FakeNativeRecorder` instances.

    Args:
        error: ``HostMediaError`` name raised by ``get_user_media`` when set.
        tracks: Kinds of tracks in the granted stream.
    """

    def __init__(
        self,
        error: str | None = None,
        tracks: tuple[str, ...] = ("video", "audio"),
        supported: bool = True,
        recorder_error: Exception | None = None,
    ) -> None:
        self.error = error
        self.tracks = tracks
        self.supported = supported
        self.recorder_error = recorder_error
        self.requested: list[CaptureConstraints] = []
        self.streams: list[MediaStream] = []
        self.recorders: list[FakeNativeRecorder] = []
        self.next_final_chunk: bytes | None = None

    async def get_user_media(self, constraints: CaptureConstraints) -> MediaStream:
        self.requested.append(constraints)
        if self.error is not None:
            raise HostMediaError(self.error, f"{self.error} raised by fake host")
        stream = MediaStream([MediaTrack(kind, label=f"fake-{kind}") for kind in self.tracks])
        self.streams.append(stream)
        return stream

    def create_recorder(self, stream: MediaStream, mime_type: str) -> NativeRecorder:
        if self.recorder_error is not None:
            raise self.recorder_error
        recorder = FakeNativeRecorder(mime_type, final_chunk=self.next_final_chunk)
        self.recorders.append(recorder)
        return recorder

    def is_type_supported(self, mime_type: str) -> bool:
        return self.supported


@pytest.fixture
def media_host():
    """A :class:`FakeMediaHost` granting one video and one audio track."""
    return FakeMediaHost()


@pytest.fixture
def make_host():
    """Factory for :class:`FakeMediaHost` with custom failure modes."""
    return FakeMediaHost
