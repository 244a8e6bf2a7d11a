"""End-to-end tests for RecordingSession and the file replay host."""

import httpx
import pytest

from mootcourt.capture.replay import FileReplayHost
from mootcourt.capture.session import RecordingSession
from mootcourt.capture.upload import VideoUploader

VIDEO_URL = "/api/video/videos%2F1_1700000000000.webm"


class FakeServer:
    """Records requests and answers per path."""

    def __init__(self, responses: dict[str, httpx.Response] | None = None) -> None:
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path in self.responses:
            return self.responses[request.url.path]
        if request.url.path == "/api/upload-video":
            return httpx.Response(200, json={"videoUrl": VIDEO_URL})
        return httpx.Response(200, json={"message": "ok"})

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def uploader(server):
    return VideoUploader("http://server", client=httpx.AsyncClient(transport=httpx.MockTransport(server)))


# ---------------------------------------------------------------------------
# record()
# ---------------------------------------------------------------------------


async def test_record_uploads_artifact(media_host, uploader, server) -> None:
    media_host.next_final_chunk = b"v" * 300
    session = RecordingSession(media_host, uploader)
    completed = []

    outcome = await session.record(0.01, on_complete=lambda a, u: completed.append(u))

    assert outcome.uploaded
    assert outcome.error is None
    assert outcome.video_url == VIDEO_URL
    assert outcome.artifact.size == 300
    assert completed == [VIDEO_URL]
    assert server.paths == ["/api/upload-video"]
    # Devices are released once the take is over
    assert not media_host.streams[0].active


async def test_record_submits_progress(media_host, uploader, server) -> None:
    media_host.next_final_chunk = b"v" * 10
    outcome = await RecordingSession(media_host, uploader, exercise_id=4).record(0.01)
    assert outcome.error is None
    assert server.paths == ["/api/upload-video", "/api/progress/4"]


async def test_progress_failure_reported(media_host) -> None:
    server = FakeServer({"/api/progress/4": httpx.Response(404, json={"message": "Exercise not found"})})
    uploader = VideoUploader("http://server", client=httpx.AsyncClient(transport=httpx.MockTransport(server)))
    media_host.next_final_chunk = b"v" * 10

    outcome = await RecordingSession(media_host, uploader, exercise_id=4).record(0.01)

    assert outcome.uploaded
    assert outcome.error == "Failed to update progress"


async def test_device_denied(make_host, uploader, server) -> None:
    outcome = await RecordingSession(make_host(error="NotAllowedError"), uploader).record(0.01)
    assert outcome.artifact is None
    assert outcome.error == (
        "Failed to access camera and microphone. "
        "Permission denied. Please allow camera and microphone access."
    )
    assert server.requests == []


async def test_empty_recording(media_host, uploader, server) -> None:
    outcome = await RecordingSession(media_host, uploader).record(0.01)
    assert outcome.error == "Failed to process recording: No recording data available"
    assert server.requests == []
    assert not media_host.streams[0].active


async def test_upload_failure_keeps_artifact(media_host) -> None:
    server = FakeServer({"/api/upload-video": httpx.Response(500, json={"message": "disk full"})})
    uploader = VideoUploader("http://server", client=httpx.AsyncClient(transport=httpx.MockTransport(server)))
    media_host.next_final_chunk = b"v" * 50

    outcome = await RecordingSession(media_host, uploader).record(0.01)

    assert not outcome.uploaded
    assert outcome.artifact.size == 50
    assert outcome.error == "Failed to upload video: disk full"


async def test_time_limit_flagged(media_host, uploader) -> None:
    media_host.next_final_chunk = b"v" * 10
    session = RecordingSession(media_host, uploader, max_duration=0.02)
    outcome = await session.record(5.0)
    assert outcome.time_limit_reached
    assert outcome.uploaded


# ---------------------------------------------------------------------------
# rerecord()
# ---------------------------------------------------------------------------


async def test_rerecord_deletes_previous_first(media_host, uploader, server) -> None:
    media_host.next_final_chunk = b"v" * 10
    outcome = await RecordingSession(media_host, uploader).rerecord("/api/video/old.webm", 0.01)
    assert outcome.uploaded
    assert server.paths == ["/api/delete-video", "/api/upload-video"]


async def test_rerecord_stops_when_delete_fails(media_host) -> None:
    server = FakeServer({"/api/delete-video": httpx.Response(500, json={"message": "nope"})})
    uploader = VideoUploader("http://server", client=httpx.AsyncClient(transport=httpx.MockTransport(server)))

    outcome = await RecordingSession(media_host, uploader).rerecord("/api/video/old.webm", 0.01)

    assert outcome.error == "Failed to delete previous video"
    assert media_host.streams == []


# ---------------------------------------------------------------------------
# FileReplayHost
# ---------------------------------------------------------------------------


async def test_replay_host_reproduces_file(tmp_path, uploader) -> None:
    """Replaying a file through the pipeline uploads identical bytes."""
    source = tmp_path / "take.webm"
    payload = bytes(range(256)) * 4
    source.write_bytes(payload)
    host = FileReplayHost(source, mime_type="video/webm", bytes_per_second=1000, speed=10.0)

    outcome = await RecordingSession(host, uploader).record(host.estimated_duration() + 0.3)

    assert outcome.error is None
    assert outcome.artifact.data == payload
    assert outcome.artifact.mime_type == "video/webm"


async def test_replay_host_missing_file(tmp_path, uploader) -> None:
    host = FileReplayHost(tmp_path / "missing.webm")
    outcome = await RecordingSession(host, uploader).record(0.01)
    assert outcome.error == "Failed to access camera and microphone. No camera or microphone found."


def test_replay_host_type_support(tmp_path) -> None:
    host = FileReplayHost(tmp_path / "clip.mp4", mime_type="video/mp4")
    assert host.is_type_supported("video/mp4")
    assert not host.is_type_supported("video/webm")
