"""Integration test fixtures for MootCourt.

Provides an async HTTP client against a fresh app that uses the in-memory
SQLite engine, a temporary video store, and helpers that mint bearer
tokens for regular and admin users.
"""

from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from mootcourt.api.app import create_app
from mootcourt.api.deps import get_video_store
from mootcourt.core.security import create_access_token, hash_password
from mootcourt.services import analysis
from mootcourt.services.storage import database
from mootcourt.services.storage.database import get_session
from mootcourt.services.storage.repository import TrainingRepository
from mootcourt.services.storage.video_store import VideoStore

PASSWORD = "correct-horse"


@pytest.fixture
def video_store(tmp_path):
    return VideoStore(tmp_path / "videos")


@pytest.fixture
def app(video_store):
    """Create a fresh FastAPI application with a temporary video store."""
    application = create_app()
    application.dependency_overrides[get_video_store] = lambda: video_store
    return application


@pytest.fixture
def scheduled(monkeypatch):
    """Replace background analysis scheduling with a recording mock."""
    mock = MagicMock()
    monkeypatch.setattr(analysis, "schedule_analysis", mock)
    return mock


@pytest.fixture
async def async_client(app, db_engine, scheduled):
    """AsyncClient backed by the in-memory test engine.

    Injects the test engine into the database module so that all routes
    use the same in-memory SQLite with tables already created.
    """
    database._engine = db_engine
    database._session_factory = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    database.reset_engine()


@pytest.fixture
def make_user(async_client):
    """Create a user directly in the database and return ``(user_id, headers)``."""

    async def _make(username: str = "trainee", is_admin: bool = False):
        async with get_session() as session:
            user = await TrainingRepository(session).create_user(
                username=username,
                password_hash=hash_password(PASSWORD),
                email=f"{username}@example.org",
                is_admin=is_admin,
            )
            user_id = user.id
        return user_id, {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _make


@pytest.fixture
async def user_headers(make_user):
    _user_id, headers = await make_user("trainee")
    return headers


@pytest.fixture
async def admin_headers(make_user):
    _user_id, headers = await make_user("judge", is_admin=True)
    return headers


@pytest.fixture
async def exercise_id(async_client, admin_headers):
    """Create one exercise through the admin API."""
    resp = await async_client.post(
        "/api/admin/exercises",
        headers=admin_headers,
        json={
            "title": "Opening Submissions",
            "description": "Outline your argument.",
            "demoVideoUrl": "https://v/demo.mp4",
            "professionalAnswerUrl": "https://v/pro.mp4",
            "order": 1,
            "switchTimes": [12.5],
        },
    )
    assert resp.status_code == 200
    return resp.json()["id"]
