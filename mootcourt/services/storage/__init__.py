"""
Storage module - Database and video file operations.
"""

from mootcourt.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from mootcourt.services.storage.models_db import (
    AIModel,
    Exercise,
    Feedback,
    PasswordResetToken,
    Progress,
    Tool,
    User,
)
from mootcourt.services.storage.repository import TrainingRepository
from mootcourt.services.storage.video_store import VideoStore

__all__ = [
    "AIModel",
    "Base",
    "Exercise",
    "Feedback",
    "PasswordResetToken",
    "Progress",
    "Tool",
    "TrainingRepository",
    "User",
    "VideoStore",
    "close_db",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
