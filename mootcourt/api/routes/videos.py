"""
Video upload, delete and streaming endpoints.

The capture client posts recordings to ``/api/upload-video`` and receives a
``/api/video/<url-encoded key>`` reference; ``/api/delete-video`` frees a
previous submission before re-recording.
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from mootcourt.api.deps import get_current_user, get_video_store, require_admin
from mootcourt.core.config import get_settings
from mootcourt.core.exceptions import ValidationFailedError, VideoNotFoundError
from mootcourt.core.models import (
    DeleteVideoRequest,
    MessageResponse,
    UserResponse,
    VideoUploadResponse,
)
from mootcourt.services.storage.video_store import VideoStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["videos"])

VIDEO_MEDIA_TYPE = "video/webm"


def _check_owner(key: str, user: UserResponse) -> None:
    # Other users' videos are reported as missing; admins see every video
    if not user.is_admin and VideoStore.owner_of(key) != user.id:
        raise VideoNotFoundError(key)


@router.post("/upload-video", response_model=VideoUploadResponse)
async def upload_video(
    video: UploadFile | None = File(None),
    user: UserResponse = Depends(get_current_user),
    store: VideoStore = Depends(get_video_store),
):
    """Store a recording and return its reference URL."""
    if video is None:
        raise ValidationFailedError("No video file provided")

    data = await video.read()
    if not data:
        raise ValidationFailedError("Uploaded video is empty")
    if len(data) > get_settings().upload_max_bytes:
        raise ValidationFailedError("Video exceeds the maximum upload size")

    logger.info(
        "Upload from user %s: %s (%d bytes, %s)",
        user.id,
        video.filename,
        len(data),
        video.content_type,
    )
    key = store.save(user.id, data)
    return VideoUploadResponse(video_url=store.url_for(key))


@router.post("/delete-video", response_model=MessageResponse)
async def delete_video(
    body: DeleteVideoRequest,
    user: UserResponse = Depends(get_current_user),
    store: VideoStore = Depends(get_video_store),
):
    if not body.video_url:
        raise ValidationFailedError("Video URL is required")
    key = store.key_from_url(body.video_url)
    if key is None:
        raise ValidationFailedError("Invalid video URL format")
    _check_owner(key, user)

    store.delete(key)
    return MessageResponse(message="Video deleted successfully")


@router.get("/video/{filename:path}")
async def serve_video(
    filename: str,
    user: UserResponse = Depends(get_current_user),
    store: VideoStore = Depends(get_video_store),
) -> FileResponse:
    """Stream a stored recording (404 when missing or empty); honours Range requests."""
    _check_owner(filename, user)
    return FileResponse(
        store.file_for(filename),
        media_type=VIDEO_MEDIA_TYPE,
        headers={"Cache-Control": "public, max-age=31536000"},
    )


@router.get("/debug/storage-health")
async def storage_health(
    _admin: UserResponse = Depends(require_admin),
    store: VideoStore = Depends(get_video_store),
) -> dict:
    """Write / read / delete probe against the video store."""
    return store.health_check()
