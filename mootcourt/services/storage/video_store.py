"""Filesystem-backed storage for uploaded practice videos.

Videos live under ``settings.videos_dir`` with keys of the form
``videos/{user_id}_{timestamp_ms}.webm``. The public reference URL is
``/api/video/<url-encoded key>``; :meth:`VideoStore.key_from_url` reverses it.
"""

import logging
import re
import time
from pathlib import Path
from urllib.parse import quote, unquote

from mootcourt.core.config import get_settings
from mootcourt.core.exceptions import VideoNotFoundError, VideoStorageError

logger = logging.getLogger(__name__)

VIDEO_URL_PREFIX = "/api/video/"
_VIDEO_URL_RE = re.compile(r"/api/video/(.+)$")
_OWNER_RE = re.compile(r"^videos/(\d+)_")


class VideoStore:
    """Stores, serves and deletes video blobs on local disk.

    Args:
        root: Directory under which keys are resolved. Defaults to
            ``settings.videos_dir``.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self._root = Path(root or get_settings().videos_dir).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        """Resolve *key* to an absolute path inside the store root.

        Raises:
            VideoNotFoundError: If the key escapes the root directory.
        """
        resolved = (self._root / key).resolve()
        # Prevent path traversal: keys must stay inside the store root
        if not resolved.is_relative_to(self._root):
            raise VideoNotFoundError(key)
        return resolved

    @staticmethod
    def url_for(key: str) -> str:
        return VIDEO_URL_PREFIX + quote(key, safe="")

    @staticmethod
    def key_from_url(video_url: str) -> str | None:
        """Extract the storage key from a reference URL, or None if malformed."""
        match = _VIDEO_URL_RE.search(video_url)
        if not match:
            return None
        return unquote(match.group(1))

    @staticmethod
    def owner_of(key: str) -> int | None:
        """User id encoded in *key*, or None for keys not written by :meth:`save`."""
        match = _OWNER_RE.match(key)
        return int(match.group(1)) if match else None

    def save(self, user_id: int, data: bytes, extension: str = "webm") -> str:
        """Write *data* under a fresh per-user key and return the key.

        Raises:
            VideoStorageError: If the file cannot be written.
        """
        key = f"videos/{user_id}_{int(time.time() * 1000)}.{extension}"
        path = self.path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            logger.error("Failed to store video %s: %s", key, exc)
            raise VideoStorageError(f"Failed to upload video: {exc}") from exc
        logger.info("Stored video %s (%d bytes)", key, len(data))
        return key

    def file_for(self, key: str) -> Path:
        """Return the path of a stored, non-empty video.

        Raises:
            VideoNotFoundError: If the file is missing or empty.
        """
        path = self.path_for(key)
        if not path.is_file() or path.stat().st_size == 0:
            raise VideoNotFoundError(key)
        return path

    def read(self, key: str) -> bytes:
        """Return the stored bytes for *key*."""
        return self.file_for(key).read_bytes()

    def delete(self, key: str) -> None:
        """Remove the file for *key*.

        Raises:
            VideoNotFoundError: If no such file exists.
            VideoStorageError: If the file exists but cannot be removed.
        """
        path = self.path_for(key)
        if not path.is_file():
            raise VideoNotFoundError(key)
        try:
            path.unlink()
        except OSError as exc:
            logger.error("Failed to delete video %s: %s", key, exc)
            raise VideoStorageError("Failed to delete video from storage") from exc
        logger.info("Deleted video %s", key)

    def list_keys(self) -> list[str]:
        """Return every stored key, sorted."""
        if not self._root.is_dir():
            return []
        return sorted(
            path.relative_to(self._root).as_posix()
            for path in self._root.rglob("*")
            if path.is_file()
        )

    def health_check(self) -> dict:
        """Probe the store with a write / read / delete round trip."""
        keys = self.list_keys()
        total_bytes = sum(self.path_for(key).stat().st_size for key in keys)
        probe = self.path_for(f"health/probe-{int(time.time() * 1000)}.txt")
        payload = b"test-data"
        try:
            probe.parent.mkdir(parents=True, exist_ok=True)
            probe.write_bytes(payload)
            readable = probe.read_bytes() == payload
            probe.unlink()
            writable = True
            error = None
        except OSError as exc:
            logger.error("Video store health check failed: %s", exc)
            writable = readable = False
            error = str(exc)
        return {
            "root": str(self._root),
            "writable": writable,
            "readable": readable,
            "video_count": len(keys),
            "total_bytes": total_bytes,
            "error": error,
        }
