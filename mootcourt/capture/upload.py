"""
Async HTTP transport for recorded artifacts.

One multipart POST per artifact, no retry: a failed upload still hands the
artifact back through the completion callback (with no reference URL) so
the caller decides whether to keep it locally or record again.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable

import httpx

from mootcourt.capture.artifact import Artifact
from mootcourt.capture.errors import CaptureError

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload-video"
DELETE_PATH = "/api/delete-video"
UPLOAD_FILENAME = "recording.webm"

CompletionCallback = Callable[[Artifact, str | None], Awaitable[None] | None]


class UploadError(CaptureError):
    """Upload / delete failure with a category.

    Categories: "connection", "timeout", "http", "network".
    """

    def __init__(self, message: str, category: str = "network") -> None:
        self.category = category
        super().__init__(message)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or response.status_code)
    return str(body)


class VideoUploader:
    """Uploads artifacts to, and deletes submissions from, the server.

    Args:
        base_url: Server root, e.g. ``http://localhost:8000``.
        client: Optional ``httpx.AsyncClient`` (injected in tests); when
            given, the uploader does not close it.
        token: Bearer token sent with every request.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        client: httpx.AsyncClient | None = None,
        token: str | None = None,
        timeout: float = 120.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self._base_url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.last_error: UploadError | None = None

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute a request, translating every failure into :class:`UploadError`."""
        try:
            resp = await self._client.request(
                method, f"{self._base_url}{path}", headers=self._headers, **kwargs
            )
        except httpx.ConnectError:
            raise UploadError("Could not connect to the server", category="connection") from None
        except httpx.TimeoutException:
            raise UploadError("Upload timed out", category="timeout") from None
        except httpx.HTTPError as exc:
            raise UploadError(f"Network error: {exc}", category="network") from None

        if resp.is_error:
            raise UploadError(_error_message(resp), category="http")
        return resp

    async def upload(
        self,
        artifact: Artifact,
        on_complete: CompletionCallback | None = None,
    ) -> str | None:
        """POST *artifact* as multipart field ``video``.

        Calls ``on_complete(artifact, video_url)`` on success and
        ``on_complete(artifact, None)`` on any failure; *on_complete* may be
        a plain function or a coroutine function.

        Returns:
            The server's reference URL, or None if the upload failed.
        """
        self.last_error = None
        video_url: str | None = None
        files = {"video": (UPLOAD_FILENAME, artifact.data, artifact.mime_type)}
        try:
            resp = await self._request("POST", UPLOAD_PATH, files=files)
            try:
                body = resp.json()
            except ValueError:
                body = None
            candidate = body.get("videoUrl") if isinstance(body, dict) else None
            if not isinstance(candidate, str) or not candidate:
                raise UploadError("Upload response did not include a video URL", category="http")
            video_url = candidate
            logger.info("Uploaded %d bytes -> %s", artifact.size, video_url)
        except UploadError as exc:
            self.last_error = exc
            logger.error("Video upload failed (%s): %s", exc.category, exc.detail)

        if on_complete is not None:
            result = on_complete(artifact, video_url)
            if inspect.isawaitable(result):
                await result
        return video_url

    async def delete(self, video_url: str) -> bool:
        """Ask the server to delete a previous submission.

        Returns:
            True on success; failures are logged and reported as False.
        """
        self.last_error = None
        try:
            await self._request("POST", DELETE_PATH, json={"videoUrl": video_url})
        except UploadError as exc:
            self.last_error = exc
            logger.error("Failed to delete video %s: %s", video_url, exc.detail)
            return False
        logger.info("Deleted video %s", video_url)
        return True

    async def submit_progress(
        self,
        exercise_id: int,
        video_url: str,
        completed: bool = True,
    ) -> bool:
        """Record *video_url* as the submission for *exercise_id*."""
        self.last_error = None
        try:
            await self._request(
                "POST",
                f"/api/progress/{exercise_id}",
                json={"videoUrl": video_url, "completed": completed},
            )
        except UploadError as exc:
            self.last_error = exc
            logger.error("Failed to update progress for exercise %s: %s", exercise_id, exc.detail)
            return False
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "VideoUploader":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
