"""
HTTP transport for AI provider calls.

``LLMClient`` pairs a :class:`ModelConfig` with its provider arm, posts the
built request with ``httpx.AsyncClient`` and retries transient transport
failures with exponential backoff.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mootcourt.core.config import get_settings
from mootcourt.core.exceptions import AIProviderError
from mootcourt.services.llm import create_provider
from mootcourt.services.llm.base import ModelConfig, ProviderRequest

logger = logging.getLogger(__name__)


class LLMClient:
    """Sends prompts to one configured model.

    Args:
        config: Model configuration (provider, endpoint, key, sampling).
        client: Optional shared ``httpx.AsyncClient`` (injected in tests).
        timeout: Per-request timeout in seconds; defaults to settings.
    """

    def __init__(
        self,
        config: ModelConfig,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._config = config
        self._provider = create_provider(config.provider)
        self._client = client
        self._timeout = timeout or get_settings().ai_request_timeout_seconds

    @property
    def config(self) -> ModelConfig:
        return self._config

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=16),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    async def _post(self, request: ProviderRequest) -> httpx.Response:
        """POST *request*, translating httpx transport errors for retry."""
        try:
            if self._client is not None:
                return await self._client.post(
                    request.url, json=request.json, headers=request.headers, timeout=self._timeout
                )
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                return await client.post(request.url, json=request.json, headers=request.headers)
        except httpx.TimeoutException as exc:
            logger.warning("%s request timed out: %s", self._provider.kind, exc)
            raise TimeoutError(f"AI request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            logger.warning("%s connection error: %s", self._provider.kind, exc)
            raise ConnectionError(f"Failed to reach AI endpoint: {exc}") from exc

    async def complete(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Send a prompt and return the generated text.

        Args:
            user_prompt: The task prompt.
            system_prompt: Overrides the configured system prompt when given.
            max_tokens: Optional cap overriding the configured value.

        Returns:
            The generated text, or an empty string when the provider
            answered without any.

        Raises:
            AIProviderError: On transport failure after retries, a non-2xx
                status, or a body that is not JSON.
        """
        system = self._config.system_prompt if system_prompt is None else system_prompt
        request = self._provider.build_request(self._config, system, user_prompt, max_tokens)
        logger.info(
            "Making AI request to %s model %s", self._config.provider, self._config.model
        )

        try:
            response = await self._post(request)
        except (ConnectionError, TimeoutError) as exc:
            raise AIProviderError(str(exc)) from exc

        if response.is_error:
            raise AIProviderError(
                f"AI API request failed: {response.status_code} "
                f"{response.reason_phrase} - {response.text}"
            )

        try:
            data: Any = response.json()
        except ValueError as exc:
            raise AIProviderError(f"AI API returned invalid JSON: {exc}") from exc

        return self._provider.parse_response(data)
