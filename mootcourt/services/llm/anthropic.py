"""Anthropic Messages API arm."""

from typing import Any

from mootcourt.services.llm.base import BaseProvider, ModelConfig, ProviderRequest

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(BaseProvider):
    """Builds ``/v1/messages`` requests authenticated with ``x-api-key``.

    The system prompt is folded into the single user message.
    """

    kind = "anthropic"

    def build_request(
        self,
        config: ModelConfig,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
    ) -> ProviderRequest:
        headers = self._json_headers()
        headers["x-api-key"] = config.api_key
        headers["anthropic-version"] = ANTHROPIC_VERSION
        content = f"{system_prompt}\n\n{user_prompt}" if system_prompt else user_prompt
        return ProviderRequest(
            url=config.endpoint,
            headers=headers,
            json={
                "model": config.model,
                "max_tokens": max_tokens or config.max_tokens,
                "temperature": config.temperature,
                "messages": [{"role": "user", "content": content}],
            },
        )

    def parse_response(self, data: Any) -> str:
        try:
            return data["content"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            return ""
