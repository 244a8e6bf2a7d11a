"""Ollama ``/api/chat`` arm for locally hosted models."""

from typing import Any

from mootcourt.services.llm.base import BaseProvider, ModelConfig, ProviderRequest


class OllamaProvider(BaseProvider):
    """Non-streaming chat requests against an Ollama server.

    Ollama ignores the API key; sampling options go under ``options``.
    """

    kind = "ollama"

    def build_request(
        self,
        config: ModelConfig,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
    ) -> ProviderRequest:
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return ProviderRequest(
            url=config.endpoint,
            headers=self._json_headers(),
            json={
                "model": config.model,
                "messages": messages,
                "stream": False,
                "options": {
                    "temperature": config.temperature,
                    "num_predict": max_tokens or config.max_tokens,
                },
            },
        )

    def parse_response(self, data: Any) -> str:
        try:
            return data["message"]["content"] or ""
        except (KeyError, TypeError):
            return ""
