"""OpenAI-compatible chat-completions arm (also used for Azure and custom endpoints)."""

from typing import Any

from mootcourt.services.llm.base import BaseProvider, ModelConfig, ProviderRequest


class OpenAIProvider(BaseProvider):
    kind = "openai"

    def build_request(
        self,
        config: ModelConfig,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
    ) -> ProviderRequest:
        headers = self._json_headers()
        headers["Authorization"] = f"Bearer {config.api_key}"
        return ProviderRequest(
            url=config.endpoint,
            headers=headers,
            json={
                "model": config.model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                "temperature": config.temperature,
                "max_tokens": max_tokens or config.max_tokens,
            },
        )

    def parse_response(self, data: Any) -> str:
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            return ""
