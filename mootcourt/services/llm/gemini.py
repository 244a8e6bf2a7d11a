"""Google Gemini ``generateContent`` arm."""

from typing import Any

from mootcourt.services.llm.base import BaseProvider, ModelConfig, ProviderRequest


def _with_key(endpoint: str, api_key: str) -> str:
    separator = "&" if "?" in endpoint else "?"
    return f"{endpoint}{separator}key={api_key}"


class GeminiProvider(BaseProvider):
    """Builds ``generateContent`` requests; the key travels in the query string."""

    kind = "gemini"

    def build_request(
        self,
        config: ModelConfig,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
    ) -> ProviderRequest:
        headers = self._json_headers()
        headers["Authorization"] = f"Bearer {config.api_key}"
        text = f"{system_prompt}\n\n{user_prompt}" if system_prompt else user_prompt
        return ProviderRequest(
            url=_with_key(config.endpoint, config.api_key),
            headers=headers,
            json={
                "contents": [{"parts": [{"text": text}]}],
                "generationConfig": {
                    "temperature": config.temperature,
                    "maxOutputTokens": max_tokens or config.max_tokens,
                },
            },
        )

    def parse_response(self, data: Any) -> str:
        try:
            return data["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (KeyError, IndexError, TypeError):
            return ""
