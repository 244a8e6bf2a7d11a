"""
Abstract base class for AI inference providers.

Every provider arm (Anthropic, Gemini, Ollama, OpenAI-compatible) knows how
to turn a prompt into an HTTP request for its wire format and how to pull the
generated text back out of the JSON response.  Transport, retries and error
mapping live in :class:`mootcourt.services.llm.client.LLMClient`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ModelConfig:
    """Connection and sampling settings for one configured model."""

    provider: str
    endpoint: str
    api_key: str
    model: str
    temperature: float = 0.7
    max_tokens: int = 1000
    system_prompt: str = ""
    name: str = ""

    @classmethod
    def from_record(cls, record: Any) -> "ModelConfig":
        """Build a config from an ``AIModel`` row (temperature stored in hundredths)."""
        return cls(
            provider=record.provider,
            endpoint=record.endpoint,
            api_key=record.api_key,
            model=record.model,
            temperature=record.temperature / 100,
            max_tokens=record.max_tokens,
            system_prompt=record.system_prompt or "",
            name=record.name,
        )


@dataclass(frozen=True)
class ProviderRequest:
    """A fully-built outbound HTTP request."""

    url: str
    json: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


class BaseProvider(ABC):
    """Interface that every provider arm must implement."""

    kind: str = ""

    @abstractmethod
    def build_request(
        self,
        config: ModelConfig,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
    ) -> ProviderRequest:
        """Translate a prompt into the provider's request format.

        Args:
            config: The model configuration (endpoint, key, sampling).
            system_prompt: Instructions describing the assistant's role.
            user_prompt: The task prompt.
            max_tokens: Optional cap overriding ``config.max_tokens``.

        Returns:
            The request to POST.
        """

    @abstractmethod
    def parse_response(self, data: Any) -> str:
        """Extract generated text from a decoded JSON response.

        Returns an empty string when the payload carries no text.
        """

    @staticmethod
    def _json_headers() -> dict[str, str]:
        return {"Content-Type": "application/json"}
