"""
LLM module - AI provider abstraction layer.

Factory function for selecting the provider arm that matches a configured
model's ``provider`` field.
"""

from .base import BaseProvider, ModelConfig, ProviderRequest

__all__ = ["BaseProvider", "ModelConfig", "ProviderRequest", "create_provider"]


def create_provider(provider: str) -> BaseProvider:
    """
    Factory function to create the provider arm for a provider name.

    Args:
        provider: Provider name ("anthropic", "google", "gemini", "ollama",
            "openai", "azure", "custom", ...). Matching is case-insensitive.

    Returns:
        BaseProvider implementation instance. Unknown names fall back to
        the OpenAI-compatible format.
    """
    name = (provider or "").strip().lower()
    if name == "anthropic":
        from .anthropic import AnthropicProvider

        return AnthropicProvider()
    elif name in ("google", "gemini"):
        from .gemini import GeminiProvider

        return GeminiProvider()
    elif name == "ollama":
        from .ollama import OllamaProvider

        return OllamaProvider()
    else:
        from .openai import OpenAIProvider

        return OpenAIProvider()
