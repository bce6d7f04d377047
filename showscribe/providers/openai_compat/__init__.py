"""Configuration shared by every OpenAI-compatible chat provider."""
from typing import Optional

from pydantic import Field

from showscribe.providers.base import ProviderConfig


class OpenAICompatibleConfig(ProviderConfig):
    """
    One record per provider id (chatgpt, deepseek, fireworks, together, groq, mistral).

    The packaged defaults.yaml keeps one entry per id under ``variants``.
    """
    provider_id: str = Field(default="chatgpt", description="Provider id this record configures")
    display_name: Optional[str] = None
    base_url: Optional[str] = Field(default=None, description="API root; None means api.openai.com")
    max_tokens: int = Field(default=4096, description="Completion token cap")


# Alias for dynamic loading
Config = OpenAICompatibleConfig
