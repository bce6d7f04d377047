"""Gemini provider configuration."""
from pydantic import Field

from showscribe.providers.base import ProviderConfig


class GeminiConfig(ProviderConfig):
    """Configuration for Google Gemini through the google-genai SDK."""
    max_output_tokens: int = Field(default=8192, description="Completion token cap")


# Alias for dynamic loading
Config = GeminiConfig
