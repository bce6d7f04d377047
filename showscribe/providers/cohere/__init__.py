"""Cohere provider configuration."""
from pydantic import Field

from showscribe.providers.base import ProviderConfig


class CohereConfig(ProviderConfig):
    """Configuration for Cohere's chat endpoint."""
    base_url: str = Field(default="https://api.cohere.com/v1", description="Cohere API root")


# Alias for dynamic loading
Config = CohereConfig
