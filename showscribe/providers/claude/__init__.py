"""Claude (Anthropic) provider configuration."""
from pydantic import Field

from showscribe.providers.base import ProviderConfig


class ClaudeConfig(ProviderConfig):
    """Configuration for the Anthropic Messages API."""
    max_tokens: int = Field(default=4000, description="Completion token cap")


# Alias for dynamic loading
Config = ClaudeConfig
