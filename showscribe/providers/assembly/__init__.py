"""AssemblyAI provider configuration."""
from pydantic import Field

from showscribe.providers.base import ProviderConfig


class AssemblyConfig(ProviderConfig):
    """Configuration for the AssemblyAI asynchronous transcription API."""
    base_url: str = Field(default="https://api.assemblyai.com/v2", description="AssemblyAI API root")
    poll_interval_ms: int = Field(default=3000, description="Delay before each status poll")
    max_polls: int = Field(default=60, description="Status polls before giving up")


# Alias for dynamic loading
Config = AssemblyConfig
