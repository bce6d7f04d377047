from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..base import ProviderConfig


class OllamaConfig(ProviderConfig, BaseSettings):
    """Configuration for a local Ollama server."""

    model_config = SettingsConfigDict(env_prefix="OLLAMA_", case_sensitive=False, extra="ignore")

    base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server URL"
    )

    auto_pull_models: bool = Field(
        default=True,
        description="Pull models that are not installed yet"
    )

    pull_timeout: int = Field(
        default=3600,
        description="Timeout for model downloads in seconds"
    )


# Alias for Config loader
Config = OllamaConfig

__all__ = ['OllamaConfig', 'Config']
