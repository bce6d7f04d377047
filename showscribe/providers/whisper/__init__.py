"""Whisper (whisper.cpp) provider configuration and models."""
from typing import Literal, Optional

from pydantic import Field

from showscribe.providers.base import ProviderConfig


class WhisperConfig(ProviderConfig):
    """Configuration for local transcription through the whisper.cpp CLI."""
    whisper_home: Optional[str] = Field(default=None, description="Path to the whisper.cpp checkout")
    cli: str = Field(default="whisper-cli", description="whisper-cli executable name or path")
    models_dir: Optional[str] = Field(default=None, description="Directory holding ggml-*.bin files")
    output_format: Literal["lrc", "json"] = Field(default="lrc", description="whisper-cli output to normalize")


# Alias for dynamic loading
Config = WhisperConfig
