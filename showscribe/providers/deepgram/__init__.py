"""Deepgram provider configuration."""
from pydantic import Field

from showscribe.providers.base import ProviderConfig


class DeepgramConfig(ProviderConfig):
    """Configuration for the Deepgram pre-recorded audio API."""
    base_url: str = Field(default="https://api.deepgram.com/v1", description="Deepgram API root")
    smart_format: bool = True
    punctuate: bool = True
    paragraphs: bool = True
    detect_language: bool = Field(default=False, description="Ask Deepgram to detect the language when none is given")


# Alias for dynamic loading
Config = DeepgramConfig
