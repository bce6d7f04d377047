import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .errors import ConfigurationError
from .logger import APILogger
from .models import AudioSource, LLMResult, TranscriptionResult


def require_api_key(provider: str, api_key: Optional[str]) -> str:
    """Fail before any network call when a credential is missing."""
    if not api_key or not api_key.strip():
        raise ConfigurationError(f"{provider} API key not found in request or config.")
    return api_key


class TranscriptionProvider(ABC):
    """Abstract base class for transcription providers."""

    name: str = ""

    def __init__(
        self,
        provider_config: Any,
        api_logger: Optional[APILogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider_config = provider_config
        self.api_logger = api_logger
        self.sleep = sleep

    def rate_per_minute(self, model_id: str) -> float:
        spec = self.provider_config.find_model(model_id) if self.provider_config else None
        return spec.cost_per_minute_usd if spec else 0.0

    @abstractmethod
    def transcribe(
        self,
        audio: AudioSource,
        model_id: str,
        api_key: Optional[str] = None,
        speaker_labels: bool = False,
        language: str = "auto",
    ) -> TranscriptionResult:
        """
        Perform transcription.

        Args:
            audio: URL or local path of the audio.
            model_id: Provider model name.
            api_key: Credential; remote providers raise ``ConfigurationError`` without one.
            speaker_labels: Ask the provider for diarization.
            language: Language hint, "auto" to let the provider detect it.

        Returns:
            TranscriptionResult with the canonical transcript and the per-minute rate.
        """
        pass


class LLMProvider(ABC):
    """Abstract base class for show-note generation providers."""

    name: str = ""

    def __init__(self, provider_config: Any, api_logger: Optional[APILogger] = None):
        self.provider_config = provider_config
        self.api_logger = api_logger

    @staticmethod
    def combine(prompt: str, transcript: str) -> str:
        return f"{prompt}\n{transcript}"

    @abstractmethod
    def generate(self, model_id: str, prompt: str, transcript: str, api_key: Optional[str] = None) -> LLMResult:
        """Send prompt and transcript as one user message and return content plus usage."""
        pass


def log_call(provider: Any, endpoint: str, request: Any, response: Any, error: Optional[str] = None) -> None:
    if provider.api_logger:
        provider.api_logger.log(provider.name, endpoint, request, response, error=error)
