import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from ...core.errors import ConfigurationError, EmptyResultError, ParseError
from ...core.logger import APILogger
from ...core.models import AudioSource, TranscriptionResult
from ...core.normalizers import normalize_deepgram
from ...core.providers import TranscriptionProvider, log_call, require_api_key
from ..base import check_response, json_body, request_error
from . import DeepgramConfig

logger = logging.getLogger("ShowScribe.Plugin.Deepgram")


class DeepgramProvider(TranscriptionProvider):
    """Synchronous transcription through Deepgram's ``/listen`` endpoint."""

    name = "deepgram"

    def __init__(
        self,
        provider_config: Optional[DeepgramConfig] = None,
        api_logger: Optional[APILogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(provider_config or DeepgramConfig(), api_logger, sleep)
        self.session = requests.Session()

    def transcribe(
        self,
        audio: AudioSource,
        model_id: str,
        api_key: Optional[str] = None,
        speaker_labels: bool = False,
        language: str = "auto",
    ) -> TranscriptionResult:
        api_key = require_api_key("Deepgram", api_key)
        cfg = self.provider_config

        params = {
            "model": model_id,
            "smart_format": _flag(cfg.smart_format),
            "punctuate": _flag(cfg.punctuate),
            "diarize": _flag(speaker_labels),
            "paragraphs": _flag(cfg.paragraphs),
        }
        if language and language != "auto":
            params["language"] = language
        elif cfg.detect_language:
            params["detect_language"] = "true"

        headers = {"Authorization": f"Token {api_key}"}
        url = f"{cfg.base_url.rstrip('/')}/listen"
        logger.info(f"Transcribing {audio.display} with Deepgram model {model_id}")

        try:
            if audio.url:
                response = self.session.post(
                    url, params=params, headers=headers, json={"url": audio.url}, timeout=cfg.timeout
                )
            else:
                if not audio.path.exists():
                    raise ConfigurationError(f"Audio file not found: {audio.path}")
                headers["Content-Type"] = "audio/wav"
                with open(audio.path, "rb") as f:
                    response = self.session.post(url, params=params, headers=headers, data=f, timeout=cfg.timeout)
        except requests.RequestException as e:
            log_call(self, "listen", params, None, error=str(e))
            raise request_error("Deepgram", "listen", e) from e

        check_response(response, "Deepgram", "listen")
        payload = json_body(response, "Deepgram")
        log_call(self, "listen", params, payload)

        words = self._extract_words(payload)
        transcript = normalize_deepgram(words, speaker_labels=speaker_labels)

        return TranscriptionResult(
            transcript=transcript,
            model_id=model_id,
            cost_rate_per_minute_usd=self.rate_per_minute(model_id),
        )

    @staticmethod
    def _extract_words(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            alternative = payload["results"]["channels"][0]["alternatives"][0]
        except (KeyError, IndexError, TypeError):
            if not isinstance(payload, dict):
                raise ParseError("Deepgram response is not a JSON object")
            raise EmptyResultError("No transcription results found in Deepgram response")

        words = alternative.get("words")
        if not words:
            raise EmptyResultError("No transcription results found in Deepgram response")
        return words


def _flag(value: bool) -> str:
    return "true" if value else "false"
