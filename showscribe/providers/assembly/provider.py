import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from ...core.errors import ConfigurationError, ParseError
from ...core.logger import APILogger
from ...core.models import AudioSource, TranscriptionResult
from ...core.normalizers import normalize_assembly
from ...core.polling import AsyncJobPoller
from ...core.providers import TranscriptionProvider, log_call, require_api_key
from ..base import check_response, json_body, request_error
from . import AssemblyConfig

logger = logging.getLogger("ShowScribe.Plugin.Assembly")


class AssemblyProvider(TranscriptionProvider):
    """
    AssemblyAI transcription: upload (for local files), submit, then poll.

    The only asynchronous provider; completion is driven by ``AsyncJobPoller``.
    """

    name = "assembly"

    def __init__(
        self,
        provider_config: Optional[AssemblyConfig] = None,
        api_logger: Optional[APILogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(provider_config or AssemblyConfig(), api_logger, sleep)
        self.session = requests.Session()
        self.poller = AsyncJobPoller(
            interval_ms=self.provider_config.poll_interval_ms,
            max_polls=self.provider_config.max_polls,
            sleep=self.sleep,
        )

    @property
    def base_url(self) -> str:
        return self.provider_config.base_url.rstrip("/")

    def transcribe(
        self,
        audio: AudioSource,
        model_id: str,
        api_key: Optional[str] = None,
        speaker_labels: bool = False,
        language: str = "auto",
    ) -> TranscriptionResult:
        api_key = require_api_key("AssemblyAI", api_key)
        headers = {"Authorization": api_key}

        if audio.url:
            audio_url = audio.url
        else:
            audio_url = self._upload(audio, headers)

        job_id = self._submit(audio_url, model_id, speaker_labels, language, headers)
        logger.info(f"AssemblyAI job {job_id} submitted, waiting for completion...")

        payload = self.poller.wait(job_id, lambda jid: self._fetch_status(jid, headers))
        transcript = normalize_assembly(payload, speaker_labels=speaker_labels)

        return TranscriptionResult(
            transcript=transcript,
            model_id=model_id,
            cost_rate_per_minute_usd=self.rate_per_minute(model_id),
        )

    def _upload(self, audio: AudioSource, headers: Dict[str, str]) -> str:
        if not audio.path.exists():
            raise ConfigurationError(f"Audio file not found: {audio.path}")

        logger.info(f"Uploading {audio.path} to AssemblyAI")
        upload_headers = dict(headers, **{"Content-Type": "application/octet-stream"})
        try:
            with open(audio.path, "rb") as f:
                response = self.session.post(
                    f"{self.base_url}/upload", headers=upload_headers, data=f,
                    timeout=self.provider_config.timeout
                )
        except requests.RequestException as e:
            raise request_error("AssemblyAI", "upload", e) from e

        check_response(response, "AssemblyAI", "upload")
        data = json_body(response, "AssemblyAI")
        log_call(self, "upload", {"file": str(audio.path)}, data)

        upload_url = data.get("upload_url") if isinstance(data, dict) else None
        if not upload_url:
            raise ParseError("AssemblyAI upload response missing upload_url")
        return upload_url

    def _submit(self, audio_url: str, model_id: str, speaker_labels: bool, language: str, headers: Dict[str, str]) -> str:
        body: Dict[str, Any] = {
            "audio_url": audio_url,
            "speech_model": model_id,
            "speaker_labels": speaker_labels,
        }
        if language and language != "auto":
            body["language_code"] = language

        try:
            response = self.session.post(
                f"{self.base_url}/transcript", headers=headers, json=body,
                timeout=self.provider_config.timeout
            )
        except requests.RequestException as e:
            raise request_error("AssemblyAI", "transcript", e) from e

        check_response(response, "AssemblyAI", "transcript")
        data = json_body(response, "AssemblyAI")
        log_call(self, "transcript", body, data)

        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise ParseError("AssemblyAI transcript response missing id")
        return str(job_id)

    def _fetch_status(self, job_id: str, headers: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = self.session.get(
                f"{self.base_url}/transcript/{job_id}", headers=headers,
                timeout=self.provider_config.timeout
            )
        except requests.RequestException as e:
            raise request_error("AssemblyAI", "transcript status", e) from e

        check_response(response, "AssemblyAI", "transcript status")
        return json_body(response, "AssemblyAI")
