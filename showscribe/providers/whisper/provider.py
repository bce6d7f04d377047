import json
import logging
import shutil
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional

from ...core.errors import ConfigurationError, ParseError, ProviderError
from ...core.logger import APILogger
from ...core.models import AudioSource, TranscriptionResult, WhisperJsonInput, WhisperLrcInput
from ...core.normalizers import normalize_whisper
from ...core.providers import TranscriptionProvider, log_call
from . import WhisperConfig

logger = logging.getLogger("ShowScribe.Plugin.Whisper")


class WhisperProvider(TranscriptionProvider):
    """Local transcription with whisper.cpp. No credential is needed."""

    name = "whisper"

    def __init__(
        self,
        provider_config: Optional[WhisperConfig] = None,
        api_logger: Optional[APILogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(provider_config or WhisperConfig(), api_logger, sleep)

    def transcribe(
        self,
        audio: AudioSource,
        model_id: str,
        api_key: Optional[str] = None,
        speaker_labels: bool = False,
        language: str = "auto",
    ) -> TranscriptionResult:
        if audio.path is None:
            raise ConfigurationError("Whisper transcribes local files only; download the audio first.")
        if not audio.path.exists():
            raise ConfigurationError(f"Audio file not found: {audio.path}")
        if speaker_labels:
            logger.debug("whisper.cpp output carries no speaker labels; ignoring speaker_labels")

        cli = self._resolve_cli()
        model_path = self._resolve_model(model_id)
        output_format = self.provider_config.output_format

        logger.info(f"Transcribing {audio.path} using Whisper model {model_id}...")
        with tempfile.TemporaryDirectory(prefix="showscribe-whisper-") as tmp:
            out_base = Path(tmp) / "transcript"
            cmd = [
                cli,
                "-m", str(model_path),
                "-f", str(audio.path.resolve()),
                "-l", language or "auto",
                "-olrc" if output_format == "lrc" else "-oj",
                "-of", str(out_base),
                "--no-prints",
            ]
            self._run(cmd)
            raw = self._read_output(out_base, output_format)

        log_call(self, "whisper-cli", {"cmd": cmd}, {"format": output_format})
        return TranscriptionResult(
            transcript=normalize_whisper(raw),
            model_id=model_id,
            cost_rate_per_minute_usd=self.rate_per_minute(model_id),
        )

    def _resolve_cli(self) -> str:
        cfg = self.provider_config
        found = shutil.which(cfg.cli)
        if found:
            return found
        if cfg.whisper_home:
            candidate = Path(cfg.whisper_home) / "build" / "bin" / "whisper-cli"
            if candidate.exists():
                return str(candidate)
        raise ConfigurationError(
            f"{cfg.cli} not found in PATH.\n"
            "Please install whisper.cpp and ensure whisper-cli is accessible:\n"
            "  1. Clone: git clone https://github.com/ggerganov/whisper.cpp\n"
            "  2. Build: cmake -B build && cmake --build build --config Release\n"
            "  3. Add build/bin to PATH or set providers.whisper.whisper_home"
        )

    def _resolve_model(self, model_id: str) -> Path:
        cfg = self.provider_config
        spec = cfg.find_model(model_id)
        if not spec or not spec.path:
            raise ConfigurationError(f"Model '{model_id}' not found in Whisper provider settings.")

        if cfg.models_dir:
            models_dir = Path(cfg.models_dir)
        elif cfg.whisper_home:
            models_dir = Path(cfg.whisper_home) / "models"
        else:
            models_dir = Path("whisper.cpp") / "models"

        model_path = models_dir / spec.path
        if not model_path.exists():
            raise ConfigurationError(
                f"Whisper model file not found at {model_path}\n"
                f"  Model: {model_id}\n"
                f"Download it with: whisper.cpp/models/download-ggml-model.sh {spec.path[5:-4]}"
            )
        return model_path

    @staticmethod
    def _run(cmd: list) -> None:
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Could not execute {cmd[0]}: {e}") from e
        except subprocess.CalledProcessError as e:
            raise ProviderError(
                f"whisper-cli exited with status {e.returncode}", status_code=None, body=(e.stderr or "")[:2000]
            ) from e

    @staticmethod
    def _read_output(out_base: Path, output_format: str):
        output_path = out_base.with_suffix(f".{output_format}")
        if not output_path.exists():
            raise ProviderError(f"whisper-cli did not create {output_path.name}")

        content = output_path.read_text(encoding="utf-8")
        if output_format == "lrc":
            return WhisperLrcInput(content=content)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"whisper-cli JSON output is invalid: {e}") from e
        entries = data.get("transcription", []) if isinstance(data, dict) else None
        if not isinstance(entries, list) or not all(isinstance(entry, dict) for entry in entries):
            raise ParseError(f"whisper-cli JSON output has no transcription list: {content[:200]!r}")
        return WhisperJsonInput(entries=entries)
