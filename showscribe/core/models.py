from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator


class PricingModel(BaseModel):
    input: float = 0.0
    output: float = 0.0


class ModelSpec(BaseModel):
    """
    One rate table entry.

    LLM models are priced per million tokens, transcription models per minute
    of audio. Everything is stored in USD; cent-denominated tables are
    converted when the provider defaults are loaded.
    """
    name: str
    display_name: Optional[str] = None
    cost_per_1M_tokens_usd: PricingModel = Field(default_factory=PricingModel)
    cost_per_minute_usd: float = 0.0
    path: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _convert_cents(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "cost_per_minute_cents" in data:
            data["cost_per_minute_usd"] = float(data.pop("cost_per_minute_cents")) / 100
        if "cost_per_1M_tokens_cents" in data:
            cents = data.pop("cost_per_1M_tokens_cents") or {}
            data["cost_per_1M_tokens_usd"] = {
                "input": float(cents.get("input", 0.0)) / 100,
                "output": float(cents.get("output", 0.0)) / 100,
            }
        return data


class StageConfig(BaseModel):
    provider: str
    model: str


class PathsConfig(BaseModel):
    logs: Optional[str] = None
    api_log: Optional[str] = None


class ConfigContext(BaseModel):
    transcribe: Optional[StageConfig] = None
    generate: Optional[StageConfig] = None
    prompt_sections: List[str] = Field(default_factory=lambda: ["summary", "longChapters"])
    debug: bool = False
    output_mode: str = "standard"
    providers: Dict[str, Any] = Field(default_factory=dict)
    paths: PathsConfig = Field(default_factory=PathsConfig)


class TimestampedSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp_seconds: float = 0.0
    speaker: Optional[str] = None
    text: str

    def render(self) -> str:
        minutes, seconds = divmod(int(self.timestamp_seconds), 60)
        if self.speaker is not None:
            return f"Speaker {self.speaker}: {self.text}"
        return f"[{minutes:02d}:{seconds:02d}] {self.text}"


class CanonicalTranscript(BaseModel):
    """Rendered transcript plus the segments it was rendered from."""
    model_config = ConfigDict(frozen=True)

    segments: List[TimestampedSegment] = Field(default_factory=list)
    text: str = ""

    def __str__(self) -> str:
        return self.text


class UsageStats(BaseModel):
    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    stop_reason: str = "unknown"


class CostEstimate(BaseModel):
    provider_id: str
    model_id: str
    billed_quantity: float
    unit: Literal["minutes", "tokens"]
    cost: float
    rate_found: bool = True


class RetryPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_attempts: int = 7
    base_delay_ms: int = 1000
    backoff_multiplier: int = 2

    def delay_ms(self, attempt: int) -> int:
        """Delay before the retry that follows failed attempt number ``attempt`` (1-based)."""
        return self.base_delay_ms * self.backoff_multiplier ** (attempt - 1)


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class AsyncJob(BaseModel):
    job_id: str
    status: JobStatus = JobStatus.QUEUED
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.ERROR)


class WhisperLrcInput(BaseModel):
    kind: Literal["lrc"] = "lrc"
    content: str


class WhisperJsonInput(BaseModel):
    kind: Literal["json"] = "json"
    entries: List[Dict[str, Any]] = Field(default_factory=list)


WhisperRawInput = Annotated[Union[WhisperLrcInput, WhisperJsonInput], Field(discriminator="kind")]


class AudioSource(BaseModel):
    url: Optional[str] = None
    path: Optional[Path] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "AudioSource":
        if (self.url is None) == (self.path is None):
            raise ValueError("AudioSource needs exactly one of 'url' or 'path'")
        return self

    @classmethod
    def parse(cls, value: str) -> "AudioSource":
        if value.startswith(("http://", "https://")):
            return cls(url=value)
        return cls(path=Path(value))

    @property
    def display(self) -> str:
        return self.url or str(self.path)


class TranscriptionRequest(BaseModel):
    provider: str
    model: str
    api_key: Optional[SecretStr] = None
    audio: AudioSource
    duration_seconds: Optional[float] = None
    speaker_labels: bool = False
    language: str = "auto"


class LLMRequest(BaseModel):
    provider: str
    model: str
    api_key: Optional[SecretStr] = None
    prompt: str
    transcript: str


class TranscriptionResult(BaseModel):
    transcript: CanonicalTranscript
    model_id: str
    cost_rate_per_minute_usd: float = 0.0


class LLMResult(BaseModel):
    content: str
    usage: UsageStats = Field(default_factory=UsageStats)
    model_id: str


class OrchestrationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    provider_id: str
    model_id: str
    transcript: Optional[CanonicalTranscript] = None
    content: Optional[str] = None
    usage: Optional[UsageStats] = None
    cost: Optional[CostEstimate] = None
    error: Optional[Exception] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None
