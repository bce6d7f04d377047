import logging
import threading
import time
from typing import Callable, Optional, Union

from ..core.config import load_provider_config
from ..core.cost import CostEstimator
from ..core.errors import ShowScribeError
from ..core.factory import ProviderFactory
from ..core.logger import APILogger
from ..core.models import (
    ConfigContext,
    LLMRequest,
    OrchestrationResult,
    RetryPolicy,
    TranscriptionRequest,
)
from ..core.retry import LoggingRetryObserver, RetryExecutor

logger = logging.getLogger("ShowScribe.Pipeline")


class _CountingObserver(LoggingRetryObserver):
    def __init__(self, label: str):
        super().__init__(label)
        self.attempts = 0

    def on_attempt(self, attempt: int) -> None:
        self.attempts = attempt
        super().on_attempt(attempt)


class Orchestrator:
    """
    Single-flight entry point: one request in, one result out.

    Resolves the provider through ``ProviderFactory``, runs the call under
    ``RetryExecutor`` and attaches a ``CostEstimate`` computed from the
    static rate tables.
    """

    def __init__(
        self,
        context: Optional[ConfigContext] = None,
        retry_policy: Optional[RetryPolicy] = None,
        estimator: Optional[CostEstimator] = None,
        sleep: Callable[[float], None] = time.sleep,
        api_logger: Optional[APILogger] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.context = context or ConfigContext()
        self.retry_policy = retry_policy or RetryPolicy()
        self.estimator = estimator or CostEstimator.default()
        self.sleep = sleep
        self.api_logger = api_logger
        self.cancel_event = cancel_event

    def _provider_config(self, provider_id: str):
        provider_config = self.context.providers.get(provider_id)
        if provider_config is None:
            logger.debug(f"No loaded configuration for {provider_id}, using packaged defaults")
            provider_config = load_provider_config(provider_id)
        return provider_config

    @staticmethod
    def _api_key(request: Union[TranscriptionRequest, LLMRequest], provider_config) -> Optional[str]:
        secret = request.api_key or getattr(provider_config, "api_key", None)
        return secret.get_secret_value() if secret is not None else None

    def _executor(self, observer: _CountingObserver) -> RetryExecutor:
        return RetryExecutor(
            policy=self.retry_policy,
            observer=observer,
            sleep=self.sleep,
            cancel_event=self.cancel_event,
        )

    def transcribe(self, request: TranscriptionRequest) -> OrchestrationResult:
        """Transcribe one audio source. Errors propagate after retries are spent."""
        provider_config = self._provider_config(request.provider)
        provider = ProviderFactory.create(
            request.provider, provider_config, api_logger=self.api_logger, sleep=self.sleep
        )
        api_key = self._api_key(request, provider_config)

        logger.info(f"Transcribing {request.audio.display} with {request.provider}/{request.model}")
        observer = _CountingObserver(f"{request.provider} transcription")
        result = self._executor(observer).run(
            lambda: provider.transcribe(
                request.audio,
                request.model,
                api_key=api_key,
                speaker_labels=request.speaker_labels,
                language=request.language,
            )
        )

        cost = self.estimator.transcription_cost(request.provider, request.model, request.duration_seconds or 0)
        logger.info(f"Transcription finished after {observer.attempts} attempt(s), estimated cost ${cost.cost:.4f}")

        return OrchestrationResult(
            provider_id=request.provider,
            model_id=result.model_id,
            transcript=result.transcript,
            cost=cost,
            attempts=observer.attempts,
        )

    def generate(self, request: LLMRequest) -> OrchestrationResult:
        """Generate show notes from a prompt and transcript. Errors propagate after retries are spent."""
        provider_config = self._provider_config(request.provider)
        provider = ProviderFactory.create_llm(request.provider, provider_config, api_logger=self.api_logger)
        api_key = self._api_key(request, provider_config)

        logger.info(f"Generating show notes with {request.provider}/{request.model}")
        observer = _CountingObserver(f"{request.provider} generation")
        result = self._executor(observer).run(
            lambda: provider.generate(request.model, request.prompt, request.transcript, api_key=api_key)
        )

        cost = self.estimator.usage_cost(
            request.provider,
            request.model,
            result.usage,
            input_text=provider.combine(request.prompt, request.transcript),
            output_text=result.content,
        )
        logger.info(f"Generation finished after {observer.attempts} attempt(s), estimated cost ${cost.cost:.4f}")

        return OrchestrationResult(
            provider_id=request.provider,
            model_id=result.model_id,
            content=result.content,
            usage=result.usage,
            cost=cost,
            attempts=observer.attempts,
        )

    def run(self, request: Union[TranscriptionRequest, LLMRequest]) -> OrchestrationResult:
        """Dispatch on the request type, returning library errors in ``result.error``."""
        try:
            if isinstance(request, TranscriptionRequest):
                return self.transcribe(request)
            return self.generate(request)
        except ShowScribeError as e:
            logger.error(f"{request.provider}/{request.model} failed: {e}")
            return OrchestrationResult(
                provider_id=request.provider,
                model_id=request.model,
                error=e,
                attempts=e.attempts or 0,
            )
