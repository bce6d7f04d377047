import logging
from typing import Any, Optional

import openai
from openai import OpenAI

from ...core.errors import EmptyResultError, ParseError, ProviderError
from ...core.logger import APILogger
from ...core.models import LLMResult, UsageStats
from ...core.providers import LLMProvider, log_call, require_api_key
from . import OpenAICompatibleConfig

logger = logging.getLogger("ShowScribe.Plugin.OpenAICompatible")


def translate_openai_error(provider: str, error: Exception) -> Exception:
    """Map an openai SDK exception onto the showscribe taxonomy."""
    if isinstance(error, openai.APIResponseValidationError):
        return ParseError(f"{provider} response could not be parsed: {error}")
    if isinstance(error, openai.APIStatusError):
        body = error.response.text if error.response is not None else None
        return ProviderError(f"{provider} request failed: {error.message}", status_code=error.status_code, body=body)
    if isinstance(error, openai.APIConnectionError):
        return ProviderError(f"{provider} unreachable: {error}", status_code=None)
    return error


class OpenAICompatibleProvider(LLMProvider):
    """
    Chat completions for every provider that speaks the OpenAI wire format.

    The provider id, base URL and rate table all come from the config record,
    so chatgpt, deepseek, fireworks, together, groq and mistral share this class.
    """

    def __init__(self, provider_config: Optional[OpenAICompatibleConfig] = None, api_logger: Optional[APILogger] = None):
        super().__init__(provider_config or OpenAICompatibleConfig(), api_logger)
        self.name = self.provider_config.provider_id

    def _client(self, api_key: str) -> OpenAI:
        cfg = self.provider_config
        # Retries are handled by RetryExecutor, not the SDK
        return OpenAI(api_key=api_key, base_url=cfg.base_url, max_retries=0, timeout=cfg.timeout)

    def generate(self, model_id: str, prompt: str, transcript: str, api_key: Optional[str] = None) -> LLMResult:
        api_key = require_api_key(self.provider_config.display_name or self.name, api_key)
        client = self._client(api_key)
        messages = [{"role": "user", "content": self.combine(prompt, transcript)}]

        logger.info(f"Generating show notes with {self.name} model {model_id}")
        try:
            response = client.chat.completions.create(
                model=model_id,
                messages=messages,
                max_tokens=self.provider_config.max_tokens,
            )
        except openai.OpenAIError as e:
            log_call(self, "chat.completions.create", {"model": model_id}, None, error=str(e))
            raise translate_openai_error(self.name, e) from e

        log_call(self, "chat.completions.create", {"model": model_id, "messages": messages}, response)

        choice = response.choices[0] if response.choices else None
        content = choice.message.content if choice and choice.message else None
        if not content:
            raise EmptyResultError(f"{self.name} returned no content for model {model_id}")

        return LLMResult(content=content, usage=_usage(response.usage, choice.finish_reason), model_id=model_id)


def _usage(usage: Any, finish_reason: Optional[str]) -> UsageStats:
    if usage is None:
        return UsageStats(stop_reason=finish_reason or "unknown")
    return UsageStats(
        input_tokens=getattr(usage, "prompt_tokens", None),
        output_tokens=getattr(usage, "completion_tokens", None),
        total_tokens=getattr(usage, "total_tokens", None),
        stop_reason=finish_reason or "unknown",
    )
