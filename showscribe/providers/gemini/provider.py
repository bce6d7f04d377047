import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ...core.errors import EmptyResultError, ProviderError
from ...core.logger import APILogger
from ...core.models import LLMResult, UsageStats
from ...core.providers import LLMProvider, log_call, require_api_key
from . import GeminiConfig

logger = logging.getLogger("ShowScribe.Plugin.Gemini")


class GeminiProvider(LLMProvider):
    name = "gemini"

    def __init__(self, provider_config: Optional[GeminiConfig] = None, api_logger: Optional[APILogger] = None):
        super().__init__(provider_config or GeminiConfig(), api_logger)

    def generate(self, model_id: str, prompt: str, transcript: str, api_key: Optional[str] = None) -> LLMResult:
        api_key = require_api_key("Gemini", api_key)
        client = genai.Client(api_key=api_key)
        contents = self.combine(prompt, transcript)

        logger.info(f"Generating show notes with Gemini model {model_id}")
        try:
            response = client.models.generate_content(
                model=model_id,
                contents=contents,
                config=types.GenerateContentConfig(max_output_tokens=self.provider_config.max_output_tokens),
            )
        except genai_errors.APIError as e:
            log_call(self, "models.generate_content", {"model": model_id}, None, error=str(e))
            raise ProviderError(f"Gemini request failed: {e.message}", status_code=e.code, body=str(e.details)) from e
        except httpx.TransportError as e:
            log_call(self, "models.generate_content", {"model": model_id}, None, error=str(e))
            raise ProviderError(f"Gemini unreachable: {e}", status_code=None) from e

        log_call(self, "models.generate_content", {"model": model_id, "contents": contents}, response)

        content = response.text
        if not content:
            raise EmptyResultError(f"Gemini returned no text for model {model_id}")

        meta = response.usage_metadata
        return LLMResult(
            content=content,
            usage=UsageStats(
                input_tokens=getattr(meta, "prompt_token_count", None),
                output_tokens=getattr(meta, "candidates_token_count", None),
                total_tokens=getattr(meta, "total_token_count", None),
                stop_reason=_finish_reason(response),
            ),
            model_id=model_id,
        )


def _finish_reason(response: Any) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].finish_reason is None:
        return "unknown"
    reason = candidates[0].finish_reason
    return str(getattr(reason, "value", reason))
