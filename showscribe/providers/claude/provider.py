import logging
from typing import Optional

import anthropic

from ...core.errors import EmptyResultError, ParseError, ProviderError
from ...core.logger import APILogger
from ...core.models import LLMResult, UsageStats
from ...core.providers import LLMProvider, log_call, require_api_key
from . import ClaudeConfig

logger = logging.getLogger("ShowScribe.Plugin.Claude")


class ClaudeProvider(LLMProvider):
    name = "claude"

    def __init__(self, provider_config: Optional[ClaudeConfig] = None, api_logger: Optional[APILogger] = None):
        super().__init__(provider_config or ClaudeConfig(), api_logger)

    def generate(self, model_id: str, prompt: str, transcript: str, api_key: Optional[str] = None) -> LLMResult:
        api_key = require_api_key("Claude", api_key)
        client = anthropic.Anthropic(api_key=api_key, max_retries=0, timeout=self.provider_config.timeout)
        messages = [{"role": "user", "content": self.combine(prompt, transcript)}]

        logger.info(f"Generating show notes with Claude model {model_id}")
        try:
            response = client.messages.create(
                model=model_id,
                max_tokens=self.provider_config.max_tokens,
                messages=messages,
            )
        except anthropic.APIResponseValidationError as e:
            log_call(self, "messages.create", {"model": model_id}, None, error=str(e))
            raise ParseError(f"Claude response could not be parsed: {e}") from e
        except anthropic.APIStatusError as e:
            log_call(self, "messages.create", {"model": model_id}, None, error=str(e))
            body = e.response.text if e.response is not None else None
            raise ProviderError(f"Claude request failed: {e.message}", status_code=e.status_code, body=body) from e
        except anthropic.APIConnectionError as e:
            log_call(self, "messages.create", {"model": model_id}, None, error=str(e))
            raise ProviderError(f"Claude unreachable: {e}", status_code=None) from e

        log_call(self, "messages.create", {"model": model_id, "messages": messages}, response)

        content = "".join(
            block.text for block in (response.content or []) if getattr(block, "type", None) == "text"
        )
        if not content:
            raise EmptyResultError(f"Claude returned no text content for model {model_id}")

        usage = response.usage
        input_tokens = getattr(usage, "input_tokens", None) if usage else None
        output_tokens = getattr(usage, "output_tokens", None) if usage else None
        total = input_tokens + output_tokens if input_tokens is not None and output_tokens is not None else None

        return LLMResult(
            content=content,
            usage=UsageStats(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=total,
                stop_reason=response.stop_reason or "unknown",
            ),
            model_id=model_id,
        )
