import logging
from typing import Any, Dict, Optional

import requests

from ...core.errors import EmptyResultError
from ...core.logger import APILogger
from ...core.models import LLMResult, UsageStats
from ...core.providers import LLMProvider, log_call, require_api_key
from ..base import check_response, json_body, request_error
from . import CohereConfig

logger = logging.getLogger("ShowScribe.Plugin.Cohere")


class CohereProvider(LLMProvider):
    """Cohere ``/chat`` over plain HTTP."""

    name = "cohere"

    def __init__(self, provider_config: Optional[CohereConfig] = None, api_logger: Optional[APILogger] = None):
        super().__init__(provider_config or CohereConfig(), api_logger)
        self.session = requests.Session()

    def generate(self, model_id: str, prompt: str, transcript: str, api_key: Optional[str] = None) -> LLMResult:
        api_key = require_api_key("Cohere", api_key)
        body = {"model": model_id, "message": self.combine(prompt, transcript)}
        headers = {"Authorization": f"Bearer {api_key}", "Accept": "application/json"}
        url = f"{self.provider_config.base_url.rstrip('/')}/chat"

        logger.info(f"Generating show notes with Cohere model {model_id}")
        try:
            response = self.session.post(url, json=body, headers=headers, timeout=self.provider_config.timeout)
        except requests.RequestException as e:
            log_call(self, "chat", {"model": model_id}, None, error=str(e))
            raise request_error("Cohere", "chat", e) from e

        check_response(response, "Cohere", "chat")
        data = json_body(response, "Cohere")
        log_call(self, "chat", body, data)

        content = data.get("text") if isinstance(data, dict) else None
        if not content:
            raise EmptyResultError(f"Cohere returned no text for model {model_id}")

        return LLMResult(content=content, usage=_usage(data), model_id=model_id)


def _usage(data: Dict[str, Any]) -> UsageStats:
    meta = data.get("meta") or {}
    tokens = meta.get("tokens") or meta.get("billed_units") or {}
    input_tokens = tokens.get("input_tokens")
    output_tokens = tokens.get("output_tokens")
    total = None
    if input_tokens is not None and output_tokens is not None:
        input_tokens, output_tokens = int(input_tokens), int(output_tokens)
        total = input_tokens + output_tokens
    return UsageStats(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=total,
        stop_reason=data.get("finish_reason") or "unknown",
    )
