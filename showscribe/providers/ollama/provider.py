import logging
from typing import Any, Dict, List, Optional

import requests

from ...core.errors import ConfigurationError, EmptyResultError, ProviderError
from ...core.logger import APILogger
from ...core.models import LLMResult, UsageStats
from ...core.providers import LLMProvider, log_call
from ...core.streaming import iter_ndjson
from ..base import check_response, json_body
from . import OllamaConfig

logger = logging.getLogger("ShowScribe.Plugin.Ollama")


class OllamaClient:
    """Helper class for Ollama API interactions."""

    def __init__(self, config: OllamaConfig):
        self.config = config
        self.base_url = config.base_url.rstrip('/')
        self.timeout = config.timeout
        self.session = requests.Session()

    def _unreachable(self, error: requests.RequestException) -> ProviderError:
        return ProviderError(
            f"Could not connect to Ollama at {self.base_url}. Please ensure 'ollama serve' is running. ({error})",
            status_code=None,
        )

    def list_models(self) -> List[str]:
        """Names of the installed models, from /api/tags."""
        try:
            response = self.session.get(f"{self.base_url}/api/tags", timeout=self.timeout)
        except requests.RequestException as e:
            raise self._unreachable(e) from e
        check_response(response, "Ollama", "/api/tags")
        data = json_body(response, "Ollama")
        return [model['name'] for model in data.get('models', [])]

    def pull_model(self, model_name: str) -> None:
        """Pull a model, following the NDJSON progress stream until it reports success."""
        logger.info(f"Pulling model {model_name} from Ollama...")
        try:
            response = self.session.post(
                f"{self.base_url}/api/pull",
                json={"name": model_name},
                stream=True,
                timeout=self.config.pull_timeout,
            )
        except requests.RequestException as e:
            raise self._unreachable(e) from e

        with response:
            check_response(response, "Ollama", "/api/pull")
            last_status = None
            for event in iter_ndjson(response.iter_lines()):
                if event.get("error"):
                    raise ProviderError(f"Failed to pull model {model_name}: {event['error']}")
                status = event.get("status", "")
                if status != last_status:
                    logger.debug(f"Pulling {model_name}: {status}")
                    last_status = status
                if status == "success":
                    logger.info(f"Successfully pulled model {model_name}")
                    return

        raise ProviderError(f"Pull of {model_name} ended before Ollama reported success")

    def ensure_model(self, model_name: str, auto_pull: bool = True) -> None:
        """Make sure the model is installed, pulling it when allowed."""
        models = self.list_models()

        # "llama3" should match "llama3:latest"
        target_model = model_name if ":" in model_name else f"{model_name}:latest"
        if model_name in models or target_model in models:
            return

        if not auto_pull:
            raise ConfigurationError(
                f"Model '{model_name}' not found on Ollama server.\n"
                f"Please run the following command in your terminal to download it:\n"
                f"  ollama pull {model_name}"
            )
        self.pull_model(model_name)

    def chat(self, model: str, messages: List[Dict[str, str]], **kwargs) -> Dict[str, Any]:
        """Non-streaming chat request."""
        data = {"model": model, "messages": messages, "stream": False}
        data.update(kwargs)
        try:
            response = self.session.post(f"{self.base_url}/api/chat", json=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise self._unreachable(e) from e
        check_response(response, "Ollama", "/api/chat")
        return json_body(response, "Ollama")


class OllamaProvider(LLMProvider):
    """Show-note generation on a local Ollama server. No credential is needed."""

    name = "ollama"

    def __init__(self, provider_config: Optional[OllamaConfig] = None, api_logger: Optional[APILogger] = None):
        super().__init__(provider_config or OllamaConfig(), api_logger)
        self.client = OllamaClient(self.provider_config)

    def generate(self, model_id: str, prompt: str, transcript: str, api_key: Optional[str] = None) -> LLMResult:
        self.client.ensure_model(model_id, auto_pull=self.provider_config.auto_pull_models)

        messages = [{"role": "user", "content": self.combine(prompt, transcript)}]
        logger.info(f"Generating show notes with Ollama model {model_id}")
        try:
            data = self.client.chat(model_id, messages)
        except ProviderError as e:
            log_call(self, "/api/chat", {"model": model_id}, None, error=str(e))
            raise
        log_call(self, "/api/chat", {"model": model_id, "messages": messages}, data)

        content = (data.get("message") or {}).get("content")
        if not content:
            raise EmptyResultError(f"Ollama returned no content for model {model_id}")

        input_tokens = data.get("prompt_eval_count")
        output_tokens = data.get("eval_count")
        total = input_tokens + output_tokens if input_tokens is not None and output_tokens is not None else None

        return LLMResult(
            content=content,
            usage=UsageStats(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=total,
                stop_reason=data.get("done_reason") or "stop",
            ),
            model_id=model_id,
        )
