import time
from typing import Any, Callable, Dict, Optional, Type

from .errors import ConfigurationError
from .logger import APILogger
from .providers import LLMProvider, TranscriptionProvider


class ProviderFactory:
    _registry: Dict[str, Type[TranscriptionProvider]] = {}
    _llm_registry: Dict[str, Type[LLMProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_cls: Type[TranscriptionProvider]):
        cls._registry[name] = provider_cls

    @classmethod
    def register_llm(cls, name: str, provider_cls: Type[LLMProvider]):
        cls._llm_registry[name] = provider_cls

    @classmethod
    def get_provider_class(cls, name: str) -> Type[TranscriptionProvider]:
        if name not in cls._registry:
            # Lazy load so unused SDKs are never imported
            if name == "deepgram":
                from ..providers.deepgram.provider import DeepgramProvider
                cls.register("deepgram", DeepgramProvider)
            elif name == "assembly":
                from ..providers.assembly.provider import AssemblyProvider
                cls.register("assembly", AssemblyProvider)
            elif name == "whisper":
                from ..providers.whisper.provider import WhisperProvider
                cls.register("whisper", WhisperProvider)
            else:
                raise ConfigurationError(f"Unknown transcription provider: {name}")

        return cls._registry[name]

    @classmethod
    def get_llm_provider_class(cls, name: str) -> Type[LLMProvider]:
        if name not in cls._llm_registry:
            if name in ("chatgpt", "deepseek", "fireworks", "together", "groq", "mistral"):
                from ..providers.openai_compat.provider import OpenAICompatibleProvider
                cls.register_llm(name, OpenAICompatibleProvider)
            elif name == "claude":
                from ..providers.claude.provider import ClaudeProvider
                cls.register_llm("claude", ClaudeProvider)
            elif name == "gemini":
                from ..providers.gemini.provider import GeminiProvider
                cls.register_llm("gemini", GeminiProvider)
            elif name == "cohere":
                from ..providers.cohere.provider import CohereProvider
                cls.register_llm("cohere", CohereProvider)
            elif name == "ollama":
                from ..providers.ollama.provider import OllamaProvider
                cls.register_llm("ollama", OllamaProvider)
            else:
                raise ConfigurationError(f"Unknown LLM provider: {name}")

        return cls._llm_registry[name]

    @classmethod
    def create(
        cls,
        name: str,
        provider_config: Any,
        api_logger: Optional[APILogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> TranscriptionProvider:
        provider_cls = cls.get_provider_class(name)
        return provider_cls(provider_config, api_logger=api_logger, sleep=sleep)

    @classmethod
    def create_llm(cls, name: str, provider_config: Any, api_logger: Optional[APILogger] = None) -> LLMProvider:
        provider_cls = cls.get_llm_provider_class(name)
        return provider_cls(provider_config, api_logger=api_logger)
