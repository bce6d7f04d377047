import importlib
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import API_KEY_ENV, APP_NAME, DEFAULT_PROMPT_SECTIONS, PROVIDER_MODULES
from ..providers.base import ProviderConfig
from .errors import ConfigurationError
from .models import ConfigContext, ModelSpec, PathsConfig, StageConfig

logger = logging.getLogger("ShowScribe.Config")

DEFAULT_CONFIG_FILENAME = "config.yaml"


class Credentials(BaseSettings):
    """Provider API keys from the environment (or a .env file)."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    deepgram_api_key: Optional[SecretStr] = None
    assembly_api_key: Optional[SecretStr] = None
    openai_api_key: Optional[SecretStr] = None
    anthropic_api_key: Optional[SecretStr] = None
    gemini_api_key: Optional[SecretStr] = None
    cohere_api_key: Optional[SecretStr] = None
    mistral_api_key: Optional[SecretStr] = None
    deepseek_api_key: Optional[SecretStr] = None
    fireworks_api_key: Optional[SecretStr] = None
    together_api_key: Optional[SecretStr] = None
    groq_api_key: Optional[SecretStr] = None

    def for_provider(self, provider_name: str) -> Optional[SecretStr]:
        env_name = API_KEY_ENV.get(provider_name)
        if not env_name:
            return None
        return getattr(self, env_name.lower(), None)


def load_yaml(path: Path) -> Dict[str, Any]:
    if path.exists():
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}
    return {}


def _merge_dicts(base: Dict, update: Dict):
    """Recursively merge update dict into base dict."""
    for k, v in update.items():
        if isinstance(v, dict) and k in base and isinstance(base[k], dict):
            _merge_dicts(base[k], v)
        else:
            base[k] = v


def _provider_module(provider_name: str):
    module_name = PROVIDER_MODULES.get(provider_name)
    if not module_name:
        raise ConfigurationError(f"Unknown provider: {provider_name}")
    return importlib.import_module(f"showscribe.providers.{module_name}")


def load_provider_defaults(provider_name: str) -> Dict[str, Any]:
    """Packaged defaults.yaml for one provider id, with the variant selected where the module hosts several."""
    module = _provider_module(provider_name)
    defaults = load_yaml(Path(module.__file__).parent / "defaults.yaml")
    if "variants" in defaults:
        variant = dict(defaults["variants"].get(provider_name) or {})
        variant.setdefault("provider_id", provider_name)
        return variant
    return defaults


def load_provider_config(
    provider_name: str,
    user_provider_config: Optional[Dict[str, Any]] = None,
    credentials: Optional[Credentials] = None,
) -> ProviderConfig:
    """
    Build a provider's validated configuration.

    Args:
        provider_name: Provider id (e.g. 'deepgram', 'groq').
        user_provider_config: The provider section from the user's config.yaml.
        credentials: Environment credentials used when the config has no api_key.

    Returns:
        The provider's pydantic config model, defaults merged with user values.
    """
    module = _provider_module(provider_name)
    config_model = getattr(module, "Config", ProviderConfig)

    provider_config = load_provider_defaults(provider_name)
    _merge_dicts(provider_config, user_provider_config or {})

    if not provider_config.get("api_key") and credentials is not None:
        secret = credentials.for_provider(provider_name)
        if secret is not None:
            provider_config["api_key"] = secret

    try:
        return config_model(**provider_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration for provider '{provider_name}': {e}") from e


def load_rate_tables() -> Dict[str, List[ModelSpec]]:
    """Packaged rate tables for every provider, without user overrides."""
    tables = {}
    for provider_name in PROVIDER_MODULES:
        defaults = load_provider_defaults(provider_name)
        tables[provider_name] = [ModelSpec(**m) for m in defaults.get("models", [])]
    return tables


def find_config_file(config_path: Optional[str] = None) -> Optional[Path]:
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        return path

    # Search order: current dir -> user home
    for candidate in (Path(DEFAULT_CONFIG_FILENAME), Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME):
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None, env_file: Optional[str] = ".env") -> ConfigContext:
    """Load configuration from file and env vars."""
    if env_file:
        load_dotenv(env_file)

    user_config_path = find_config_file(config_path)
    user_config = load_yaml(user_config_path) if user_config_path else {}
    if user_config_path:
        logger.debug(f"Loaded config from {user_config_path}")

    credentials = Credentials()
    user_providers_section = user_config.get("providers", {}) or {}

    providers_config = {}
    for provider_name in PROVIDER_MODULES:
        providers_config[provider_name] = load_provider_config(
            provider_name, user_providers_section.get(provider_name, {}), credentials
        )

    unknown = set(user_providers_section) - set(PROVIDER_MODULES)
    if unknown:
        logger.warning(f"Ignoring unknown providers in config: {', '.join(sorted(unknown))}")

    transcribe_conf = user_config.get("transcribe")
    generate_conf = user_config.get("generate")

    try:
        return ConfigContext(
            transcribe=StageConfig(**transcribe_conf) if transcribe_conf else None,
            generate=StageConfig(**generate_conf) if generate_conf else None,
            prompt_sections=user_config.get("prompt_sections", DEFAULT_PROMPT_SECTIONS),
            debug=user_config.get("debug", False),
            output_mode=user_config.get("output_mode", "standard"),
            providers=providers_config,
            paths=PathsConfig(**(user_config.get("paths") or {})),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration file {user_config_path}: {e}") from e
