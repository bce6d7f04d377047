from typing import Any, List, Optional

import requests
from pydantic import BaseModel, Field, SecretStr

from ..core.errors import ParseError, ProviderError
from ..core.models import ModelSpec


class ProviderConfig(BaseModel):
    """
    Base configuration for all providers.

    Attributes:
        api_key: Credential used when the request does not carry one.
        default_model: Model used when the caller does not name one.
        models: The provider's rate table.
    """
    api_key: Optional[SecretStr] = Field(default=None, description="Provider API key")
    default_model: Optional[str] = None
    timeout: int = Field(default=600, description="Request timeout in seconds")
    models: List[ModelSpec] = Field(default_factory=list)

    def find_model(self, name: str) -> Optional[ModelSpec]:
        wanted = name.lower()
        return next((m for m in self.models if m.name.lower() == wanted), None)


def check_response(response: requests.Response, provider: str, endpoint: str) -> None:
    """Raise ``ProviderError`` for any non-2xx response."""
    if not response.ok:
        raise ProviderError(
            f"{provider} {endpoint} failed: {response.reason or 'error'}",
            status_code=response.status_code,
            body=response.text[:2000] if response.text else None,
        )


def json_body(response: requests.Response, provider: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise ParseError(f"{provider} returned a body that is not valid JSON: {response.text[:200]!r}") from e


def request_error(provider: str, endpoint: str, error: requests.RequestException) -> ProviderError:
    """Map a transport-level failure to a ``ProviderError`` without status."""
    return ProviderError(f"{provider} {endpoint} unreachable: {error}", status_code=None)
