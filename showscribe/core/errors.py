"""
Error taxonomy shared by every provider adapter.

Each class carries a ``retryable`` flag that the default retry classifier
reads. Callers can use the concrete type to decide between "fix your
configuration" and "try again" messaging.
"""
from typing import Optional


class ShowScribeError(Exception):
    """Base class for all showscribe errors."""

    retryable: bool = True

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message
        self.attempts: Optional[int] = None


class ConfigurationError(ShowScribeError):
    """Missing or invalid credential, model id or local installation."""

    retryable = False


class ProviderError(ShowScribeError):
    """Provider answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class ParseError(ShowScribeError):
    """Response body could not be decoded."""


class EmptyResultError(ShowScribeError):
    """Well-formed response that carries no usable content."""


class TranscriptionTimeoutError(ShowScribeError, TimeoutError):
    """Polling an asynchronous job exceeded its bound."""

    retryable = False


class TranscriptionFailedError(ShowScribeError):
    """Provider explicitly reported the job as failed."""

    retryable = False


class CancelledError(ShowScribeError):
    """Caller cancelled a retry or poll loop."""

    retryable = False
