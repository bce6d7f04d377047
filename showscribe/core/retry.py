import logging
import threading
import time
from typing import Callable, Optional, TypeVar

import requests

from .errors import CancelledError, ParseError, ProviderError
from .models import RetryPolicy

logger = logging.getLogger("ShowScribe.Retry")

T = TypeVar("T")

TRANSIENT_STATUS_CODES = {408, 409, 425, 429}


def retry_all(exc: BaseException) -> bool:
    """Default classifier: retry anything not explicitly marked non-retryable."""
    return getattr(exc, "retryable", True) is not False


def transient_only(exc: BaseException) -> bool:
    """Stricter classifier: retry only network hiccups, throttling, 5xx and decode errors."""
    if isinstance(exc, ParseError):
        return True
    if isinstance(exc, ProviderError):
        code = exc.status_code
        return code is None or code >= 500 or code in TRANSIENT_STATUS_CODES
    return isinstance(exc, (requests.ConnectionError, requests.Timeout, ConnectionError, TimeoutError)) and retry_all(exc)


class RetryObserver:
    """Hook notified about each attempt. Subclass and override what you need."""

    def on_attempt(self, attempt: int) -> None:
        pass

    def on_retry(self, attempt: int, delay_ms: int, error: BaseException) -> None:
        pass

    def on_give_up(self, attempt: int, error: BaseException) -> None:
        pass


class LoggingRetryObserver(RetryObserver):
    def __init__(self, label: str = "operation", log: Optional[logging.Logger] = None):
        self.label = label
        self.log = log or logger

    def on_attempt(self, attempt: int) -> None:
        self.log.debug(f"{self.label}: attempt {attempt}")

    def on_retry(self, attempt: int, delay_ms: int, error: BaseException) -> None:
        self.log.warning(f"{self.label}: attempt {attempt} failed ({error}). Retrying in {delay_ms} ms...")

    def on_give_up(self, attempt: int, error: BaseException) -> None:
        self.log.error(f"{self.label}: giving up after {attempt} attempt(s): {error}")


class RetryExecutor:
    """
    Bounded retry with exponential backoff.

    The operation is called until it succeeds, the classifier rejects the
    error, or ``policy.max_attempts`` calls have failed. The original
    exception is re-raised with an ``attempts`` attribute.

    Args:
        policy: Attempt count and backoff schedule.
        observer: Receives attempt/retry/give-up notifications.
        should_retry: Error classifier, ``retry_all`` by default.
        sleep: Called with the delay in seconds; injectable for tests.
        cancel_event: When set, the loop stops with ``CancelledError``.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        observer: Optional[RetryObserver] = None,
        should_retry: Optional[Callable[[BaseException], bool]] = None,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.policy = policy or RetryPolicy()
        self.observer = observer or LoggingRetryObserver()
        self.should_retry = should_retry or retry_all
        self.sleep = sleep
        self.cancel_event = cancel_event

    def run(self, operation: Callable[[], T]) -> T:
        attempt = 0
        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise CancelledError(f"Cancelled before attempt {attempt + 1}")

            self.observer.on_attempt(attempt + 1)
            try:
                return operation()
            except Exception as e:
                attempt += 1
                _annotate(e, attempt)

                if attempt >= self.policy.max_attempts or not self.should_retry(e):
                    self.observer.on_give_up(attempt, e)
                    raise

                delay_ms = self.policy.delay_ms(attempt)
                self.observer.on_retry(attempt, delay_ms, e)
                self.sleep(delay_ms / 1000)


def _annotate(error: BaseException, attempts: int) -> None:
    try:
        error.attempts = attempts
    except AttributeError:
        # Some C-level exceptions reject new attributes
        logger.debug(f"Could not record attempt count on {type(error).__name__}")
