import threading
import unittest
from unittest.mock import MagicMock

import requests

from showscribe.core.errors import (
    CancelledError,
    ConfigurationError,
    EmptyResultError,
    ParseError,
    ProviderError,
    TranscriptionFailedError,
    TranscriptionTimeoutError,
)
from showscribe.core.models import RetryPolicy
from showscribe.core.retry import RetryExecutor, RetryObserver, retry_all, transient_only


class FlakyOperation:
    """Fails a fixed number of times, then returns a value."""

    def __init__(self, failures, error_factory=lambda n: ProviderError(f"boom {n}", status_code=500), value="ok"):
        self.failures = failures
        self.error_factory = error_factory
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_factory(self.calls)
        return self.value


class TestRetryExecutor(unittest.TestCase):
    def setUp(self):
        self.sleeps = []
        self.executor = RetryExecutor(sleep=self.sleeps.append)

    def test_success_first_try(self):
        op = FlakyOperation(0)
        self.assertEqual(self.executor.run(op), "ok")
        self.assertEqual(op.calls, 1)
        self.assertEqual(self.sleeps, [])

    def test_fails_k_times_then_succeeds(self):
        for k in range(1, 7):
            with self.subTest(k=k):
                self.sleeps.clear()
                op = FlakyOperation(k)
                self.assertEqual(self.executor.run(op), "ok")
                self.assertEqual(op.calls, k + 1)
                self.assertEqual(self.sleeps, [2 ** i for i in range(k)])

    def test_always_failing_raises_last_error_after_seven_calls(self):
        op = FlakyOperation(100)
        with self.assertRaises(ProviderError) as ctx:
            self.executor.run(op)
        self.assertEqual(op.calls, 7)
        self.assertEqual(ctx.exception.message, "boom 7")
        self.assertEqual(ctx.exception.attempts, 7)
        self.assertEqual(self.sleeps, [1.0, 2.0, 4.0, 8.0, 16.0, 32.0])

    def test_configuration_error_is_not_retried(self):
        op = FlakyOperation(5, error_factory=lambda n: ConfigurationError("no key"))
        with self.assertRaises(ConfigurationError) as ctx:
            self.executor.run(op)
        self.assertEqual(op.calls, 1)
        self.assertEqual(ctx.exception.attempts, 1)
        self.assertEqual(self.sleeps, [])

    def test_empty_result_is_retried_by_default(self):
        op = FlakyOperation(2, error_factory=lambda n: EmptyResultError("empty"))
        self.assertEqual(self.executor.run(op), "ok")
        self.assertEqual(op.calls, 3)

    def test_plain_exceptions_are_retried(self):
        op = FlakyOperation(1, error_factory=lambda n: ValueError("bad"))
        self.assertEqual(self.executor.run(op), "ok")
        self.assertEqual(op.calls, 2)

    def test_custom_policy(self):
        executor = RetryExecutor(
            policy=RetryPolicy(max_attempts=3, base_delay_ms=10, backoff_multiplier=3),
            sleep=self.sleeps.append,
        )
        op = FlakyOperation(100)
        with self.assertRaises(ProviderError):
            executor.run(op)
        self.assertEqual(op.calls, 3)
        self.assertEqual(self.sleeps, [0.01, 0.03])

    def test_classifier_hook(self):
        executor = RetryExecutor(should_retry=transient_only, sleep=self.sleeps.append)
        op = FlakyOperation(3, error_factory=lambda n: ProviderError("bad request", status_code=400))
        with self.assertRaises(ProviderError):
            executor.run(op)
        self.assertEqual(op.calls, 1)

    def test_observer_is_notified(self):
        observer = MagicMock(spec=RetryObserver)
        executor = RetryExecutor(observer=observer, sleep=self.sleeps.append)
        executor.run(FlakyOperation(2))

        self.assertEqual([c.args[0] for c in observer.on_attempt.call_args_list], [1, 2, 3])
        self.assertEqual([c.args[:2] for c in observer.on_retry.call_args_list], [(1, 1000), (2, 2000)])
        observer.on_give_up.assert_not_called()

    def test_observer_on_give_up(self):
        observer = MagicMock(spec=RetryObserver)
        executor = RetryExecutor(policy=RetryPolicy(max_attempts=2), observer=observer, sleep=self.sleeps.append)
        with self.assertRaises(ProviderError):
            executor.run(FlakyOperation(5))
        observer.on_give_up.assert_called_once()
        self.assertEqual(observer.on_give_up.call_args.args[0], 2)

    def test_cancel_event_stops_before_next_attempt(self):
        cancel = threading.Event()
        executor = RetryExecutor(sleep=lambda s: cancel.set(), cancel_event=cancel)
        op = FlakyOperation(100)
        with self.assertRaises(CancelledError):
            executor.run(op)
        self.assertEqual(op.calls, 1)


class TestRetryPolicy(unittest.TestCase):
    def test_delay_schedule(self):
        policy = RetryPolicy()
        self.assertEqual([policy.delay_ms(a) for a in range(1, 8)], [1000, 2000, 4000, 8000, 16000, 32000, 64000])


class TestClassifiers(unittest.TestCase):
    def test_retry_all(self):
        self.assertTrue(retry_all(ProviderError("x", status_code=400)))
        self.assertTrue(retry_all(ParseError("x")))
        self.assertTrue(retry_all(EmptyResultError("x")))
        self.assertTrue(retry_all(RuntimeError("x")))
        self.assertFalse(retry_all(ConfigurationError("x")))
        self.assertFalse(retry_all(TranscriptionTimeoutError("x")))
        self.assertFalse(retry_all(TranscriptionFailedError("x")))
        self.assertFalse(retry_all(CancelledError("x")))

    def test_transient_only(self):
        self.assertTrue(transient_only(ProviderError("x", status_code=503)))
        self.assertTrue(transient_only(ProviderError("x", status_code=429)))
        self.assertTrue(transient_only(ProviderError("x")))
        self.assertTrue(transient_only(ParseError("x")))
        self.assertTrue(transient_only(requests.ConnectionError("reset")))
        self.assertFalse(transient_only(ProviderError("x", status_code=401)))
        self.assertFalse(transient_only(EmptyResultError("x")))
        self.assertFalse(transient_only(TranscriptionTimeoutError("x")))
        self.assertFalse(transient_only(ValueError("x")))


if __name__ == "__main__":
    unittest.main()
