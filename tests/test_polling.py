import threading
import unittest
from unittest.mock import MagicMock

from showscribe.core.errors import CancelledError, ParseError, TranscriptionFailedError, TranscriptionTimeoutError
from showscribe.core.models import AsyncJob, JobStatus
from showscribe.core.polling import AsyncJobPoller


class TestAsyncJobPoller(unittest.TestCase):
    def setUp(self):
        self.sleeps = []
        self.poller = AsyncJobPoller(sleep=self.sleeps.append)

    def test_completes_on_fourth_poll(self):
        fetch = MagicMock(side_effect=[
            {"status": "queued"},
            {"status": "processing"},
            {"status": "processing"},
            {"status": "completed", "text": "hello"},
        ])
        payload = self.poller.wait("job-1", fetch)

        self.assertEqual(payload["text"], "hello")
        self.assertEqual(fetch.call_count, 4)
        fetch.assert_called_with("job-1")
        self.assertEqual(self.sleeps, [3.0] * 4)
        self.assertEqual(sum(self.sleeps), 12.0)

    def test_times_out_after_sixty_polls(self):
        fetch = MagicMock(return_value={"status": "processing"})
        with self.assertRaises(TranscriptionTimeoutError) as ctx:
            self.poller.wait("job-2", fetch)

        self.assertIsInstance(ctx.exception, TimeoutError)
        self.assertEqual(fetch.call_count, 60)
        self.assertEqual(sum(self.sleeps), 180.0)

    def test_error_status_fails(self):
        fetch = MagicMock(side_effect=[{"status": "processing"}, {"status": "error", "error": "bad audio"}])
        with self.assertRaises(TranscriptionFailedError) as ctx:
            self.poller.wait("job-3", fetch)
        self.assertIn("bad audio", str(ctx.exception))
        self.assertEqual(fetch.call_count, 2)

    def test_error_field_fails_even_when_processing(self):
        fetch = MagicMock(return_value={"status": "processing", "error": "quota exceeded"})
        with self.assertRaises(TranscriptionFailedError):
            self.poller.wait("job-4", fetch)
        self.assertEqual(fetch.call_count, 1)

    def test_unknown_status_keeps_polling(self):
        fetch = MagicMock(side_effect=[{"status": "uploading"}, {"status": "completed"}])
        self.assertEqual(self.poller.wait("job-5", fetch), {"status": "completed"})

    def test_non_dict_payload_is_parse_error(self):
        fetch = MagicMock(return_value=["not", "a", "dict"])
        with self.assertRaises(ParseError):
            self.poller.wait("job-6", fetch)

    def test_cancel_event(self):
        cancel = threading.Event()
        poller = AsyncJobPoller(sleep=self.sleeps.append, cancel_event=cancel)

        def fetch(job_id):
            cancel.set()
            return {"status": "processing"}

        with self.assertRaises(CancelledError):
            poller.wait("job-7", fetch)
        self.assertEqual(len(self.sleeps), 1)

    def test_custom_interval(self):
        poller = AsyncJobPoller(interval_ms=10, max_polls=3, sleep=self.sleeps.append)
        with self.assertRaises(TranscriptionTimeoutError):
            poller.wait("job-8", MagicMock(return_value={"status": "queued"}))
        self.assertEqual(self.sleeps, [0.01, 0.01, 0.01])


class TestAsyncJob(unittest.TestCase):
    def test_terminal_states(self):
        self.assertTrue(AsyncJob(job_id="j", status=JobStatus.COMPLETED).is_terminal)
        self.assertTrue(AsyncJob(job_id="j", status=JobStatus.ERROR).is_terminal)
        self.assertFalse(AsyncJob(job_id="j", status=JobStatus.PROCESSING).is_terminal)
        self.assertFalse(AsyncJob(job_id="j").is_terminal)


if __name__ == "__main__":
    unittest.main()
