import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from .errors import CancelledError, ParseError, TranscriptionFailedError, TranscriptionTimeoutError
from .models import AsyncJob, JobStatus

logger = logging.getLogger("ShowScribe.Poller")


class AsyncJobPoller:
    """
    Drives a submitted job to a terminal status.

    One interval is waited before every status read, so ``max_polls`` reads
    span ``max_polls * interval_ms`` milliseconds.
    """

    def __init__(
        self,
        interval_ms: int = 3000,
        max_polls: int = 60,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.interval_ms = interval_ms
        self.max_polls = max_polls
        self.sleep = sleep
        self.cancel_event = cancel_event

    def wait(self, job_id: str, fetch_status: Callable[[str], Dict[str, Any]]) -> Dict[str, Any]:
        """
        Poll ``fetch_status(job_id)`` until the job completes.

        Returns:
            The payload of the poll that reported ``completed``.

        Raises:
            TranscriptionFailedError: status ``error`` or a non-empty ``error`` field.
            TranscriptionTimeoutError: no terminal status after ``max_polls`` reads.
        """
        for poll in range(1, self.max_polls + 1):
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise CancelledError(f"Polling of job {job_id} cancelled")

            self.sleep(self.interval_ms / 1000)
            payload = fetch_status(job_id)
            job = self._to_job(job_id, payload)
            logger.debug(f"Job {job_id} poll {poll}/{self.max_polls}: {job.status.value}")

            if job.status == JobStatus.ERROR or job.error:
                raise TranscriptionFailedError(f"Transcription failed: {job.error or 'unknown error'}")
            if job.is_terminal:
                logger.info(f"Job {job_id} completed after {poll} poll(s)")
                return payload

        elapsed = self.max_polls * self.interval_ms / 1000
        raise TranscriptionTimeoutError(
            f"Job {job_id} did not finish within {self.max_polls} polls ({elapsed:g}s)"
        )

    @staticmethod
    def _to_job(job_id: str, payload: Dict[str, Any]) -> AsyncJob:
        if not isinstance(payload, dict):
            raise ParseError(f"Unexpected status payload for job {job_id}: {payload!r}")
        raw_status = payload.get("status") or JobStatus.QUEUED.value
        try:
            status = JobStatus(raw_status)
        except ValueError:
            # Unknown intermediate states count as still running
            status = JobStatus.PROCESSING
        error = payload.get("error")
        return AsyncJob(job_id=job_id, status=status, error=str(error) if error else None)
