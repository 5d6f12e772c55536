"""
Polling loop for the print agent.

One background thread fetches at most one job per tick and drives it to
completion before the next fetch. Polls run once at startup and then on a
fixed cadence; if a cycle overruns the interval, the ticks that fell due in
the meantime are skipped (never run back-to-back or concurrently).

The queue is trusted to hand each job to exactly one fetch, so there is no
client-side locking here.
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from print_agent.errors import FetchError
from print_agent.jobs.client import QueueClient
from print_agent.jobs.schemas import Job
from print_agent.printing.worker import JobProcessor

logger = logging.getLogger(__name__)


class PollOutcome(str, Enum):
    NO_JOB = "no_job"
    FETCH_FAILED = "fetch_failed"
    JOB_HANDLED = "job_handled"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Poller:
    def __init__(
        self,
        client: QueueClient,
        processor: JobProcessor,
        interval: float = 5.0,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.client = client
        self.processor = processor
        self.interval = float(interval)
        self._clock = clock

        # Shared with the processor's retry wait so stop() also cuts that short
        self._stop = stop_event if stop_event is not None else threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.RLock()
        self._status: Dict[str, Any] = {
            "running": False,
            "last_poll_at": None,
            "last_outcome": None,
            "last_error": None,
            "jobs_printed": 0,
            "jobs_failed": 0,
            "skipped_ticks": 0,
        }

    # ---- Status -------------------------------------------------------

    def _update_status(self, **updates: Any) -> None:
        with self._lock:
            self._status.update(updates)

    def _bump(self, key: str, n: int = 1) -> None:
        with self._lock:
            self._status[key] = int(self._status.get(key, 0)) + n

    def status(self) -> Dict[str, Any]:
        """Snapshot for the health endpoint."""
        with self._lock:
            snap = dict(self._status)
        snap["alive"] = bool(self._thread) and self._thread.is_alive()  # type: ignore[union-attr]
        snap["printer_id"] = self.client.printer_id
        return snap

    # ---- One cycle ----------------------------------------------------

    def fetch_next(self) -> Tuple[PollOutcome, Optional[Job]]:
        """
        Fetch the next job for this printer.

        Returns (outcome, job): NO_JOB and FETCH_FAILED come with no job; a
        failed fetch is logged and simply retried on the next tick.
        """
        try:
            job = self.client.fetch_next()
        except FetchError as e:
            logger.error("%s", e)
            self._update_status(last_outcome=PollOutcome.FETCH_FAILED.value, last_error=str(e))
            return PollOutcome.FETCH_FAILED, None
        if job is None:
            logger.info("No pending jobs")
            self._update_status(last_outcome=PollOutcome.NO_JOB.value)
            return PollOutcome.NO_JOB, None
        logger.info("Picked job %s (server marked as 'processing')", job.id)
        return PollOutcome.JOB_HANDLED, job

    def poll_once(self) -> PollOutcome:
        self._update_status(last_poll_at=_utc_now_iso())
        outcome, job = self.fetch_next()
        if job is None:
            return outcome

        result = self.processor.process(job)
        if result.printed:
            self._bump("jobs_printed")
            self._update_status(last_error=None)
        else:
            self._bump("jobs_failed")
            self._update_status(last_error=result.error)
        self._update_status(last_outcome=PollOutcome.JOB_HANDLED.value)
        return PollOutcome.JOB_HANDLED

    # ---- Loop ---------------------------------------------------------

    def run_forever(self) -> None:
        """
        Poll immediately, then on every tick until stop() is called.
        Never raises: unexpected errors are logged and the loop carries on.
        """
        self._update_status(running=True)
        logger.info("Polling every %.1fs for printer %s", self.interval, self.client.printer_id)
        next_tick = self._clock()
        try:
            while not self._stop.is_set():
                try:
                    self.poll_once()
                except Exception as e:
                    logger.exception(f"Unexpected error in poll loop: {e}")
                    self._update_status(last_error=str(e))

                next_tick += self.interval
                now = self._clock()
                if next_tick < now:
                    missed = int((now - next_tick) // self.interval) + 1
                    next_tick += missed * self.interval
                    self._bump("skipped_ticks", missed)
                    logger.warning("Poll cycle overran the %.1fs interval; skipped %d tick(s)", self.interval, missed)
                self._stop.wait(max(0.0, next_tick - now))
        finally:
            self._update_status(running=False)
            logger.info("Poller stopped")

    def start(self) -> None:
        """
        Ensure the background polling thread is started (idempotent).
        """
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        t = threading.Thread(target=self.run_forever, daemon=True, name="print-agent-poller")
        t.start()
        self._thread = t
        logger.info("Background poller started")

    def wait(self, seconds: float) -> bool:
        """Sleep that returns early when the poller is stopping."""
        return self._stop.wait(seconds)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        t = self._thread
        if t and t.is_alive() and t is not threading.current_thread():
            t.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        t = self._thread
        if t:
            t.join(timeout)

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()


__all__ = ["PollOutcome", "Poller"]
