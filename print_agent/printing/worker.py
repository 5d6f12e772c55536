"""
Job processing for the print agent.

This module owns the per-job retry state machine:

    not_started -> attempting(1) -> succeeded
                                  -> attempting(2) -> ... -> failed

Each attempt renders the invoice and drives the device, returning an explicit
AttemptResult instead of letting exceptions steer the loop. Exactly one
terminal status is reported per job; a failed report is logged, not retried.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from print_agent.core.config import AgentConfig
from print_agent.core.logging import job_context
from print_agent.errors import PrintAgentError
from print_agent.jobs.reporter import JobReporter
from print_agent.jobs.schemas import Job, JobStatus
from print_agent.printing.device import DeviceSink
from print_agent.printing.render import render_receipt

logger = logging.getLogger(__name__)


class ProcessorState(str, Enum):
    NOT_STARTED = "not_started"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptResult:
    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "AttemptResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "AttemptResult":
        return cls(ok=False, error=reason or "unknown error")


@dataclass(frozen=True)
class JobOutcome:
    job_id: Union[int, str]
    state: ProcessorState
    attempts: int
    error: Optional[str] = None
    reported: bool = False

    @property
    def printed(self) -> bool:
        return self.state is ProcessorState.SUCCEEDED


class JobProcessor:
    """
    Drives one job at a time through render -> print -> report.

    `wait` is used for the pause between attempts; it defaults to time.sleep.
    create_agent() passes the poller's stop event, whose wait() returns True
    on shutdown: the job is then reported failed with its last error instead
    of burning the remaining attempts back-to-back.
    """

    def __init__(
        self,
        device: DeviceSink,
        reporter: JobReporter,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        backoff_factor: float = 1.0,
        wait: Optional[Callable[[float], Any]] = None,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.device = device
        self.reporter = reporter
        self.max_retries = max_retries
        self.retry_delay = max(0.0, float(retry_delay))
        self.backoff_factor = max(1.0, float(backoff_factor))
        self._wait = wait

    @classmethod
    def from_config(
        cls,
        config: AgentConfig,
        device: DeviceSink,
        reporter: JobReporter,
        wait: Optional[Callable[[float], Any]] = None,
    ) -> "JobProcessor":
        return cls(
            device,
            reporter,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            backoff_factor=config.retry_backoff_factor,
            wait=wait,
        )

    def delay_for(self, attempt: int) -> float:
        """Pause after failed attempt `attempt` (1-based). Fixed unless a backoff factor is set."""
        return self.retry_delay * (self.backoff_factor ** (attempt - 1))

    def attempt(self, job: Job) -> AttemptResult:
        """Render and print once. Never raises."""
        try:
            directives = render_receipt(job.print_data)
            self.device.print_directives(directives)
        except PrintAgentError as e:
            return AttemptResult.failure(str(e))
        except Exception as e:
            logger.exception(f"Unexpected error while printing job {job.id}: {e}")
            return AttemptResult.failure(str(e) or type(e).__name__)
        return AttemptResult.success()

    def process(self, job: Job) -> JobOutcome:
        with job_context(job.id):
            return self._run(job)

    def _run(self, job: Job) -> JobOutcome:
        state = ProcessorState.NOT_STARTED
        attempt = 0
        result = AttemptResult.failure("not attempted")

        while state in (ProcessorState.NOT_STARTED, ProcessorState.ATTEMPTING):
            attempt += 1
            state = ProcessorState.ATTEMPTING
            result = self.attempt(job)

            if result.ok:
                state = ProcessorState.SUCCEEDED
            else:
                logger.error(
                    "Print attempt %d/%d failed for job %s: %s", attempt, self.max_retries, job.id, result.error
                )
                if attempt >= self.max_retries:
                    state = ProcessorState.FAILED
                else:
                    delay = self.delay_for(attempt)
                    if delay > 0:
                        logger.info("Retrying job %s in %.1fs", job.id, delay)
                        # Event.wait() returns True once shutdown has been requested
                        if (self._wait or time.sleep)(delay) is True:
                            logger.warning("Shutting down; no further attempts for job %s", job.id)
                            state = ProcessorState.FAILED

        if state is ProcessorState.SUCCEEDED:
            reported = self.reporter.report(job.id, JobStatus.PRINTED)
            if not reported:
                logger.error("Job %s printed but the queue was not updated", job.id)
            logger.info("Job %s printed successfully after %d attempt(s)", job.id, attempt)
            return JobOutcome(job.id, state, attempt, reported=reported)

        reported = self.reporter.report(job.id, JobStatus.FAILED, result.error)
        if not reported:
            logger.error("Job %s failed and the queue was not updated", job.id)
        logger.info("Job %s failed after %d attempt(s): %s", job.id, attempt, result.error)
        return JobOutcome(job.id, state, attempt, error=result.error, reported=reported)


__all__ = ["AttemptResult", "JobOutcome", "JobProcessor", "ProcessorState"]
