"""
Reports the terminal outcome of a job back to the queue.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from print_agent.errors import ReportError
from print_agent.jobs.client import QueueClient
from print_agent.jobs.schemas import TERMINAL_STATUSES, JobStatus

logger = logging.getLogger(__name__)


class JobReporter:
    """
    Posts `printed` or `failed` for a job. Never raises for queue problems and
    never retries: a failed report is logged and the job is left to the queue.
    """

    def __init__(self, client: QueueClient):
        self.client = client

    def report(
        self,
        job_id: Union[int, str],
        status: Union[JobStatus, str],
        error_message: Optional[str] = None,
    ) -> bool:
        status = JobStatus(status)
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Agent can only report {', '.join(s.value for s in TERMINAL_STATUSES)}, not {status.value}")
        try:
            self.client.mark(job_id, status.value, error_message)
        except ReportError as e:
            logger.error("Could not mark job %s as %s: %s", job_id, status.value, e)
            return False
        logger.info("Marked job %s as %s", job_id, status.value)
        return True


__all__ = ["JobReporter"]
