"""
Queue-facing side of the print agent.

- schemas: pydantic models for jobs and their invoice payloads
- client: HTTP client for the remote job queue
- reporter: terminal status reporting
- poller: the fetch loop (import from print_agent.jobs.poller)
"""

from .schemas import Job, JobStatus, LineItem, PrintData
from .client import QueueClient
from .reporter import JobReporter

__all__ = ["Job", "JobReporter", "JobStatus", "LineItem", "PrintData", "QueueClient"]
