"""
HTTP client for the remote job queue.

Talks to two endpoints, both authenticated with a static X-Printer-Key header:
- GET  <base>/printers/jobs?printer_id=<id>        -> next job (or 204)
- POST <base>/printers/jobs/<id>/mark-printed      -> terminal status
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import requests
from pydantic import ValidationError

from print_agent.core.config import AgentConfig
from print_agent.errors import FetchError, ReportError
from print_agent.jobs.schemas import Job

logger = logging.getLogger(__name__)

AUTH_HEADER = "X-Printer-Key"


def _snippet(response: requests.Response, limit: int = 200) -> str:
    try:
        text = response.text or ""
    except Exception:
        return ""
    return text[:limit]


class QueueClient:
    """
    Thin wrapper around a requests.Session bound to one printer's queue.

    Every call carries the configured timeout; errors surface as FetchError or
    ReportError so callers can apply their own policy.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        printer_id: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.printer_id = printer_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                AUTH_HEADER: api_key,
                "Accept": "application/json",
            }
        )

    @classmethod
    def from_config(cls, config: AgentConfig, session: Optional[requests.Session] = None) -> "QueueClient":
        return cls(
            base_url=config.base_url,
            api_key=config.api_key,
            printer_id=config.printer_id,
            timeout=config.request_timeout,
            session=session,
        )

    @property
    def jobs_url(self) -> str:
        return f"{self.base_url}/printers/jobs"

    def mark_url(self, job_id: Union[int, str]) -> str:
        return f"{self.base_url}/printers/jobs/{job_id}/mark-printed"

    def fetch_next(self) -> Optional[Job]:
        """
        Ask the queue for the next job assigned to this printer.

        Returns:
            The Job, or None when nothing is pending.

        Raises:
            FetchError on network errors, timeouts, non-success status codes
            or a body that isn't a valid job.
        """
        try:
            response = self.session.get(
                self.jobs_url,
                params={"printer_id": self.printer_id},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise FetchError(f"Job fetch timed out after {self.timeout:g}s") from e
        except requests.RequestException as e:
            raise FetchError(f"Job fetch failed: {e}") from e

        if response.status_code == 204:
            return None
        if response.status_code != 200:
            raise FetchError(f"Job fetch failed: HTTP {response.status_code} {_snippet(response)}")
        if not (response.content or b"").strip():
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Job fetch returned invalid JSON: {_snippet(response)}") from e

        if not data:
            return None
        if not isinstance(data, dict):
            raise FetchError(f"Job fetch returned {type(data).__name__}, expected an object")
        if not data.get("print_data"):
            # A job without a payload is treated as nothing to do
            return None

        try:
            return Job.model_validate(data)
        except ValidationError as e:
            raise FetchError(f"Job fetch returned a malformed job: {e.errors()[0].get('msg', e)}") from e

    def mark(self, job_id: Union[int, str], status: str, error_message: Optional[str] = None) -> None:
        """
        Post a terminal status for a job.

        Raises:
            ReportError when the queue can't be reached or doesn't answer 200.
        """
        body: Dict[str, Any] = {"status": status}
        if error_message:
            body["error_message"] = error_message
        try:
            response = self.session.post(self.mark_url(job_id), json=body, timeout=self.timeout)
        except requests.Timeout as e:
            raise ReportError(f"Mark status timed out after {self.timeout:g}s") from e
        except requests.RequestException as e:
            raise ReportError(f"Mark status error: {e}") from e
        if response.status_code != 200:
            raise ReportError(f"Mark status failed: HTTP {response.status_code} {_snippet(response)}")

    def close(self) -> None:
        self.session.close()


__all__ = ["AUTH_HEADER", "QueueClient"]
