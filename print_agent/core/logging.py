"""
Logging utilities for the print agent.

- JobIdFilter attaches the id of the job currently in flight (or "-") to every record
- JsonFormatter emits structured logs when PRINTAGENT_JSON_LOGS=true
- configure_logging() sets up the root logger: journald or console, plus the
  optional append-only info and error log files
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional

_current_job_id: ContextVar[str] = ContextVar("print_agent_job_id", default="-")

PLAIN_FORMAT = "[%(asctime)s] %(levelname)s %(job_id)s %(message)s"


@contextmanager
def job_context(job_id: Any) -> Iterator[None]:
    """Tag all log records emitted inside the block with the given job id."""
    token = _current_job_id.set(str(job_id))
    try:
        yield
    finally:
        _current_job_id.reset(token)


def current_job_id() -> str:
    return _current_job_id.get()


class JobIdFilter(logging.Filter):
    """
    Attach the in-flight job id to log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.job_id = _current_job_id.get()
        return True


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON formatter that includes timestamp, level, logger, message and job_id.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        from json import dumps

        base = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "job_id": getattr(record, "job_id", "-"),
        }
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return dumps(base, ensure_ascii=False)


def _make_formatter() -> logging.Formatter:
    json_logs = os.environ.get("PRINTAGENT_JSON_LOGS", "false").lower() in ("1", "true", "yes")
    if json_logs:
        return JsonFormatter()
    return logging.Formatter(PLAIN_FORMAT)


def _file_handler(path: str, level: int, formatter: logging.Formatter) -> logging.Handler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(JobIdFilter())
    return handler


def configure_logging(
    log_file: Optional[str] = None,
    error_log_file: Optional[str] = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Configure root logging for the agent.

    Behavior:
    - Sets root logger to `level` (INFO by default)
    - Clears any existing handlers to avoid duplicates on repeated calls
    - Chooses JSON or plain formatter based on PRINTAGENT_JSON_LOGS
    - Prefer systemd's JournalHandler, fallback to StreamHandler
    - When given, appends INFO+ records to `log_file` and ERROR+ records to `error_log_file`

    Returns the configured root logger.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = []

    formatter = _make_formatter()

    try:
        from systemd.journal import JournalHandler  # type: ignore

        handler: logging.Handler = JournalHandler()
        handler.setFormatter(formatter)
    except Exception:
        handler = logging.StreamHandler()
        handler.setFormatter(formatter)

    handler.addFilter(JobIdFilter())
    root.addHandler(handler)

    if log_file:
        root.addHandler(_file_handler(log_file, logging.INFO, formatter))
    if error_log_file:
        root.addHandler(_file_handler(error_log_file, logging.ERROR, formatter))

    # Werkzeug's request log is noisy for a health endpoint polled by a supervisor
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    return root


__all__ = ["JobIdFilter", "JsonFormatter", "configure_logging", "current_job_id", "job_context"]
