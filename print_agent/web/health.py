from __future__ import annotations

"""
Health endpoint for the print agent.

This blueprint exposes `/healthz`, reporting:
- Overall status ("ok" or "degraded")
- Poller thread status, last poll time/outcome and job counters
- Which printer id and transport the agent is configured for
"""

from typing import Any, Dict

from flask import Blueprint, current_app

health_bp = Blueprint("health", __name__)


@health_bp.get("/healthz")
def healthz():
    ext = current_app.extensions.get("print_agent", {})
    poller = ext.get("poller")
    config = ext.get("config")

    status: Dict[str, Any] = {"status": "ok"}
    if config is not None:
        status["printer_id"] = config.printer_id
        status["printer_type"] = config.printer_type

    if poller is None:
        status["status"] = "degraded"
        status["reason"] = "no_poller"
        return status, 200

    status.update(poller.status())
    if not status.get("alive"):
        status["status"] = "degraded"
        status["reason"] = "poller_not_running"
    elif status.get("last_outcome") == "fetch_failed":
        status["status"] = "degraded"
        status["reason"] = "queue_unreachable"
    return status, 200


__all__ = ["health_bp"]
