"""
Print Agent package

Polls a remote job queue for invoice print jobs addressed to one printer,
renders them to ESC/POS directives, prints them and reports the outcome.

This module provides the wiring:
- create_agent(): build QueueClient -> JobReporter -> JobProcessor -> Poller from an AgentConfig
- create_app(): a small Flask app exposing /healthz for the running agent
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional

import requests
from flask import Flask

from print_agent.core.config import AgentConfig
from print_agent.jobs.client import QueueClient
from print_agent.jobs.poller import Poller
from print_agent.jobs.reporter import JobReporter
from print_agent.printing.device import DeviceSink, create_device
from print_agent.printing.worker import JobProcessor
from print_agent.web.health import health_bp

__version__ = "1.0.0"


def create_agent(
    config: AgentConfig,
    device: Optional[DeviceSink] = None,
    session: Optional[requests.Session] = None,
) -> Poller:
    """
    Assemble a ready-to-start Poller from the config.

    `device` and `session` can be injected (tests, alternative transports);
    otherwise the device comes from `printer_type` and a fresh requests
    session is used.
    """
    stop = threading.Event()
    client = QueueClient.from_config(config, session=session)
    reporter = JobReporter(client)
    processor = JobProcessor.from_config(
        config,
        device or create_device(config),
        reporter,
        wait=stop.wait,
    )
    return Poller(client, processor, interval=config.poll_interval, stop_event=stop)


def create_app(
    poller: Optional[Poller] = None,
    config: Optional[AgentConfig] = None,
    config_overrides: Optional[Dict[str, Any]] = None,
) -> Flask:
    """
    Application factory for the health endpoint.

    Parameters:
    - poller: the running Poller whose status /healthz reports
    - config: the AgentConfig, for printer id/type in the health payload
    - config_overrides: values to inject into app.config after defaults
    """
    app = Flask("print_agent")
    app.url_map.strict_slashes = False
    app.extensions["print_agent"] = {"poller": poller, "config": config}
    app.register_blueprint(health_bp)
    if config_overrides:
        app.config.update(config_overrides)
    return app


__all__ = ["__version__", "create_agent", "create_app"]
