"""
Error taxonomy for the print agent.

Each error is caught at the boundary of the component that owns it; none of
them is allowed to terminate the agent process.
"""

from __future__ import annotations


class PrintAgentError(Exception):
    """Base class for all agent errors."""


class ConfigError(PrintAgentError):
    """Missing or invalid configuration. Only fatal at startup."""


class FetchError(PrintAgentError):
    """Job retrieval failed (network, timeout, non-success status, bad body)."""


class RenderError(PrintAgentError):
    """The print payload could not be turned into printer directives."""


class DeviceError(PrintAgentError):
    """The printer could not be opened or written to."""


class ReportError(PrintAgentError):
    """The queue rejected a status update or could not be reached."""


__all__ = [
    "ConfigError",
    "DeviceError",
    "FetchError",
    "PrintAgentError",
    "RenderError",
    "ReportError",
]
