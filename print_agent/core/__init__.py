"""
Core utilities for the print agent.

This package groups helpers used across the agent:
- config: config path resolution, JSON load/save, AgentConfig validation
- logging: job-id aware logging filters/formatters and root logger config

Exports are explicit to keep static analyzers (e.g., Pyright) happy.
"""

from .config import (
    AgentConfig,
    default_config_path,
    get_config_path,
    load_config,
    sample_config,
    save_config,
)
from .logging import (
    JobIdFilter,
    JsonFormatter,
    configure_logging,
    job_context,
)

__all__ = [
    # config
    "AgentConfig",
    "default_config_path",
    "get_config_path",
    "load_config",
    "sample_config",
    "save_config",
    # logging
    "configure_logging",
    "job_context",
    "JobIdFilter",
    "JsonFormatter",
]
