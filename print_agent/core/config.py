"""
Config utilities for the print agent.

Responsibilities:
- Resolve the config path with environment and XDG support
- Provide JSON load/save helpers for the agent's config file
- Validate the merged settings (defaults < file < PRINTAGENT_* env) into an AgentConfig
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from print_agent.errors import ConfigError

ENV_PREFIX = "PRINTAGENT_"

PRINTER_TYPES = ("usb", "network", "serial", "dummy")


class AgentConfig(BaseModel):
    """Everything the poller, processor, reporter and device need, passed explicitly."""

    # Queue
    printer_id: str = Field(min_length=1)
    base_url: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    poll_interval_ms: int = Field(default=5000, gt=0)
    request_timeout_ms: int = Field(default=10000, gt=0)

    # Retry policy
    max_retries: int = Field(default=3, ge=1)
    retry_delay_ms: int = Field(default=2000, ge=0)
    retry_backoff_factor: float = Field(default=1.0, ge=1.0)

    # Printer transport
    printer_type: str = "usb"
    printer_profile: Optional[str] = None
    usb_vendor_id: str = "0x04b8"
    usb_product_id: str = "0x0e28"
    network_ip: str = ""
    network_port: int = 9100
    serial_port: str = ""
    serial_baudrate: int = 19200

    # Logging / health
    log_file: Optional[str] = None
    error_log_file: Optional[str] = None
    health_port: Optional[int] = None

    @field_validator("printer_id", mode="before")
    @classmethod
    def _printer_id_to_str(cls, v: Any) -> Any:
        # Queues commonly use numeric printer ids
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator("printer_type")
    @classmethod
    def _known_printer_type(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in PRINTER_TYPES:
            raise ValueError(f"printer_type must be one of {', '.join(PRINTER_TYPES)}")
        return v

    @field_validator("usb_vendor_id", "usb_product_id")
    @classmethod
    def _hex_id(cls, v: str) -> str:
        try:
            int(str(v), 16)
        except ValueError:
            raise ValueError("USB ids must be hexadecimal, e.g. 0x04b8") from None
        return str(v)

    @property
    def poll_interval(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def request_timeout(self) -> float:
        return self.request_timeout_ms / 1000.0

    @property
    def retry_delay(self) -> float:
        return self.retry_delay_ms / 1000.0


def default_config_path() -> str:
    """
    Resolve the default config path using:
    1) $XDG_CONFIG_HOME/printagent/config.json
    2) ~/.config/printagent/config.json
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return str(Path(xdg) / "printagent" / "config.json")
    return str(Path.home() / ".config" / "printagent" / "config.json")


def get_config_path() -> str:
    """
    Return the config path honoring PRINTAGENT_CONFIG_PATH override.
    """
    return os.environ.get(ENV_PREFIX + "CONFIG_PATH", default_config_path())


def read_config_file(path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Load the JSON config if it exists; return None if missing.

    Raises:
        ConfigError if the file exists but is not a JSON object.
        OSError for I/O errors other than missing file.
    """
    cfg_path = Path(path or get_config_path())
    if not cfg_path.exists():
        return None
    with cfg_path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file {cfg_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {cfg_path} must contain a JSON object")
    return data


def env_overrides(env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Collect PRINTAGENT_<FIELD> variables for every AgentConfig field.
    Empty values are ignored so an unset-but-exported variable doesn't clobber the file.
    """
    source = os.environ if env is None else env
    out: Dict[str, str] = {}
    for name in AgentConfig.model_fields:
        val = source.get(ENV_PREFIX + name.upper())
        if val is not None and val.strip() != "":
            out[name] = val.strip()
    return out


def load_config(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> AgentConfig:
    """
    Build the agent config from defaults, the JSON file (if any) and PRINTAGENT_* env vars.

    Raises ConfigError when required settings are missing or invalid.
    """
    data: Dict[str, Any] = read_config_file(path) or {}
    data.update(env_overrides(env))
    try:
        return AgentConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid agent configuration: {problems}") from e


def save_config(data: Dict[str, Any], path: Optional[str] = None) -> str:
    """
    Save the JSON config, creating parent directories as needed.

    Writes atomically by using a temporary file and os.replace().
    Returns the path written. Raises OSError on I/O failures.
    """
    cfg_path = Path(path or get_config_path())
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = cfg_path.with_suffix(cfg_path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, cfg_path)
    return str(cfg_path)


def sample_config() -> Dict[str, Any]:
    """A starter config written by `print-agent init-config`."""
    return {
        "printer_id": "1",
        "base_url": "http://localhost:8000/api/v1/client/public",
        "api_key": "change-me",
        "poll_interval_ms": 5000,
        "max_retries": 3,
        "retry_delay_ms": 2000,
        "request_timeout_ms": 10000,
        "printer_type": "usb",
        "usb_vendor_id": "0x04b8",
        "usb_product_id": "0x0e28",
        "log_file": "agent.log",
        "error_log_file": "agent-error.log",
    }


__all__ = [
    "AgentConfig",
    "ENV_PREFIX",
    "PRINTER_TYPES",
    "default_config_path",
    "env_overrides",
    "get_config_path",
    "load_config",
    "read_config_file",
    "sample_config",
    "save_config",
]
