import json

import pytest

from print_agent.core.config import (
    AgentConfig,
    default_config_path,
    get_config_path,
    load_config,
    read_config_file,
    sample_config,
    save_config,
)
from print_agent.errors import ConfigError


def _required():
    return {"printer_id": 2, "base_url": "http://queue.test/api/", "api_key": "k"}


def test_defaults_and_normalisation(tmp_path):
    path = tmp_path / "cfg.json"
    save_config(_required(), path=str(path))
    cfg = load_config(str(path), env={})
    assert cfg.printer_id == "2"
    assert cfg.base_url == "http://queue.test/api"
    assert cfg.poll_interval_ms == 5000
    assert cfg.max_retries == 3
    assert cfg.request_timeout_ms == 10000
    assert cfg.retry_delay_ms == 2000
    assert cfg.retry_backoff_factor == 1.0
    assert cfg.printer_type == "usb"
    assert cfg.poll_interval == 5.0
    assert cfg.request_timeout == 10.0
    assert cfg.retry_delay == 2.0


def test_env_overrides_file(tmp_path):
    path = tmp_path / "cfg.json"
    save_config(dict(_required(), max_retries=5), path=str(path))
    env = {
        "PRINTAGENT_MAX_RETRIES": "4",
        "PRINTAGENT_PRINTER_TYPE": "Network",
        "PRINTAGENT_NETWORK_IP": "10.0.0.9",
        "PRINTAGENT_POLL_INTERVAL_MS": "2500",
        "PRINTAGENT_LOG_FILE": "",
    }
    cfg = load_config(str(path), env=env)
    assert cfg.max_retries == 4
    assert cfg.printer_type == "network"
    assert cfg.network_ip == "10.0.0.9"
    assert cfg.poll_interval == 2.5
    assert cfg.log_file is None


def test_env_only_config(tmp_path):
    env = {
        "PRINTAGENT_PRINTER_ID": "front-desk",
        "PRINTAGENT_BASE_URL": "https://queue.example.com",
        "PRINTAGENT_API_KEY": "abc",
    }
    cfg = load_config(str(tmp_path / "missing.json"), env=env)
    assert cfg.printer_id == "front-desk"


@pytest.mark.parametrize("missing", ["printer_id", "base_url", "api_key"])
def test_missing_required_raises(tmp_path, missing):
    data = _required()
    data.pop(missing)
    path = tmp_path / "cfg.json"
    save_config(data, path=str(path))
    with pytest.raises(ConfigError) as ei:
        load_config(str(path), env={})
    assert missing in str(ei.value)


@pytest.mark.parametrize(
    "override",
    [
        {"max_retries": 0},
        {"poll_interval_ms": 0},
        {"request_timeout_ms": -1},
        {"printer_type": "bluetooth"},
        {"base_url": "queue.test"},
        {"usb_vendor_id": "zz"},
        {"retry_backoff_factor": 0.5},
    ],
)
def test_invalid_values_raise(tmp_path, override):
    path = tmp_path / "cfg.json"
    save_config(dict(_required(), **override), path=str(path))
    with pytest.raises(ConfigError):
        load_config(str(path), env={})


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        read_config_file(str(path))


def test_non_object_json_raises(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path), env={})


def test_save_config_is_atomic_and_round_trips(tmp_path):
    path = tmp_path / "nested" / "cfg.json"
    written = save_config(sample_config(), path=str(path))
    assert written == str(path)
    assert not (tmp_path / "nested" / "cfg.json.tmp").exists()
    assert json.loads(path.read_text(encoding="utf-8"))["printer_type"] == "usb"
    # The sample is a valid config as-is
    assert isinstance(load_config(str(path), env={}), AgentConfig)


def test_config_path_resolution(monkeypatch, tmp_path):
    monkeypatch.delenv("PRINTAGENT_CONFIG_PATH", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_config_path() == str(tmp_path / "printagent" / "config.json")
    assert get_config_path() == default_config_path()

    monkeypatch.setenv("PRINTAGENT_CONFIG_PATH", "/etc/printagent.json")
    assert get_config_path() == "/etc/printagent.json"
