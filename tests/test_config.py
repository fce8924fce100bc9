"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from plano.config import PlanoConfig, load_config

_ENV_KEYS = [
    "PLANO_STORE_BACKEND",
    "PLANO_STORE_PATH",
    "PLANO_INDEX_APPEND_ATTEMPTS",
    "PLANO_API_KEY",
    "PLANO_HOST",
    "PLANO_PORT",
    "PLANO_CONTRACT_ADDRESS",
    "PLANO_CHAIN_ID",
    "PLANO_DURATION_DAYS",
    "PLANO_MAX_REVEAL_SESSIONS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_file(tmp_path):
    assert load_config(tmp_path / "absent.ini") == PlanoConfig()


def test_ini_file(tmp_path):
    ini = tmp_path / "plano.ini"
    ini.write_text(
        "[store]\nbackend = file\npath = /var/lib/plano/store.json\n"
        "[gateway]\napi_key = s3cret\nport = 9100\n"
        "[reveal]\ncontract_address = 0xC0ffee\nchain_id = 0xaa36a7\nduration_days = 7\n"
    )
    config = load_config(ini)
    assert config.store_backend == "file"
    assert config.store_path == "/var/lib/plano/store.json"
    assert config.api_key == "s3cret"
    assert config.port == 9100
    assert config.contract_address == "0xC0ffee"
    assert config.chain_id == 11155111
    assert config.duration_days == 7


def test_env_overrides_file(tmp_path, monkeypatch):
    ini = tmp_path / "plano.ini"
    ini.write_text("[gateway]\nport = 9100\n")
    monkeypatch.setenv("PLANO_PORT", "9200")
    monkeypatch.setenv("PLANO_CHAIN_ID", "31337")
    config = load_config(ini)
    assert config.port == 9200
    assert config.chain_id == 31337


def test_max_reveal_sessions_from_env(tmp_path, monkeypatch):
    monkeypatch.setenv("PLANO_MAX_REVEAL_SESSIONS", "16")
    assert load_config(tmp_path / "absent.ini").max_reveal_sessions == 16


def test_unknown_backend_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("PLANO_STORE_BACKEND", "arango")
    with pytest.raises(ValueError):
        load_config(tmp_path / "absent.ini")


def test_config_is_frozen():
    config = PlanoConfig()
    with pytest.raises(AttributeError):
        config.port = 1  # type: ignore[misc]
