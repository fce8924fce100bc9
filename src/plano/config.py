"""Configuration for the Plano gateway.

Reads from config/plano.ini if present, environment variables override.
Credentials never checked into version control.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

_CONFIG_FILE = Path(__file__).resolve().parent.parent.parent / "config" / "plano.ini"

_INT_KEYS = {"port", "chain_id", "duration_days", "index_append_attempts", "max_reveal_sessions"}


@dataclass(frozen=True)
class PlanoConfig:
    """Gateway configuration. Immutable once loaded."""

    store_backend: str = "memory"
    store_path: str = "plano-store.json"
    api_key: str = ""
    host: str = "127.0.0.1"
    port: int = 8000
    contract_address: str = ""
    chain_id: int = 0
    duration_days: int = 30
    index_append_attempts: int = 5
    max_reveal_sessions: int = 1024


_INI_MAP = {
    "store": [
        ("backend", "store_backend"),
        ("path", "store_path"),
        ("index_append_attempts", "index_append_attempts"),
    ],
    "gateway": [
        ("api_key", "api_key"),
        ("host", "host"),
        ("port", "port"),
    ],
    "reveal": [
        ("contract_address", "contract_address"),
        ("chain_id", "chain_id"),
        ("duration_days", "duration_days"),
        ("max_sessions", "max_reveal_sessions"),
    ],
}

_ENV_MAP = {
    "PLANO_STORE_BACKEND": "store_backend",
    "PLANO_STORE_PATH": "store_path",
    "PLANO_INDEX_APPEND_ATTEMPTS": "index_append_attempts",
    "PLANO_API_KEY": "api_key",
    "PLANO_HOST": "host",
    "PLANO_PORT": "port",
    "PLANO_CONTRACT_ADDRESS": "contract_address",
    "PLANO_CHAIN_ID": "chain_id",
    "PLANO_DURATION_DAYS": "duration_days",
    "PLANO_MAX_REVEAL_SESSIONS": "max_reveal_sessions",
}


def _coerce(config_key: str, val: str):
    if config_key in _INT_KEYS:
        # Chain ids are often written in hex, as wallets report them.
        return int(val, 0)
    return val


def load_config(config_path: Path | None = None) -> PlanoConfig:
    """Load config from INI file, then override with environment variables."""
    path = config_path or _CONFIG_FILE
    kwargs: dict = {}

    if path.exists():
        parser = configparser.ConfigParser()
        parser.read(path)
        for section, pairs in _INI_MAP.items():
            if not parser.has_section(section):
                continue
            for ini_key, config_key in pairs:
                val = parser.get(section, ini_key, fallback=None)
                if val is not None:
                    kwargs[config_key] = _coerce(config_key, val)

    for env_key, config_key in _ENV_MAP.items():
        val = os.getenv(env_key)
        if val is not None:
            kwargs[config_key] = _coerce(config_key, val)

    if kwargs.get("store_backend", "memory") not in ("memory", "file"):
        raise ValueError(f"Unknown store backend: {kwargs['store_backend']!r}")
    return PlanoConfig(**kwargs)
