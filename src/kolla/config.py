"""Configuration for the Kolla gateway.

Reads from config/kolla.ini if present, environment variables override.
Credentials never checked into version control.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

_CONFIG_FILE = Path(__file__).resolve().parent.parent.parent / "config" / "kolla.ini"

_INT_KEYS = {"chain_id", "duration_days", "port"}
_FLOAT_KEYS = {"store_timeout"}


@dataclass(frozen=True)
class KollaConfig:
    """Gateway configuration. Immutable once loaded."""

    store_backend: str = "memory"
    store_url: str = ""
    store_timeout: float = 30.0
    contract_address: str = ""
    chain_id: int = 0
    duration_days: int = 30
    api_key: str = ""
    host: str = "127.0.0.1"
    port: int = 8000


def _coerce(config_key: str, val: str):
    if config_key in _INT_KEYS:
        return int(val)
    if config_key in _FLOAT_KEYS:
        return float(val)
    return val


def load_config(config_path: Path | None = None) -> KollaConfig:
    """Load config from INI file, then override with environment variables."""
    path = config_path or _CONFIG_FILE
    kwargs: dict = {}

    if path.exists():
        parser = configparser.ConfigParser()
        parser.read(path)
        sections = {
            "store": [
                ("backend", "store_backend"),
                ("url", "store_url"),
                ("timeout", "store_timeout"),
            ],
            "reveal": [
                ("contract_address", "contract_address"),
                ("chain_id", "chain_id"),
                ("duration_days", "duration_days"),
            ],
            "gateway": [
                ("api_key", "api_key"),
                ("host", "host"),
                ("port", "port"),
            ],
        }
        for section, keys in sections.items():
            if not parser.has_section(section):
                continue
            for ini_key, config_key in keys:
                val = parser.get(section, ini_key, fallback=None)
                if val is not None:
                    kwargs[config_key] = _coerce(config_key, val)

    env_map = {
        "KOLLA_STORE_BACKEND": "store_backend",
        "KOLLA_STORE_URL": "store_url",
        "KOLLA_STORE_TIMEOUT": "store_timeout",
        "KOLLA_CONTRACT_ADDRESS": "contract_address",
        "KOLLA_CHAIN_ID": "chain_id",
        "KOLLA_DURATION_DAYS": "duration_days",
        "KOLLA_API_KEY": "api_key",
        "KOLLA_HOST": "host",
        "KOLLA_PORT": "port",
    }
    for env_key, config_key in env_map.items():
        val = os.getenv(env_key)
        if val is not None:
            kwargs[config_key] = _coerce(config_key, val)

    return KollaConfig(**kwargs)
