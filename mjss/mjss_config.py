"""
Configuration for MJSS hosts and the command-line runner.

Settings come from three layers, later ones winning: built-in defaults, an
optional YAML file, and MJSS_* environment variables.
"""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_STORAGE_KEY = "MJSS_SCRIPT"

_TRUE = ("1", "true", "yes", "on")

# Overrides the MJSS_DEBUG environment variable when not None.
_debug_override: Optional[bool] = None


@dataclass
class Config:
    storage_key: str = DEFAULT_STORAGE_KEY
    store: str = "memory"           # memory | file | http
    store_path: str = ".mjss"
    store_url: Optional[str] = None
    timeout: float = 5.0
    retries: int = 2
    strict: bool = False
    debug: bool = False


_ENV_KEYS = {
    "MJSS_STORAGE_KEY": "storage_key",
    "MJSS_STORE": "store",
    "MJSS_STORE_PATH": "store_path",
    "MJSS_STORE_URL": "store_url",
    "MJSS_STRICT": "strict",
    "MJSS_DEBUG": "debug",
}


def _coerce(name: str, value: Any) -> Any:
    match name:
        case "strict" | "debug":
            if isinstance(value, str):
                return value.strip().lower() in _TRUE
            return bool(value)
        case "timeout":
            return float(value)
        case "retries":
            return int(value)
        case "store":
            s = str(value).strip().lower()
            if s not in ("memory", "file", "http"):
                raise ValueError(f"Unknown store kind: {value!r}")
            return s
        case "store_url":
            return None if value is None else str(value)
        case _:
            return str(value)


def load_config(path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Config:
    """Builds a Config from defaults, an optional YAML file, then the environment."""
    values: Dict[str, Any] = {}
    known = {f.name for f in fields(Config)}

    if path is not None:
        text = Path(path).read_text(encoding="utf-8")
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        for key, value in data.items():
            name = str(key).replace("-", "_")
            if name not in known:
                raise ValueError(f"Unknown config key: {key!r}")
            values[name] = _coerce(name, value)

    env = os.environ if environ is None else environ
    for env_key, name in _ENV_KEYS.items():
        if env_key in env:
            values[name] = _coerce(name, env[env_key])

    return Config(**values)


def make_store(config: Config):
    """Builds the store named by config.store."""
    from mjss.mjss_store import MemoryStore, FileStore
    if config.store == "file":
        return FileStore(config.store_path)
    if config.store == "http":
        if not config.store_url:
            raise ValueError("store 'http' requires store_url")
        from mjss.mjss_http import HttpStore
        return HttpStore(config.store_url, {"timeout": config.timeout, "retries": config.retries})
    return MemoryStore()


def set_debug(flag: Optional[bool]):
    global _debug_override
    _debug_override = flag


def debug_enabled() -> bool:
    if _debug_override is not None:
        return _debug_override
    return os.environ.get("MJSS_DEBUG", "").strip().lower() in _TRUE


def dbg(*parts):
    if debug_enabled():
        print("[DBG]", *parts, file=sys.stderr)


__all__ = ["Config", "DEFAULT_STORAGE_KEY", "load_config", "make_store", "set_debug", "debug_enabled", "dbg"]
