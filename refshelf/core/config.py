# refshelf/core/config.py
# Loads Refshelf settings from a TOML file (defaults + overrides).
# - Reads REFSHELF_CONFIG or searches for refshelf.toml (CWD, its parents, package dir)
# - [storage] root is optional; without it the platform default is used (see services/storage.py)
# - Relative paths resolve against the directory of the config file that named them
# - Settings are an immutable value; nothing here holds the "current root"

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

import tomli as tomllib  # py3.11+: tomllib in stdlib; using tomli for compatibility

CONFIG_ENV = "REFSHELF_CONFIG"
CONFIG_NAME = "refshelf.toml"


# -------------------- Defaults (used if TOML omits keys) --------------------
_DEFAULTS = {
    "storage": {
        # "root": "/abs/or/relative/to/config/dir",
        "empty_trash_on_start": True,
        "empty_trash_on_exit": True,
        "recover_journal_on_start": True,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8731,
        "cors_origins": ["http://localhost:8080", "http://127.0.0.1:8080",
                         "http://localhost:5173", "http://127.0.0.1:5173"],
    },
    "logging": {
        "level": "INFO",
        # "logs_dir": "logs",   # default: <storage root>/logs
        "json": False,
    },
}


class ConfigError(ValueError):
    """Raised for config values of the wrong type/shape."""


# -------------------- Read + merge TOML --------------------

def _find_config_path() -> Optional[Path]:
    """Find refshelf.toml without user input.
    Priority:
      1) REFSHELF_CONFIG
      2) ./refshelf.toml (CWD)
      3) ascend parents from CWD looking for refshelf.toml
      4) refshelf.toml next to the package
    """
    cfg_env = os.getenv(CONFIG_ENV)
    if cfg_env:
        p = Path(cfg_env).expanduser()
        if p.exists():
            return p

    cur = Path.cwd()
    while True:
        candidate = cur / CONFIG_NAME
        if candidate.exists():
            return candidate
        if cur.parent == cur:
            break  # reached filesystem root
        cur = cur.parent

    pkg_default = Path(__file__).resolve().parents[2] / CONFIG_NAME
    if pkg_default.exists():
        return pkg_default

    return None


def _load_config_toml(path: Optional[Path]) -> dict:
    """Load TOML from path or return {} if there is none."""
    if path and path.exists():
        with path.open("rb") as f:
            return tomllib.load(f)
    return {}


def _section(cfg: dict, name: str) -> dict:
    raw = cfg.get(name) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"[{name}] must be a table")
    return {**_DEFAULTS[name], **raw}


def _as_bool(section: str, key: str, value) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"[{section}].{key} must be true/false, got {value!r}")
    return value


def _as_path(value, base: Path) -> Path:
    p = Path(str(value)).expanduser()
    return p if p.is_absolute() else (base / p)


# -------------------- Settings --------------------

class Settings:
    """
    Effective configuration.
    Paths are resolved relative to the config file's directory when given as relative strings.
    """

    def __init__(self, cfg: dict, *, source: Optional[Path] = None) -> None:
        self.source = source
        base = source.parent if source else Path.cwd()

        storage = _section(cfg, "storage")
        self.storage_root: Optional[Path] = (
            _as_path(storage["root"], base).resolve() if storage.get("root") else None
        )
        self.empty_trash_on_start = _as_bool("storage", "empty_trash_on_start", storage["empty_trash_on_start"])
        self.empty_trash_on_exit = _as_bool("storage", "empty_trash_on_exit", storage["empty_trash_on_exit"])
        self.recover_journal_on_start = _as_bool(
            "storage", "recover_journal_on_start", storage["recover_journal_on_start"]
        )

        server = _section(cfg, "server")
        self.host: str = str(server["host"])
        try:
            self.port: int = int(server["port"])
        except (TypeError, ValueError):
            raise ConfigError(f"[server].port must be an integer, got {server['port']!r}")
        origins = server["cors_origins"]
        if not isinstance(origins, list):
            raise ConfigError("[server].cors_origins must be a list of strings")
        self.cors_origins: List[str] = [str(o) for o in origins]

        log_cfg = _section(cfg, "logging")
        self.log_level: str = str(log_cfg["level"]).upper()
        self.logs_dir: Optional[Path] = (
            _as_path(log_cfg["logs_dir"], base).resolve() if log_cfg.get("logs_dir") else None
        )
        self.json_logs = _as_bool("logging", "json", log_cfg["json"])

    def __repr__(self) -> str:
        return (
            f"Settings(source={self.source}, storage_root={self.storage_root}, "
            f"empty_trash_on_start={self.empty_trash_on_start}, "
            f"empty_trash_on_exit={self.empty_trash_on_exit}, "
            f"recover_journal_on_start={self.recover_journal_on_start}, "
            f"host={self.host}, port={self.port}, log_level={self.log_level}, "
            f"logs_dir={self.logs_dir}, json_logs={self.json_logs})"
        )


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read settings from an explicit path, or from the best match (see _find_config_path)."""
    source = Path(path) if path else _find_config_path()
    return Settings(_load_config_toml(source), source=source)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
