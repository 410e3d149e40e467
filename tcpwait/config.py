"""Configuration utilities for tcpwait runs.

This module reads environment variables (optionally from an `.env` file in the
working directory) and produces the application configuration object used for
logging and alerting. Wait parameters come from the command line instead; see
``tcpwait.jobs.runner.RunConfig``.

See `.env.example` for supported keys: `LOG_DIR`, `LOG_LEVEL`, `APP_NAME` and
the optional `TELEGRAM_*` alert settings.

Usage example:

    from tcpwait.config import load_config

    config = load_config()
    configure_logging(config)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

DEFAULT_ENV_FILENAME = ".env"
DEFAULT_APP_NAME = "tcpwait"


def _load_env_file(path: Path) -> Dict[str, str]:
    """Parse a dotenv-style file into a dictionary."""
    if not path.exists():
        return {}

    data: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip().strip("\"'")
    return data


def _merge_envs(dotenv_values: Mapping[str, str], env: MutableMapping[str, str]) -> Dict[str, str]:
    """Merge dotenv values with the current environment, preferring os.environ."""
    merged = dict(dotenv_values)
    merged.update(env)  # os.environ wins
    return merged


def load_environment(env_file: Optional[Path] = None) -> Dict[str, str]:
    """Return the dotenv file merged with ``os.environ``."""
    target_file = env_file or Path.cwd() / DEFAULT_ENV_FILENAME
    return _merge_envs(_load_env_file(target_file), os.environ)


@dataclass(frozen=True)
class AppConfig:
    """Application-level configuration values."""

    log_directory: Optional[Path]
    log_level: str = "INFO"
    app_name: str = DEFAULT_APP_NAME


def load_config(env_file: Optional[Path] = None) -> AppConfig:
    """Load configuration values using environment defaults."""
    merged = load_environment(env_file)

    log_directory: Optional[Path] = None
    raw_log_dir = merged.get("LOG_DIR", "").strip()
    if raw_log_dir:
        log_directory = Path(raw_log_dir)
        if not log_directory.is_absolute():
            log_directory = Path.cwd() / log_directory

    log_level = merged.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    return AppConfig(
        log_directory=log_directory,
        log_level=log_level,
        app_name=merged.get("APP_NAME", DEFAULT_APP_NAME).strip() or DEFAULT_APP_NAME,
    )


__all__ = ["AppConfig", "load_config", "load_environment"]
