"""Watcher configuration and config file loading."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from .appearance import DetectionMethod
from .errors import ConfigError

CONFIG_FILE = Path.home() / ".config/auto-dark/config.json"

DEFAULT_INTERVAL = 5  # seconds between polls
DEFAULT_QUERY_TIMEOUT = 3.0  # seconds before an external query counts as failed


@dataclass
class Config:
    """Settings read by the watcher core. Never written back."""

    polling_interval: int = DEFAULT_INTERVAL
    allow_external_process: bool = False
    forced_method: DetectionMethod | None = None
    query_timeout: float = DEFAULT_QUERY_TIMEOUT
    push_notifications: bool = True
    fallback_to_polling: bool = True

    def __post_init__(self):
        if isinstance(self.polling_interval, bool) or not isinstance(self.polling_interval, int):
            raise ConfigError(f"polling_interval must be an integer, got {self.polling_interval!r}")
        if self.polling_interval <= 0:
            raise ConfigError(f"polling_interval must be positive, got {self.polling_interval}")
        if isinstance(self.query_timeout, bool) or not isinstance(self.query_timeout, (int, float)):
            raise ConfigError(f"query_timeout must be a number, got {self.query_timeout!r}")
        if self.query_timeout <= 0:
            raise ConfigError(f"query_timeout must be positive, got {self.query_timeout}")
        for name in ("allow_external_process", "push_notifications", "fallback_to_polling"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false, got {getattr(self, name)!r}")
        if isinstance(self.forced_method, str):
            self.forced_method = DetectionMethod.parse(self.forced_method)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """
        Build a Config from a JSON object.

        The forced method is stored under "method". Unknown keys are rejected
        so that typos do not silently fall back to defaults.
        """
        data = dict(data)
        if "method" in data:
            method = data.pop("method")
            data["forced_method"] = DetectionMethod.parse(method) if method else None

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "polling_interval": self.polling_interval,
            "allow_external_process": self.allow_external_process,
            "method": self.forced_method.value if self.forced_method else None,
            "query_timeout": self.query_timeout,
            "push_notifications": self.push_notifications,
            "fallback_to_polling": self.fallback_to_polling,
        }


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file, falling back to defaults if it is absent."""
    path = path or CONFIG_FILE
    if not path.exists():
        return Config()

    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")
    return Config.from_dict(data)
