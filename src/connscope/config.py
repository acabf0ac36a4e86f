"""
Controller connection settings.

Values come from CONNSCOPE_* environment variables; CLI options override
them. Malformed or out-of-range numbers fall back to the defaults.
"""
import logging
import math
import os
from dataclasses import dataclass

_log = logging.getLogger(__name__)

DEFAULT_CONTROLLER = "http://127.0.0.1:9097"


def _positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


def _env_float(name: str, default: float, valid=_positive) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        _log.warning("ignoring %s=%r: not a number", name, raw)
        return default
    if not valid(value):
        _log.warning("ignoring %s=%r: out of range", name, raw)
        return default
    return value


def _env_int(name: str, default: int, valid=lambda v: v >= 1) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        _log.warning("ignoring %s=%r: not an integer", name, raw)
        return default
    if not valid(value):
        _log.warning("ignoring %s=%r: out of range", name, raw)
        return default
    return value


@dataclass
class ControllerConfig:
    controller_url: str = DEFAULT_CONTROLLER
    secret: str = ""
    timeout: float = 5.0
    poll_interval: float = 1.0
    rule_set_dir: str = "rule-sets"
    max_workers: int = 8

    def __post_init__(self):
        self.controller_url = self.controller_url.rstrip("/")
        if not _positive(self.poll_interval):
            raise ValueError("poll_interval must be positive")
        if not _positive(self.timeout):
            raise ValueError("timeout must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @classmethod
    def from_env(cls) -> "ControllerConfig":
        return cls(
            controller_url=_env_str("CONNSCOPE_CONTROLLER", DEFAULT_CONTROLLER),
            secret=os.environ.get("CONNSCOPE_SECRET", ""),
            timeout=_env_float("CONNSCOPE_TIMEOUT", 5.0),
            poll_interval=_env_float("CONNSCOPE_POLL_INTERVAL", 1.0),
            rule_set_dir=_env_str("CONNSCOPE_RULE_SET_DIR", "rule-sets"),
            max_workers=_env_int("CONNSCOPE_MAX_WORKERS", 8),
        )
