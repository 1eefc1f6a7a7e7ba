"""
Request Context and Configuration State for Logging.

The request id lives in a ContextVar so that it follows a request through
FastAPI's threadpool and any asyncio tasks. Logging configuration shared
by the whole process (current level, configured flag) is module state.

Environment Variables:
    - VOICEGEN_LOG_LEVEL: Override log level (1-4 or name)
    - VOICEGEN_LOG_DIR: Directory for the JSONL log file
    - VOICEGEN_JSONL_FILE: JSONL filename
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

# "-" marks log lines emitted outside any request
_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Return the request id for the current context, or "-"."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Bind a request id to the current context for log correlation."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    """Current level as a name ("MINIMAL", "NORMAL", ...)."""
    return LEVEL_NAMES.get(_current_level, "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve logging configuration from the settings file and environment.

    Priority (highest first):
        1. VOICEGEN_LOG_* environment variables
        2. logging section of the settings file
        3. Defaults (applied by configure_logging)

    Returns:
        Dictionary with keys such as level, log_dir, jsonl_file.
    """
    cfg: Dict[str, Any] = {}

    from voicegen.core.config import ConfigValidationError, load_settings
    try:
        settings = load_settings(missing_ok=True)
    except (OSError, ValueError, yaml.YAMLError, ConfigValidationError):
        # Unreadable settings must not prevent logging from starting
        settings = None
    if settings is not None:
        cfg.update(settings.raw.get("logging", {}) or {})

    if os.getenv("VOICEGEN_LOG_LEVEL"):
        cfg["level"] = os.environ["VOICEGEN_LOG_LEVEL"]
    if os.getenv("VOICEGEN_LOG_DIR"):
        cfg["log_dir"] = os.environ["VOICEGEN_LOG_DIR"]
    if os.getenv("VOICEGEN_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["VOICEGEN_JSONL_FILE"]

    return cfg
