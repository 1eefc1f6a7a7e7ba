"""
Configuration Management for voicegen.

This module provides centralized configuration handling with:
    - Default values (Defaults class)
    - Dataclass-based configuration sections
    - YAML file loading with environment variable overrides
    - Validation with meaningful error messages

Configuration Hierarchy (highest priority first):
    1. Environment variables (VOICEGEN_PROVIDER_URL, VOICEGEN_LOG_LEVEL, etc.)
    2. YAML config file (config/settings.yaml, or $VOICEGEN_SETTINGS)
    3. Defaults class values

Example settings.yaml:
    provider:
      base_url: https://api.elevenlabs.io
      timeout_s: 60

    history:
      enabled: true
      display_limit: 10
      max_records: 0      # 0 = unbounded

    logging:
      level: 2  # NORMAL
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List
import os
import yaml


class ConfigValidationError(Exception):
    """
    Raised when configuration validation fails.

    Thrown when a configuration value is outside acceptable bounds
    or of the wrong type.
    """
    pass


class Defaults:
    """
    Centralized default configuration values.

    Sections:
        - Provider: Upstream synthesis API location and timeouts
        - Limits: Request validation bounds
        - History: Generation record store and listing cap
        - Server: CORS origins
        - Logging: Log level and formatting
    """

    # ─────────────────────────────────────────────────────────────────────────
    # Provider
    # ─────────────────────────────────────────────────────────────────────────
    PROVIDER_BASE_URL = "https://api.elevenlabs.io"
    PROVIDER_TIMEOUT_S = 60.0           # Synthesis may take several seconds
    PROVIDER_CONNECT_TIMEOUT_S = 10.0
    PROVIDER_CONTENT_TYPE = "audio/mpeg"  # Used when upstream omits it

    # ─────────────────────────────────────────────────────────────────────────
    # Request Limits
    # ─────────────────────────────────────────────────────────────────────────
    LIMITS_MAX_SCRIPT_CHARS = 10000

    # ─────────────────────────────────────────────────────────────────────────
    # History
    # ─────────────────────────────────────────────────────────────────────────
    HISTORY_ENABLED = True
    HISTORY_DISPLAY_LIMIT = 10          # Records returned by /api/voice-history
    HISTORY_MAX_RECORDS = 0             # 0 = keep everything

    # ─────────────────────────────────────────────────────────────────────────
    # Server
    # ─────────────────────────────────────────────────────────────────────────
    SERVER_CORS_ORIGINS = ("*",)

    # ─────────────────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────────────────
    LOGGING_SCRIPT_PREVIEW_CHARS = 40   # Only shown at DEBUG level
    LOGGING_LEVEL = 2                   # 1=MINIMAL, 2=NORMAL, 3=VERBOSE, 4=DEBUG

    # ─────────────────────────────────────────────────────────────────────────
    # Files
    # ─────────────────────────────────────────────────────────────────────────
    SETTINGS_PATH = "config/settings.yaml"


@dataclass
class ProviderConfig:
    """
    Upstream provider configuration.

    The timeout is deliberately long: there is no retry to hide a slow
    synthesis, so the single call must be allowed to finish.
    """
    base_url: str = Defaults.PROVIDER_BASE_URL
    timeout_s: float = Defaults.PROVIDER_TIMEOUT_S
    connect_timeout_s: float = Defaults.PROVIDER_CONNECT_TIMEOUT_S
    default_content_type: str = Defaults.PROVIDER_CONTENT_TYPE


@dataclass
class LimitsConfig:
    """Request validation bounds."""
    max_script_chars: int = Defaults.LIMITS_MAX_SCRIPT_CHARS


@dataclass
class HistoryConfig:
    """
    Generation history configuration.

    max_records = 0 keeps every record for the process lifetime.
    A positive value drops the oldest records beyond that count.
    """
    enabled: bool = Defaults.HISTORY_ENABLED
    display_limit: int = Defaults.HISTORY_DISPLAY_LIMIT
    max_records: int = Defaults.HISTORY_MAX_RECORDS


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    cors_origins: List[str] = field(default_factory=lambda: list(Defaults.SERVER_CORS_ORIGINS))


@dataclass
class LoggingConfig:
    """
    Logging configuration.

    Log levels:
        1 = MINIMAL: Startup, shutdown, errors only
        2 = NORMAL: Request lifecycle (default)
        3 = VERBOSE: Per-stage timing
        4 = DEBUG: Internal state, script previews
    """
    script_preview_chars: int = Defaults.LOGGING_SCRIPT_PREVIEW_CHARS
    level: int = Defaults.LOGGING_LEVEL


@dataclass
class ServiceConfig:
    """
    Validated configuration for the voicegen service.

    Usage:
        settings = load_settings("config/settings.yaml")
        config = ServiceConfig.from_settings(settings)
        print(config.provider.base_url)
    """
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ServiceConfig":
        """
        Create ServiceConfig from Settings with validation.

        Args:
            settings: Raw Settings object loaded from YAML.

        Returns:
            Validated ServiceConfig instance.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        raw = settings.raw

        # ─────────────────────────────────────────────────────────────────────
        # Provider
        # ─────────────────────────────────────────────────────────────────────
        provider_raw = raw.get("provider", {}) or {}
        provider = ProviderConfig(
            base_url=str(provider_raw.get("base_url", Defaults.PROVIDER_BASE_URL)).rstrip("/"),
            timeout_s=float(provider_raw.get("timeout_s", Defaults.PROVIDER_TIMEOUT_S)),
            connect_timeout_s=float(provider_raw.get("connect_timeout_s", Defaults.PROVIDER_CONNECT_TIMEOUT_S)),
            default_content_type=str(provider_raw.get("default_content_type", Defaults.PROVIDER_CONTENT_TYPE)),
        )
        if not provider.base_url.startswith(("http://", "https://")):
            raise ConfigValidationError(f"provider.base_url must be an http(s) URL, got {provider.base_url!r}")
        cls._validate_positive("provider.timeout_s", provider.timeout_s)
        cls._validate_positive("provider.connect_timeout_s", provider.connect_timeout_s)

        # ─────────────────────────────────────────────────────────────────────
        # Limits
        # ─────────────────────────────────────────────────────────────────────
        limits_raw = raw.get("limits", {}) or {}
        limits = LimitsConfig(
            max_script_chars=int(limits_raw.get("max_script_chars", Defaults.LIMITS_MAX_SCRIPT_CHARS)),
        )
        cls._validate_positive("limits.max_script_chars", limits.max_script_chars)

        # ─────────────────────────────────────────────────────────────────────
        # History
        # ─────────────────────────────────────────────────────────────────────
        history_raw = raw.get("history", {}) or {}
        history = HistoryConfig(
            enabled=bool(history_raw.get("enabled", Defaults.HISTORY_ENABLED)),
            display_limit=int(history_raw.get("display_limit", Defaults.HISTORY_DISPLAY_LIMIT)),
            max_records=int(history_raw.get("max_records", Defaults.HISTORY_MAX_RECORDS)),
        )
        cls._validate_positive("history.display_limit", history.display_limit)
        cls._validate_non_negative("history.max_records", history.max_records)

        # ─────────────────────────────────────────────────────────────────────
        # Server
        # ─────────────────────────────────────────────────────────────────────
        server_raw = raw.get("server", {}) or {}
        origins = server_raw.get("cors_origins", list(Defaults.SERVER_CORS_ORIGINS))
        if isinstance(origins, str):
            origins = [o.strip() for o in origins.split(",") if o.strip()]
        server = ServerConfig(cors_origins=[str(o) for o in origins])

        # ─────────────────────────────────────────────────────────────────────
        # Logging
        # ─────────────────────────────────────────────────────────────────────
        logging_raw = raw.get("logging", {}) or {}
        log_level_raw = logging_raw.get("level", Defaults.LOGGING_LEVEL)

        # Handle string log levels (e.g., "INFO", "DEBUG")
        if isinstance(log_level_raw, str):
            level_map = {
                "MINIMAL": 1, "1": 1,
                "NORMAL": 2, "INFO": 2, "2": 2,
                "VERBOSE": 3, "3": 3,
                "DEBUG": 4, "TRACE": 4, "4": 4,
            }
            log_level = level_map.get(log_level_raw.upper(), Defaults.LOGGING_LEVEL)
        else:
            log_level = int(log_level_raw)

        logging_cfg = LoggingConfig(
            script_preview_chars=int(logging_raw.get("script_preview_chars", Defaults.LOGGING_SCRIPT_PREVIEW_CHARS)),
            level=log_level,
        )
        cls._validate_non_negative("logging.script_preview_chars", logging_cfg.script_preview_chars)
        cls._validate_range("logging.level", logging_cfg.level, 1, 4)

        return cls(
            provider=provider,
            limits=limits,
            history=history,
            server=server,
            logging=logging_cfg,
        )

    @staticmethod
    def _validate_positive(name: str, value: int | float) -> None:
        """Validate that a value is positive (> 0)."""
        if value <= 0:
            raise ConfigValidationError(f"{name} must be positive, got {value}")

    @staticmethod
    def _validate_non_negative(name: str, value: int | float) -> None:
        """Validate that a value is non-negative (>= 0)."""
        if value < 0:
            raise ConfigValidationError(f"{name} must be non-negative, got {value}")

    @staticmethod
    def _validate_range(name: str, value: int | float, min_val: int | float, max_val: int | float) -> None:
        """Validate that a value is within a range [min_val, max_val]."""
        if not (min_val <= value <= max_val):
            raise ConfigValidationError(f"{name} must be between {min_val} and {max_val}, got {value}")


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings container loaded from YAML.

    This is the raw settings object before validation. Use
    get_service_config() to get a validated ServiceConfig.

    Attributes:
        raw: Dictionary of raw configuration values.
    """
    raw: Dict[str, Any]

    def get_service_config(self) -> ServiceConfig:
        """
        Get validated ServiceConfig from these settings.

        Raises:
            ConfigValidationError: If validation fails.
        """
        return ServiceConfig.from_settings(self)


def _apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Apply VOICEGEN_* environment overrides onto a raw settings dict."""
    url = os.getenv("VOICEGEN_PROVIDER_URL")
    if url:
        raw.setdefault("provider", {})["base_url"] = url

    timeout = os.getenv("VOICEGEN_PROVIDER_TIMEOUT")
    if timeout:
        try:
            raw.setdefault("provider", {})["timeout_s"] = float(timeout)
        except ValueError:
            raise ConfigValidationError(f"VOICEGEN_PROVIDER_TIMEOUT must be a number, got {timeout!r}")

    history = os.getenv("VOICEGEN_HISTORY_ENABLED")
    if history is not None:
        raw.setdefault("history", {})["enabled"] = history != "0"

    return raw


def load_settings(path: str | None = None, missing_ok: bool = False) -> Settings:
    """
    Load settings from a YAML configuration file.

    Environment variable overrides:
        - VOICEGEN_SETTINGS: Settings file path (when path is None)
        - VOICEGEN_PROVIDER_URL: Override provider.base_url
        - VOICEGEN_PROVIDER_TIMEOUT: Override provider.timeout_s
        - VOICEGEN_HISTORY_ENABLED: "0" disables the history store

    Args:
        path: Path to the YAML configuration file.
        missing_ok: Return defaults instead of raising when the file is absent.

    Returns:
        Settings object with loaded configuration.

    Raises:
        FileNotFoundError: If the settings file doesn't exist and missing_ok is False.
    """
    p = Path(path or os.getenv("VOICEGEN_SETTINGS", Defaults.SETTINGS_PATH))
    if not p.exists():
        if not missing_ok:
            raise FileNotFoundError(f"settings file not found: {p.resolve()}")
        return Settings(raw=_apply_env_overrides({}))

    with p.open("r", encoding="utf-8") as f:
        raw: Dict[str, Any] = yaml.safe_load(f) or {}

    return Settings(raw=_apply_env_overrides(raw))
