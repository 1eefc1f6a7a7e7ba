"""
Log Formatters for JSON and Console Output, with Secret Redaction.

    JsonlFormatter: one JSON object per line for the log file
    ColoredConsoleFormatter: human-readable colored line for the terminal

Both formatters pass structured fields through redact_fields() first, so a
credential can never reach a log sink even if a caller passes it by mistake.
A field is redacted when its name looks like a credential (api_key, apiKey,
xi-api-key, authorization, ...) or its value is a pydantic SecretStr.

Output Examples:
    JSONL:
        {"ts":"2025-03-01T14:30:05+00:00","level":2,"tag":"INFO","message":"generation_started","request_id":"4f1c9a2b7d3e","extra":{"chars":120,"model":"eleven_v3"}}

    Console:
        14:30:05 [ INFO  ] (4f1c9a2b7d3e) generation_started chars=120 model=eleven_v3
"""
from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, Mapping

from pydantic import SecretStr

from .colors import Colors, get_tag_color

REDACTED = "***"

# Matched against the normalized field name (lowercase, separators removed)
_SECRET_NAME_RE = re.compile(r"(apikey|credential|secret|token|password|authorization)")


def _is_secret_name(name: str) -> bool:
    normalized = re.sub(r"[-_\s]", "", name.lower())
    return bool(_SECRET_NAME_RE.search(normalized))


def redact_value(name: str, value: Any) -> Any:
    """Return REDACTED for secret-looking fields, recursing into mappings."""
    if isinstance(value, SecretStr):
        return REDACTED
    if _is_secret_name(name):
        return REDACTED
    if isinstance(value, Mapping):
        return {k: redact_value(str(k), v) for k, v in value.items()}
    return value


def redact_fields(fields: Mapping[str, Any] | None) -> Dict[str, Any]:
    """
    Redact credential-like entries from a structured log field mapping.

    Args:
        fields: Extra fields passed to a log helper.

    Returns:
        A new dict safe to serialize.

    Example:
        >>> redact_fields({"voice_id": "abc", "api_key": "sk-1"})
        {'voice_id': 'abc', 'api_key': '***'}
    """
    if not fields:
        return {}
    return {k: redact_value(k, v) for k, v in fields.items()}


def _use_colors() -> bool:
    # Read at call time so tests can toggle the flag
    from . import colors
    return colors.USE_COLORS


def _paint(text: str, color: str) -> str:
    if not _use_colors():
        return text
    return f"{color}{text}{Colors.RESET}"


class JsonlFormatter(logging.Formatter):
    """
    Format log records as JSON Lines.

    Payload keys: ts, level (1-4), tag, message, request_id and, when
    present, event, seconds and extra (redacted fields).
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).astimezone().isoformat()
        payload: Dict[str, Any] = {
            "ts": ts,
            "level": getattr(record, "numeric_level", 2),
            "tag": getattr(record, "tag", record.levelname),
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
        }

        event = getattr(record, "event", None)
        if event:
            payload["event"] = event

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            payload["seconds"] = seconds

        extra_data = redact_fields(getattr(record, "extra_data", None))
        if extra_data:
            payload["extra"] = extra_data

        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """
    Format log records for the terminal.

    Output Format:
        HH:MM:SS [ TAG   ] (rid) message key=value 0.123s

    Durations are green under 0.5s, yellow under 3s and red above, which
    matches typical synthesis latency more closely than a 1s cutoff.
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tag = getattr(record, "tag", record.levelname)
        rid = getattr(record, "request_id", "-")

        parts = [_paint(ts, Colors.DIM), _paint(f"[{tag:^7}]", get_tag_color(tag))]
        if rid != "-":
            parts.append(_paint(f"({rid})", Colors.DIM + Colors.CYAN))
        parts.append(record.getMessage())

        event = getattr(record, "event", None)
        if event:
            parts.append(_paint(f"event={event}", Colors.BLUE))

        seconds = getattr(record, "seconds", None)
        if seconds is not None:
            if seconds < 0.5:
                color = Colors.GREEN
            elif seconds < 3.0:
                color = Colors.YELLOW
            else:
                color = Colors.RED
            parts.append(_paint(f"{seconds:.3f}s", color))

        for k, v in redact_fields(getattr(record, "extra_data", None)).items():
            color = Colors.MAGENTA if k == "status_code" else Colors.WHITE
            parts.append(_paint(f"{k}={v}", color))

        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line
