"""
Logging configuration read from the environment.

    IPCTL_LOG_LEVEL                   TRACE|DEBUG|INFO|WARN|ERROR|FATAL|DISABLED
    IPCTL_LOG_CONSOLE_JSON            "true" for JSON lines
    IPCTL_LOG_TIMESTAMP_TIMEZONE      utc, local or an IANA zone name
    IPCTL_LOG_REDACT_SENSITIVE_DATA   "false" to turn redaction off

Bad values never stop the program: a warning goes to stderr and the
setting falls back to its default.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone, tzinfo
from typing import Dict, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict

TRACE = 5
FATAL = logging.CRITICAL
DISABLED = logging.CRITICAL + 10

LEVELS: Dict[str, int] = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "FATAL": FATAL,
    "DISABLED": DISABLED,
}

_ALIASES = {"WARNING": "WARN", "CRITICAL": "FATAL"}


class LogConfig(BaseModel):
    """Logging settings read from the ``IPCTL_LOG_*`` environment."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    console_json: bool = False
    timestamp_timezone: str = "UTC"
    redact_sensitive_data: bool = True

    @property
    def level_number(self) -> int:
        """The stdlib numeric level for ``level``."""
        return LEVELS[self.level]

    def tz(self) -> tzinfo:
        """Timezone used for record timestamps; UTC when unparsable."""
        zone, _ = parse_timezone(self.timestamp_timezone)
        return zone


def parse_level(value: str) -> Optional[str]:
    """Normalise a level name; ``None`` when it is not recognised."""
    name = value.strip().upper()
    name = _ALIASES.get(name, name)
    return name if name in LEVELS else None


def parse_timezone(value: str):
    """Return ``(tzinfo, error)``; UTC is used whenever parsing fails."""
    name = value.strip()
    if not name or name.lower() == "utc":
        return timezone.utc, None
    if name.lower() == "local":
        return datetime.now().astimezone().tzinfo, None
    try:
        return ZoneInfo(name), None
    except (ZoneInfoNotFoundError, ValueError) as exc:
        return timezone.utc, exc


def load_from_env(environ: Optional[Mapping[str, str]] = None, stderr=None) -> LogConfig:
    """Build a LogConfig from ``IPCTL_LOG_*`` variables.

    Invalid values are reported on *stderr* and replaced by their defaults.

    Args:
        environ: Variables to read; defaults to ``os.environ``.
        stderr: Stream for warnings; defaults to ``sys.stderr``.

    Returns:
        LogConfig: The frozen configuration.
    """
    environ = os.environ if environ is None else environ
    stderr = stderr or sys.stderr

    level = "INFO"
    raw_level = environ.get("IPCTL_LOG_LEVEL", "")
    if raw_level:
        parsed = parse_level(raw_level)
        if parsed is None:
            print(
                f"invalid value for IPCTL_LOG_LEVEL, got {raw_level}, expected one of "
                f"{', '.join(LEVELS)}. Defaulting to INFO",
                file=stderr,
            )
        else:
            level = parsed

    zone_name = environ.get("IPCTL_LOG_TIMESTAMP_TIMEZONE", "") or "UTC"
    _, err = parse_timezone(zone_name)
    if err is not None:
        print(
            f"# Warning: failed to load timezone '{zone_name}': {err}. Defaulting to UTC",
            file=stderr,
        )
        zone_name = "UTC"

    return LogConfig(
        level=level,
        console_json=environ.get("IPCTL_LOG_CONSOLE_JSON", "").lower() == "true",
        timestamp_timezone=zone_name,
        redact_sensitive_data=environ.get("IPCTL_LOG_REDACT_SENSITIVE_DATA", "").lower() != "false",
    )
