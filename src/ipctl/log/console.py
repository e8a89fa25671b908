"""
Console output for log records.

``ConsoleHandler`` formats a record, encodes it, passes the bytes through
the redactor and writes them to stdout (WARN and below) or stderr
(ERROR and FATAL). Writes to each stream are serialised by the
handler lock.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone, tzinfo
from typing import Optional

from rich.color import ColorSystem
from rich.style import Style

from .config import FATAL, TRACE
from .redactor import Redactor

_TAGS = {
    TRACE: ("TRC", Style(color="magenta")),
    logging.DEBUG: ("DBG", Style(color="yellow")),
    logging.INFO: ("INF", Style(color="green")),
    logging.WARNING: ("WRN", Style(color="red")),
    logging.ERROR: ("ERR", Style(color="red", bold=True)),
    FATAL: ("FTL", Style(color="red", bold=True)),
}

_NAMES = {
    TRACE: "trace",
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warn",
    logging.ERROR: "error",
    FATAL: "fatal",
}


def _bucket(levelno: int) -> int:
    """Map any numeric level onto the nearest named level at or below it."""
    for level in (FATAL, logging.ERROR, logging.WARNING, logging.INFO, logging.DEBUG):
        if levelno >= level:
            return level
    return TRACE


def format_timestamp(created: float, zone: tzinfo) -> str:
    """RFC 3339 with second precision; UTC renders with a ``Z`` suffix."""
    stamp = datetime.fromtimestamp(created, zone).isoformat(timespec="seconds")
    if stamp.endswith("+00:00"):
        stamp = stamp[:-6] + "Z"
    return stamp


def _message(record: logging.LogRecord) -> str:
    message = record.getMessage()
    err = getattr(record, "err", None)
    if err is not None:
        message = f"{message} error={err}" if message else f"error={err}"
    return message


class HumanFormatter(logging.Formatter):
    """``2024-01-15T10:30:45Z INF message``"""

    def __init__(self, zone: Optional[tzinfo] = None, no_color: bool = False):
        """Create a formatter.

        Args:
            zone: Timezone for timestamps; UTC when omitted.
            no_color: Render the level tag without ANSI styling.
        """
        super().__init__()
        self.zone = zone or timezone.utc
        self.no_color = no_color

    def format(self, record: logging.LogRecord) -> str:
        tag, style = _TAGS[_bucket(record.levelno)]
        if not self.no_color:
            tag = style.render(tag, color_system=ColorSystem.STANDARD)
        line = f"{format_timestamp(record.created, self.zone)} {tag} {_message(record)}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per record with ``level``, ``time`` and ``message``.

    String fields are redacted before encoding, so the byte-level pass
    that follows only ever sees already-redacted values.

    Args:
        zone: Timezone for the ``time`` field; UTC when omitted.
        redactor: Applied to ``message``, ``error`` and ``exception``.
    """

    def __init__(self, zone: Optional[tzinfo] = None, redactor: Optional[Redactor] = None):
        super().__init__()
        self.zone = zone or timezone.utc
        self.redactor = redactor

    def _clean(self, text: str) -> str:
        if self.redactor is None:
            return text
        return self.redactor.redact(text)

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": _NAMES[_bucket(record.levelno)],
            "time": format_timestamp(record.created, self.zone),
            "message": self._clean(record.getMessage()),
        }
        err = getattr(record, "err", None)
        if err is not None:
            payload["error"] = self._clean(str(err))
        if record.exc_info:
            payload["exception"] = self._clean(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False)


class ConsoleHandler(logging.Handler):
    """Route records by level and redact them on the way out.

    Streams default to whatever ``sys.stdout`` / ``sys.stderr`` are at
    write time so captured output in tests works as expected.
    """

    def __init__(
        self,
        formatter: logging.Formatter,
        redactor: Optional[Redactor] = None,
        stdout=None,
        stderr=None,
    ):
        super().__init__(level=logging.NOTSET)
        self.setFormatter(formatter)
        self.redactor = redactor
        self._stdout = stdout
        self._stderr = stderr

    def stream_for(self, levelno: int):
        """stdout for WARN and below, stderr for ERROR and above."""
        if levelno <= logging.WARNING:
            return self._stdout or sys.stdout
        return self._stderr or sys.stderr

    def encode(self, record: logging.LogRecord) -> bytes:
        """Format *record* and return it as redacted UTF-8 bytes."""
        data = (self.format(record) + "\n").encode("utf-8", errors="surrogateescape")
        if self.redactor is not None:
            data = self.redactor.redact_bytes(data)
        return data

    def emit(self, record: logging.LogRecord) -> None:
        """Write one line to the stream chosen by ``stream_for``."""
        try:
            data = self.encode(record)
            stream = self.stream_for(record.levelno)
            self.acquire()
            try:
                buffer = getattr(stream, "buffer", None)
                if buffer is not None:
                    stream.flush()
                    buffer.write(data)
                    buffer.flush()
                else:
                    stream.write(data.decode("utf-8", errors="replace"))
                    stream.flush()
            finally:
                self.release()
        except Exception:
            self.handleError(record)
