"""
Process-wide logging setup and convenience functions.

``initialize_logger`` wires the ``ipctl`` logger exactly once per
process. Console output is attached only when ``--verbose`` appears in
the process arguments; without it records are discarded.
"""

from __future__ import annotations

import logging
import sys
import threading
from typing import Optional, Sequence

from .config import FATAL, TRACE, LogConfig
from .console import ConsoleHandler, HumanFormatter, JsonFormatter
from .redactor import Redactor

ROOT_LOGGER_NAME = "ipctl"

logging.addLevelName(TRACE, "TRACE")

_lock = threading.Lock()
_initialized = False


def get_logger(name: str = "") -> logging.Logger:
    """Return the ``ipctl`` logger or one of its children.

    Args:
        name: Child name; empty for the package logger.

    Returns:
        logging.Logger: The logger.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def build_handler(cfg: LogConfig, no_color: bool = False, stdout=None, stderr=None) -> ConsoleHandler:
    """Create a ConsoleHandler for *cfg*.

    Args:
        cfg: Logging settings.
        no_color: Disable ANSI styling in human output.
        stdout: Stream for WARN and below.
        stderr: Stream for ERROR and above.

    Returns:
        ConsoleHandler: A handler sharing one Redactor with its JSON formatter.
    """
    zone = cfg.tz()
    redactor = Redactor(cfg.redact_sensitive_data)
    if cfg.console_json:
        formatter: logging.Formatter = JsonFormatter(zone, redactor=redactor)
    else:
        formatter = HumanFormatter(zone, no_color=no_color)
    return ConsoleHandler(
        formatter,
        redactor=redactor,
        stdout=stdout,
        stderr=stderr,
    )


def initialize_logger(
    cfg: LogConfig,
    no_color: bool = False,
    argv: Optional[Sequence[str]] = None,
) -> bool:
    """Configure the ``ipctl`` logger; later calls are ignored.

    Returns:
        bool: True if this call performed the initialisation.
    """
    global _initialized
    argv = sys.argv[1:] if argv is None else argv

    with _lock:
        if _initialized:
            return False

        root = get_logger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.propagate = False
        root.setLevel(cfg.level_number)

        if "--verbose" in argv:
            root.addHandler(build_handler(cfg, no_color=no_color))
        else:
            root.addHandler(logging.NullHandler())

        _initialized = True
        return True


def is_initialized() -> bool:
    """True once ``initialize_logger`` has configured the package logger."""
    return _initialized


def reset() -> None:
    """Undo ``initialize_logger``; used between tests."""
    global _initialized
    with _lock:
        root = get_logger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.propagate = True
        root.setLevel(logging.NOTSET)
        _initialized = False


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------


def trace(msg: str, *args) -> None:
    """Log at TRACE."""
    get_logger().log(TRACE, msg, *args, stacklevel=2)


def debug(msg: str, *args) -> None:
    """Log at DEBUG."""
    get_logger().debug(msg, *args, stacklevel=2)


def info(msg: str, *args) -> None:
    """Log at INFO."""
    get_logger().info(msg, *args, stacklevel=2)


def warn(msg: str, *args) -> None:
    """Log at WARN."""
    get_logger().warning(msg, *args, stacklevel=2)


def error(err: Optional[BaseException], msg: str, *args) -> None:
    """Log at ERROR, attaching *err* as the ``error`` field."""
    get_logger().error(msg, *args, extra={"err": err}, stacklevel=2)


def fatal(err: Optional[BaseException], msg: str, *args) -> None:
    """Log at FATAL and terminate the process with status 1."""
    get_logger().log(FATAL, msg, *args, extra={"err": err}, stacklevel=2)
    sys.exit(1)
