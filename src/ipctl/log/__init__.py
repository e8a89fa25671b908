"""Leveled, redacting log pipeline built on the standard logging module."""

from .config import DISABLED, FATAL, LEVELS, TRACE, LogConfig, load_from_env, parse_level, parse_timezone
from .console import ConsoleHandler, HumanFormatter, JsonFormatter
from .logger import (
    build_handler,
    debug,
    error,
    fatal,
    get_logger,
    info,
    initialize_logger,
    is_initialized,
    reset,
    trace,
    warn,
)
from .redactor import Redactor, redact, redact_bytes, should_redact

__all__ = [
    "ConsoleHandler",
    "DISABLED",
    "FATAL",
    "HumanFormatter",
    "JsonFormatter",
    "LEVELS",
    "LogConfig",
    "Redactor",
    "TRACE",
    "build_handler",
    "debug",
    "error",
    "fatal",
    "get_logger",
    "info",
    "initialize_logger",
    "is_initialized",
    "load_from_env",
    "parse_level",
    "parse_timezone",
    "redact",
    "redact_bytes",
    "reset",
    "should_redact",
    "trace",
    "warn",
]
