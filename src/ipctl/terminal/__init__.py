"""Terminal output and prompts."""

from .config import OUTPUT_FORMATS, TerminalConfig, load_from_env
from .terminal import (
    build_table,
    confirm,
    console,
    display,
    display_json,
    display_table,
    display_yaml,
    err_console,
    error,
    page,
    password,
    rows_from,
    to_json,
    to_yaml,
    warning,
)

__all__ = [
    "OUTPUT_FORMATS",
    "TerminalConfig",
    "build_table",
    "confirm",
    "console",
    "display",
    "display_json",
    "display_table",
    "display_yaml",
    "err_console",
    "error",
    "load_from_env",
    "page",
    "password",
    "rows_from",
    "to_json",
    "to_yaml",
    "warning",
]
