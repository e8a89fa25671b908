"""Value coercion shared by the settings, profile and repository loaders.

Configuration values arrive as strings from INI files and the
environment, or as native values from caller-supplied defaults.
Unrecognised values fall back to the supplied default.
"""

from __future__ import annotations

from typing import Any


def coerce_str(value: Any, default: str = "") -> str:
    """Return *value* if it is a string, else *default*.

    Args:
        value: Raw value from a file, the environment or a default table.
        default: Returned for ``None`` and non-string values.

    Returns:
        str: The coerced value.
    """
    if value is None:
        return default
    if isinstance(value, str):
        return value
    return default


def coerce_int(value: Any, default: int = 0) -> int:
    """Interpret *value* as an integer.

    Strings must be an optional sign followed by digits; booleans are
    not integers here.

    Args:
        value: Raw value.
        default: Returned when *value* cannot be read as an integer.

    Returns:
        int: The coerced value.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        sign = text[:1] if text[:1] in ("-", "+") else ""
        digits = text[len(sign):]
        if digits.isdigit():
            return int(text)
    return default


def coerce_bool(value: Any, default: bool = False) -> bool:
    """Interpret *value* as a boolean.

    Only the strings ``true`` and ``false`` (any case) are recognised.

    Args:
        value: Raw value.
        default: Returned for anything else.

    Returns:
        bool: The coerced value.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
    return default
