"""Environment variable helpers shared by configuration modules."""

from __future__ import annotations

import os


def get_env(key: str) -> str | None:
    """Get a trimmed environment variable, stripping one level of quotes.

    Args:
        key: Environment variable name.

    Returns:
        The value, or None if unset or blank.
    """
    raw = os.environ.get(key)
    if raw is None:
        return None
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return value or None


def get_int_env(
    key: str,
    default: int,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """Get integer environment variable with default.

    Values that do not parse, or fall outside [minimum, maximum], yield the
    default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.
        minimum: Optional inclusive lower bound.
        maximum: Optional inclusive upper bound.

    Returns:
        Parsed integer value or default.
    """
    value = get_env(key)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    if minimum is not None and parsed < minimum:
        return default
    if maximum is not None and parsed > maximum:
        return default
    return parsed


def get_float_env(key: str, default: float) -> float:
    """Get float environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed float value or default.
    """
    value = get_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def get_bool_env(key: str, default: bool) -> bool:
    """Get boolean environment variable ("1", "true", "yes", "on" are true)."""
    value = get_env(key)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")
