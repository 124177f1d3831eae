"""Scalar and duration literals of the stepflow DSL.

Values on the right-hand side of ``key = value`` lines are quoted strings,
bare tokens, integers, decimals or booleans. Durations are written as an
integer followed by ``ms``, ``s`` or ``m`` and stored as milliseconds.

Every formatter here is the exact inverse of its parser:
``parse_scalar(format_scalar(v)) == v`` for every writable value and
``parse_duration(format_duration(d)) == d`` for every ``d >= 0``.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

__all__ = [
    "DURATION_PATTERN",
    "parse_scalar",
    "format_scalar",
    "parse_duration",
    "format_duration",
]

# Duration literal, usable inside larger patterns
DURATION_PATTERN = r"\d+(?:ms|s|m)"

_DURATION_RE = re.compile(r"^(\d+)(ms|s|m)$", re.IGNORECASE)
_INT_RE = re.compile(r"^[-+]?\d+$")
_FLOAT_RE = re.compile(
    r"^[-+]?(?:(?:\d+\.\d*|\.\d+)(?:[eE][-+]?\d+)?|\d+[eE][-+]?\d+)$"
)
# Strings that can be written without quotes
_BARE_RE = re.compile(r"^[-A-Za-z0-9_.]+$")

_MS_PER_UNIT = {"ms": 1, "s": 1_000, "m": 60_000}


def parse_scalar(raw: str) -> Any:
    """Convert a literal token to a typed value.

    Examples:
        >>> parse_scalar("true")
        True
        >>> parse_scalar("42")
        42
        >>> parse_scalar("0.5")
        0.5
        >>> parse_scalar('"hello world"')
        'hello world'
        >>> parse_scalar("fast-lane")
        'fast-lane'
    """
    s = raw.strip()
    if s == "true":
        return True
    if s == "false":
        return False
    if len(s) >= 2 and s[0] == s[-1] and s[0] in "\"'":
        if s[0] == '"':
            try:
                decoded = json.loads(s)
            except json.JSONDecodeError:
                decoded = None
            if isinstance(decoded, str):
                return decoded
        return s[1:-1]
    if _INT_RE.match(s):
        return int(s)
    if _FLOAT_RE.match(s):
        number = float(s)
        # Out-of-range literals stay text
        if math.isfinite(number):
            return number
    return s


def format_scalar(value: Any) -> str:
    """Render a value so that parse_scalar() gives it back unchanged.

    Strings are written bare when that is unambiguous, JSON-quoted otherwise
    (``"true"`` and ``"42"`` stay strings after a round trip).

    Raises:
        ValueError: For values with no DSL spelling (None, lists, maps,
            non-finite floats).
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Non-finite number {value!r} cannot be written")
        return repr(value)
    if isinstance(value, str):
        if _BARE_RE.match(value) and parse_scalar(value) == value:
            return value
        return json.dumps(value, ensure_ascii=False)
    raise ValueError(f"Value of type {type(value).__name__} cannot be written")


def parse_duration(raw: str | None) -> int | None:
    """Convert a duration literal to milliseconds.

    Returns:
        Milliseconds, or None if ``raw`` is empty or not a duration.

    Examples:
        >>> parse_duration("500ms")
        500
        >>> parse_duration("2s")
        2000
        >>> parse_duration("1m")
        60000
        >>> parse_duration("soon") is None
        True
    """
    if not raw:
        return None
    m = _DURATION_RE.match(raw.strip())
    if not m:
        return None
    return int(m.group(1)) * _MS_PER_UNIT[m.group(2).lower()]


def format_duration(ms: int) -> str:
    """Render milliseconds using the largest unit that divides evenly.

    Zero is written as ``0ms``.

    Examples:
        >>> format_duration(120000)
        '2m'
        >>> format_duration(1500)
        '1500ms'
    """
    if ms < 0:
        raise ValueError(f"Duration must be non-negative, got {ms}")
    if ms == 0:
        return "0ms"
    if ms % _MS_PER_UNIT["m"] == 0:
        return f"{ms // _MS_PER_UNIT['m']}m"
    if ms % _MS_PER_UNIT["s"] == 0:
        return f"{ms // _MS_PER_UNIT['s']}s"
    return f"{ms}ms"
