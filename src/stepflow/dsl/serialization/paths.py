"""Dotted-path helpers over nested maps.

``settings``, ``defaults`` and step ``config`` sections are written as
flat ``a.b.c = value`` lines but stored as nested dicts. The parser's
setter and the serializer's flattener live here so both directions split
and join keys the same way.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

__all__ = [
    "get_path",
    "set_path",
    "flatten",
    "unflatten",
]

_MISSING = object()


def _split(path: str | Iterable[str]) -> list[str]:
    if isinstance(path, str):
        return path.split(".")
    return list(path)


def get_path(obj: Mapping[str, Any], path: str | Iterable[str], default: Any = None) -> Any:
    """Look up a dotted path, returning ``default`` when any segment is missing.

    Example:
        >>> get_path({"http": {"timeout": 30}}, "http.timeout")
        30
    """
    cur: Any = obj
    for key in _split(path):
        if not isinstance(cur, Mapping):
            return default
        cur = cur.get(key, _MISSING)
        if cur is _MISSING:
            return default
    return cur


def set_path(obj: dict[str, Any], path: str | Iterable[str], value: Any) -> None:
    """Assign ``value`` at a dotted path, creating intermediate maps.

    A non-map value found on the way is replaced by a new map.

    Example:
        >>> cfg = {}
        >>> set_path(cfg, "http.retry.count", 3)
        >>> cfg
        {'http': {'retry': {'count': 3}}}
    """
    parts = _split(path)
    cur = obj
    for key in parts[:-1]:
        nxt = cur.get(key)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    cur[parts[-1]] = value


def flatten(obj: Mapping[str, Any] | None, prefix: str = "") -> dict[str, Any]:
    """Flatten nested maps to dotted keys, preserving insertion order.

    Lists and scalars are leaves. Empty nested maps disappear.

    Example:
        >>> flatten({"http": {"timeout": 30, "retry": {"count": 3}}})
        {'http.timeout': 30, 'http.retry.count': 3}
    """
    out: dict[str, Any] = {}
    for key, value in (obj or {}).items():
        full = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            out.update(flatten(value, full))
        else:
            out[full] = value
    return out


def unflatten(flat: Mapping[str, Any]) -> dict[str, Any]:
    """Inverse of flatten().

    Example:
        >>> unflatten({"http.timeout": 30})
        {'http': {'timeout': 30}}
    """
    out: dict[str, Any] = {}
    for key, value in flat.items():
        set_path(out, key, value)
    return out

