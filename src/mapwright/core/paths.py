"""Field path parsing and lookup for ``a.b[0].c`` style addresses.

Paths address values inside a nested sample row. A dotted segment selects a
dict key; a bracketed integer selects a list element. Lookups never coerce
values and return MISSING (or a caller default) when the path runs out.
"""

from __future__ import annotations

import re
from typing import Any, TypeAlias

from mapwright.core.sentinels import MISSING

_SEGMENT = re.compile(r"([^.\[\]]+)|\[(\d+)\]")

PathToken: TypeAlias = str | int


def parse_path(path: str) -> list[PathToken]:
    """Split a path into key (str) and index (int) tokens.

    Examples:
        >>> parse_path("order.lines[0].sku")
        ['order', 'lines', 0, 'sku']
        >>> parse_path("matrix[1][2]")
        ['matrix', 1, 2]
    """
    tokens: list[PathToken] = []
    for match in _SEGMENT.finditer(path):
        key, index = match.groups()
        tokens.append(int(index) if index is not None else key)
    return tokens


def format_path(tokens: list[PathToken]) -> str:
    """Inverse of parse_path."""
    out = ""
    for token in tokens:
        if isinstance(token, int):
            out += f"[{token}]"
        else:
            out = f"{out}.{token}" if out else token
    return out


def get_path_value(data: Any, path: str, default: Any = MISSING) -> Any:
    """Return the value at ``path`` inside ``data``.

    Falsy values (``0``, ``''``, ``False``, ``None``) found at the path are
    returned as-is; only an unreachable path yields ``default``.

    Examples:
        >>> get_path_value({"a": {"b": [{"c": 0}]}}, "a.b[0].c")
        0
        >>> get_path_value({"a": 1}, "a.b", default=None) is None
        True
    """
    tokens = parse_path(path)
    if not tokens:
        return default
    current = data
    for token in tokens:
        if isinstance(current, dict):
            key = str(token)
            if key not in current:
                return default
            current = current[key]
        elif isinstance(current, list):
            index = token if isinstance(token, int) else _as_index(token)
            if index is None or not 0 <= index < len(current):
                return default
            current = current[index]
        else:
            return default
    return current


def _as_index(token: str) -> int | None:
    return int(token) if token.isdigit() else None
