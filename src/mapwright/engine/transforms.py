"""Per-kind value functions shared by the resolver.

Every function is pure and total: bad input produces a fallback value
(``NotMapped``, the default value, the unchanged text), never an exception.
``MISSING`` means "no input is connected or resolvable" and is distinct
from an explicit ``None`` found in sample data.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from typing import Any

from mapwright.contracts.enums import StringOperation
from mapwright.contracts.graph import ConversionEntry, ConversionMappingNode, PriorityRule
from mapwright.core.sentinels import MISSING


def is_present(value: Any) -> bool:
    """True for any resolved value except missing and null."""
    return value is not MISSING and value is not None


def to_text(value: Any) -> str:
    """Render a resolved value the way the canvas displays it.

    Booleans render lowercase, integral floats without a fraction, and
    containers as compact sorted JSON.
    """
    if value is MISSING or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, dict | list | tuple):
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    return str(value)


def apply_coalesce(rules: Iterable[PriorityRule], inputs: Mapping[str, Any], default_value: Any) -> Any:
    """First present input by ascending priority.

    Returns the winning rule's output value, or the input value itself when
    the rule's output value is empty. Falls back to ``default_value``.
    """
    for rule in sorted(rules, key=lambda r: r.priority):
        value = inputs.get(rule.id, MISSING)
        if is_present(value):
            return rule.output_value if rule.output_value != "" else value
    return default_value


def apply_concat(rules: Iterable[PriorityRule], inputs: Mapping[str, Any], delimiter: str) -> str:
    """Join present inputs in ascending priority order."""
    parts = [
        to_text(inputs[rule.id])
        for rule in sorted(rules, key=lambda r: r.priority)
        if is_present(inputs.get(rule.id, MISSING))
    ]
    return delimiter.join(parts)


def apply_conversion(mappings: Iterable[ConversionEntry], value: Any) -> str:
    """Look a value up in a conversion table (trimmed string comparison).

    The first matching ``from`` entry wins; anything else is ``NotMapped``.
    """
    if value is MISSING:
        return ConversionMappingNode.NOT_MAPPED
    key = to_text(value).strip()
    for entry in mappings:
        if to_text(entry.from_value).strip() == key:
            return entry.to_value
    return ConversionMappingNode.NOT_MAPPED


def apply_string_operation(value: Any, operation: str, parameters: Mapping[str, Any]) -> Any:
    """Apply a StringTransform operation to the text form of ``value``.

    Unknown operations and invalid regular expressions return the input
    unchanged.
    """
    if value is MISSING:
        return MISSING
    text = to_text(value)
    try:
        op = StringOperation(operation)
    except ValueError:
        return value

    match op:
        case StringOperation.UPPERCASE:
            return text.upper()
        case StringOperation.LOWERCASE:
            return text.lower()
        case StringOperation.TRIM:
            return text.strip()
        case StringOperation.PREFIX:
            return f"{parameters.get('prefix', '')}{text}"
        case StringOperation.SUFFIX:
            return f"{text}{parameters.get('suffix', '')}"
        case StringOperation.SUBSTRING:
            return _substring(text, parameters.get("start"), parameters.get("end"))
        case StringOperation.REPLACE:
            try:
                return re.sub(str(parameters.get("pattern", "")), str(parameters.get("replacement", "")), text)
            except re.error:
                return text


def _substring(text: str, start: Any, end: Any) -> str:
    """Substring with clamped, order-insensitive bounds."""
    begin = _clamp_index(start, len(text), fallback=0)
    stop = _clamp_index(end, len(text), fallback=len(text))
    if begin > stop:
        begin, stop = stop, begin
    return text[begin:stop]


def _clamp_index(raw: Any, length: int, *, fallback: int) -> int:
    if raw is None or raw == "":
        return fallback
    try:
        index = int(raw)
    except (TypeError, ValueError):
        return fallback
    return min(max(index, 0), length)
