"""Schema inference from a sample data row.

Used on import to regenerate a Source node's field tree from its first
sample row, so the schema always matches the data actually carried.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from mapwright.contracts.enums import FieldType
from mapwright.contracts.schema import SchemaField

# ISO dates (2024-01-31, 2024-01-31T10:00:00Z) and dd/mm/yyyy
_DATE_PATTERNS = (
    re.compile(r"^\d{4}-\d{2}-\d{2}"),
    re.compile(r"^\d{2}/\d{2}/\d{4}"),
)


def infer_field_type(value: Any) -> FieldType:
    """Field type of one sample value.

    Booleans are checked before numbers because ``bool`` is an ``int``.
    """
    if isinstance(value, list):
        return FieldType.ARRAY
    if isinstance(value, dict):
        return FieldType.OBJECT
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, int | float):
        return FieldType.NUMBER
    if isinstance(value, str) and any(pattern.match(value) for pattern in _DATE_PATTERNS):
        return FieldType.DATE
    return FieldType.STRING


def infer_fields(row: Mapping[str, Any], prefix: str = "") -> tuple[SchemaField, ...]:
    """Field tree for a sample row, ids being the path of each field.

    Array children are inferred from the first element when it is an
    object, with ids indexed at ``[0]``.

    Example:
        >>> [f.id for f in infer_fields({"a": {"b": 1}})[0].children]
        ['a.b']
    """
    fields: list[SchemaField] = []
    for key, value in row.items():
        field_id = f"{prefix}.{key}" if prefix else str(key)
        field_type = infer_field_type(value)
        children: tuple[SchemaField, ...] = ()
        if field_type is FieldType.ARRAY and value and isinstance(value[0], dict):
            children = infer_fields(value[0], f"{field_id}[0]")
        elif field_type is FieldType.OBJECT:
            children = infer_fields(value, field_id)
        fields.append(SchemaField(id=field_id, name=str(key), type=field_type, children=children))
    return tuple(fields)
