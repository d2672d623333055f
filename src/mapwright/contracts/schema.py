"""Schema field trees with path-based identity.

A field tree is an ordered tuple of SchemaField roots. Field ids are unique
within one node's tree and are usually the dotted / bracket-indexed path of
the field (``order.lines[0].sku``), but lookups never assume that: paths are
always derived by walking names from the root.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, replace
from typing import Any

from mapwright.contracts.enums import FieldType


@dataclass(frozen=True, slots=True)
class SchemaField:
    """One node of a schema field tree.

    Attributes:
        id: Identifier unique within the owning node's tree
        name: Key of the field in a data row
        type: FieldType
        children: Child fields; always empty for leaf types
        group_by: Grouping key for array fields of a Target (compiler only)
        is_attribute: Field renders as an attribute (XML-style targets)
        value: Manual literal overriding sample data during resolution
    """

    id: str
    name: str
    type: FieldType = FieldType.STRING
    children: tuple[SchemaField, ...] = ()
    group_by: str | None = None
    is_attribute: bool = False
    value: Any = None

    def __post_init__(self) -> None:
        if self.children and not self.type.is_container:
            raise ValueError(f"Leaf field '{self.id}' of type {self.type} cannot have children")

    @property
    def is_leaf(self) -> bool:
        return not self.type.is_container

    @property
    def has_manual_value(self) -> bool:
        return self.value is not None and self.value != ""

    def with_children(self, children: Sequence[SchemaField]) -> SchemaField:
        return replace(self, children=tuple(children))

    def to_dict(self, *, include_group_by: bool = True) -> dict[str, Any]:
        """Serialize to the camelCase shape used in Visual Config documents."""
        data: dict[str, Any] = {"id": self.id, "name": self.name, "type": str(self.type)}
        if self.type.is_container:
            data["children"] = [child.to_dict(include_group_by=include_group_by) for child in self.children]
        if include_group_by and self.group_by:
            data["groupBy"] = self.group_by
        if self.is_attribute:
            data["isAttribute"] = True
        if self.value is not None:
            data["value"] = self.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchemaField:
        """Build from a persisted field record.

        Unknown type strings degrade to STRING so old documents stay loadable.
        """
        try:
            field_type = FieldType(data.get("type", "string"))
        except ValueError:
            field_type = FieldType.STRING
        children_data = data.get("children") or []
        children = tuple(cls.from_dict(child) for child in children_data) if field_type.is_container else ()
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", data["id"])),
            type=field_type,
            children=children,
            group_by=data.get("groupBy"),
            is_attribute=bool(data.get("isAttribute", False)),
            value=data.get("value"),
        )


@dataclass(frozen=True, slots=True)
class FieldLocation:
    """A field found in a tree together with its ancestor chain (root first)."""

    field: SchemaField
    ancestors: tuple[SchemaField, ...] = ()

    @property
    def path(self) -> str:
        """Name path of the field, arrays indexed at row 0."""
        return build_field_path([*self.ancestors, self.field])


def build_field_path(chain: Sequence[SchemaField]) -> str:
    """Join a root-first field chain into a ``a.b[0].c`` path."""
    parts: list[str] = []
    for index, node in enumerate(chain):
        segment = node.name
        is_last = index == len(chain) - 1
        if node.type is FieldType.ARRAY and not is_last:
            segment = f"{segment}[0]"
        parts.append(segment)
    return ".".join(parts)


def iter_fields(fields: Sequence[SchemaField]) -> Iterator[SchemaField]:
    """Yield every field of a tree in pre-order."""
    for node in fields:
        yield node
        yield from iter_fields(node.children)


def locate_field(fields: Sequence[SchemaField], field_id: str | None) -> FieldLocation | None:
    """Find a field by id anywhere in the tree.

    Returns:
        FieldLocation with the ancestor chain, or None for unknown / empty ids
    """
    if not field_id:
        return None
    return _locate(fields, field_id, ())


def _locate(fields: Sequence[SchemaField], field_id: str, ancestors: tuple[SchemaField, ...]) -> FieldLocation | None:
    for node in fields:
        if node.id == field_id:
            return FieldLocation(field=node, ancestors=ancestors)
        if node.children:
            found = _locate(node.children, field_id, (*ancestors, node))
            if found is not None:
                return found
    return None


def find_field(fields: Sequence[SchemaField], field_id: str | None) -> SchemaField | None:
    location = locate_field(fields, field_id)
    return location.field if location else None


def ancestor_ids(fields: Sequence[SchemaField], field_id: str | None) -> tuple[str, ...]:
    """Ids of every ancestor of a field, root first. Empty for unknown ids."""
    location = locate_field(fields, field_id)
    if location is None:
        return ()
    return tuple(node.id for node in location.ancestors)


def duplicate_field_ids(fields: Sequence[SchemaField]) -> list[str]:
    """Ids that appear more than once in a tree (should be empty)."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for node in iter_fields(fields):
        if node.id in seen and node.id not in duplicates:
            duplicates.append(node.id)
        seen.add(node.id)
    return duplicates


def fields_from_dicts(records: Sequence[dict[str, Any]] | None) -> tuple[SchemaField, ...]:
    return tuple(SchemaField.from_dict(record) for record in records or ())
