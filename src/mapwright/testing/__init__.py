"""Test infrastructure for mapwright graphs.

Factories for constructing graph types with sensible defaults.
When a node type's constructor changes, update the factory here.
Tests that use factories need ZERO changes.

Also provides InMemoryMappingStore, a MappingStore kept in memory.

Usage:
    from mapwright.testing import make_field, make_source, make_target, make_edge, make_graph
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from itertools import count
from types import MappingProxyType
from typing import Any

from mapwright.contracts.documents import VisualConfigDocument
from mapwright.contracts.enums import FieldType
from mapwright.contracts.graph import (
    CoalesceNode,
    ConcatNode,
    ConversionEntry,
    ConversionMappingNode,
    Edge,
    IfThenNode,
    MappingGraph,
    Node,
    Position,
    PriorityRule,
    SourceNode,
    SplitterNode,
    StaticSlot,
    StaticValueNode,
    StringTransformNode,
    TargetNode,
)
from mapwright.contracts.rules import ExecutionConfig
from mapwright.contracts.schema import SchemaField
from mapwright.persistence.protocols import MappingNotFoundError, StoredMapping

# =============================================================================
# Schema fields
# =============================================================================


def make_field(
    field_id: str,
    *,
    name: str | None = None,
    type: FieldType | str = FieldType.STRING,
    children: Sequence[SchemaField] = (),
    group_by: str | None = None,
    value: Any = None,
) -> SchemaField:
    """SchemaField whose name defaults to the last path segment of its id."""
    default_name = field_id.rsplit(".", 1)[-1]
    return SchemaField(
        id=field_id,
        name=name if name is not None else default_name,
        type=FieldType(type),
        children=tuple(children),
        group_by=group_by,
        value=value,
    )


def make_fields(*names: str) -> tuple[SchemaField, ...]:
    """Flat string fields whose ids equal their names."""
    return tuple(make_field(name) for name in names)


# =============================================================================
# Nodes
# =============================================================================


def make_source(
    node_id: str = "source",
    fields: Sequence[SchemaField] | None = None,
    rows: Sequence[dict[str, Any]] | None = None,
    *,
    label: str = "Source",
    position: tuple[float, float] = (0.0, 0.0),
) -> SourceNode:
    """Source node; fields default to string fields named after row 0's keys."""
    sample = tuple(dict(row) for row in rows or ())
    if fields is None:
        fields = make_fields(*sample[0].keys()) if sample else ()
    return SourceNode(
        id=node_id,
        label=label,
        position=Position(*position),
        fields=tuple(fields),
        sample_data=sample,
    )


def make_target(
    node_id: str = "target",
    fields: Sequence[SchemaField] | None = None,
    *,
    label: str = "Target",
    position: tuple[float, float] = (600.0, 0.0),
    field_values: Mapping[str, Any] | None = None,
) -> TargetNode:
    return TargetNode(
        id=node_id,
        label=label,
        position=Position(*position),
        fields=tuple(fields or ()),
        field_values=MappingProxyType(dict(field_values or {})),
    )


def make_static(node_id: str = "static", **slots: Any) -> StaticValueNode:
    """StaticValue node with one slot per keyword (slot id = keyword)."""
    return StaticValueNode(id=node_id, values=tuple(StaticSlot(id=key, value=value) for key, value in slots.items()))


def make_if_then(
    node_id: str = "if_then",
    operator: str = "=",
    compare_value: str = "",
    then_value: str = "yes",
    else_value: str = "no",
) -> IfThenNode:
    return IfThenNode(
        id=node_id,
        operator=operator,
        compare_value=compare_value,
        then_value=then_value,
        else_value=else_value,
    )


def make_rules(*specs: tuple[str, int] | tuple[str, int, str]) -> tuple[PriorityRule, ...]:
    """Rules from ``(id, priority[, output_value])`` tuples."""
    return tuple(PriorityRule(*spec) for spec in specs)


def make_coalesce(
    node_id: str = "coalesce",
    rules: Sequence[PriorityRule] = (),
    default_value: str = "",
) -> CoalesceNode:
    return CoalesceNode(id=node_id, rules=tuple(rules), default_value=default_value)


def make_concat(node_id: str = "concat", rules: Sequence[PriorityRule] = (), delimiter: str = ",") -> ConcatNode:
    return ConcatNode(id=node_id, rules=tuple(rules), delimiter=delimiter)


def make_conversion(node_id: str = "conversion", table: Mapping[str, str] | None = None) -> ConversionMappingNode:
    entries = tuple(ConversionEntry(from_value=k, to_value=v) for k, v in (table or {}).items())
    return ConversionMappingNode(id=node_id, mappings=entries)


def make_splitter(node_id: str = "splitter", delimiter: str = ",", index: int = 0) -> SplitterNode:
    return SplitterNode(id=node_id, delimiter=delimiter, index=index)


def make_string_transform(
    node_id: str = "string_op",
    operation: str = "uppercase",
    **parameters: Any,
) -> StringTransformNode:
    return StringTransformNode(id=node_id, operation=operation, parameters=MappingProxyType(parameters))


# =============================================================================
# Edges and graphs
# =============================================================================

_edge_ids = count(1)


def make_edge(
    source: str,
    source_handle: str | None,
    target: str,
    target_handle: str | None = None,
    *,
    edge_id: str | None = None,
) -> Edge:
    """Edge ``source.source_handle -> target.target_handle``."""
    return Edge(
        id=edge_id or f"e{next(_edge_ids)}",
        source=source,
        target=target,
        source_handle=source_handle,
        target_handle=target_handle,
    )


def make_graph(nodes: Iterable[Node], edges: Iterable[Edge] = ()) -> MappingGraph:
    return MappingGraph(nodes=tuple(nodes), edges=tuple(edges))


# =============================================================================
# Persistence
# =============================================================================


class InMemoryMappingStore:
    """MappingStore keeping every version in a list (oldest first)."""

    def __init__(self) -> None:
        self._records: list[StoredMapping] = []

    def save(
        self,
        name: str,
        visual_config: VisualConfigDocument,
        execution_config: ExecutionConfig,
        version: str,
    ) -> StoredMapping:
        record = StoredMapping(
            id=f"{name}@{version}",
            name=name,
            version=version,
            visual_config=visual_config,
            execution_config=execution_config,
        )
        self._records.append(record)
        return record

    def load(self, mapping_id: str) -> VisualConfigDocument:
        return self._find(mapping_id).visual_config

    def list_mappings(self, name: str | None = None) -> list[StoredMapping]:
        return [record for record in self._records if name is None or record.name == name]

    def activate_version(self, mapping_id: str) -> StoredMapping:
        chosen = self._find(mapping_id)
        updated: list[StoredMapping] = []
        for record in self._records:
            if record.name == chosen.name:
                record = replace(record, is_active=record.id == mapping_id)
            updated.append(record)
        self._records = updated
        return self._find(mapping_id)

    def latest_version(self, name: str) -> str | None:
        versions = [record.version for record in self._records if record.name == name]
        return versions[-1] if versions else None

    def _find(self, mapping_id: str) -> StoredMapping:
        for record in self._records:
            if record.id == mapping_id:
                return record
        raise MappingNotFoundError(f"No stored mapping with id {mapping_id!r}")


__all__ = [
    "InMemoryMappingStore",
    "make_coalesce",
    "make_concat",
    "make_conversion",
    "make_edge",
    "make_field",
    "make_fields",
    "make_graph",
    "make_if_then",
    "make_rules",
    "make_source",
    "make_splitter",
    "make_static",
    "make_string_transform",
    "make_target",
]
