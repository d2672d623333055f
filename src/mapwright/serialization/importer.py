"""Visual Config import.

``import_visual_config(doc) -> MappingGraph``. Only the document's
top-level structure can fail the import (DocumentFormatError, nothing
installed). Everything inside is applied leniently:

- Source schemas are regenerated from sample row 0 when sample data exists;
  the persisted schema is only a fallback.
- Target array fields get their groupBy back from ``arrayConfigs``.
- Coalesce rules missing from the document are rebuilt from ``rule-<n>``
  connection handles (see ``reconstruct_coalesce_rules``).
- Connections to node ids absent from the document are dropped.
- Target fields above a connected field are marked expanded.

The ``execution.steps`` section is never read.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from mapwright.contracts.documents import (
    ConnectionRecord,
    MappingNodeRecord,
    SourceRecord,
    TargetRecord,
    TransformRecord,
    VisualConfigDocument,
)
from mapwright.contracts.enums import FieldType
from mapwright.contracts.errors import DocumentFormatError
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
from mapwright.contracts.schema import SchemaField, ancestor_ids, fields_from_dicts, iter_fields
from mapwright.core.logging import get_logger
from mapwright.core.sentinels import MISSING
from mapwright.serialization.inference import infer_fields

slog = get_logger(__name__)

_RULE_HANDLE = re.compile(r"^rule-\d+$")


def loads(text: str | bytes) -> MappingGraph:
    """Import a Visual Config document from JSON text.

    Raises:
        DocumentFormatError: If the text is not JSON or the document is malformed
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentFormatError("visual", [f"invalid JSON: {e}"]) from e
    return import_visual_config(data)


def import_visual_config(document: VisualConfigDocument | Mapping[str, Any]) -> MappingGraph:
    """Rebuild a mapping graph from a Visual Config document.

    Raises:
        DocumentFormatError: If ``nodes`` or ``connections`` is missing or malformed
    """
    if not isinstance(document, VisualConfigDocument):
        document = VisualConfigDocument.parse(dict(document) if isinstance(document, Mapping) else document)

    nodes: list[Node] = []
    nodes.extend(_source_node(record) for record in document.nodes.sources)
    nodes.extend(_target_node(record) for record in document.nodes.targets)
    for record in document.nodes.transforms:
        node = _transform_node(record)
        if node is None:
            slog.warning("unknown_transform_skipped", node_id=record.id, type=record.type)
            continue
        nodes.append(node)
    nodes.extend(_mapping_node(record) for record in document.nodes.mappings)

    known_ids = {node.id for node in nodes}
    edges: list[Edge] = []
    for connection in document.connections:
        if connection.source_node_id not in known_ids or connection.target_node_id not in known_ids:
            slog.debug(
                "connection_dropped",
                connection_id=connection.id,
                source=connection.source_node_id,
                target=connection.target_node_id,
            )
            continue
        edges.append(_edge(connection))

    graph = MappingGraph(nodes=tuple(nodes), edges=tuple(edges))
    graph = reconstruct_coalesce_rules(graph)
    graph = expand_connected_fields(graph)

    slog.debug("visual_config_imported", document_id=document.id, nodes=len(graph.nodes), edges=len(graph.edges))
    return graph


def reconstruct_coalesce_rules(graph: MappingGraph) -> MappingGraph:
    """Synthesize rules for Coalesce nodes that carry none.

    One rule per distinct ``rule-<n>`` target handle, in edge-encounter
    order, priority 1..n, empty output value. The authored order and output
    values are not recoverable.
    """
    nodes: list[Node] = []
    for node in graph.nodes:
        if isinstance(node, CoalesceNode) and not node.rules:
            handles: list[str] = []
            for edge in graph.edges:
                handle = edge.target_handle
                if edge.target == node.id and handle and _RULE_HANDLE.match(handle) and handle not in handles:
                    handles.append(handle)
            if handles:
                rules = tuple(PriorityRule(id=handle, priority=i + 1) for i, handle in enumerate(handles))
                slog.debug("coalesce_rules_reconstructed", node_id=node.id, rules=handles)
                node = replace(node, rules=rules)
        nodes.append(node)
    return graph.with_nodes(nodes)


def expand_connected_fields(graph: MappingGraph) -> MappingGraph:
    """Mark every Target ancestor of a connected field as expanded."""
    expanded: dict[str, set[str]] = {}
    for edge in graph.edges:
        target = graph.node(edge.target)
        if isinstance(target, TargetNode):
            expanded.setdefault(target.id, set()).update(ancestor_ids(target.fields, edge.target_handle))

    nodes: list[Node] = []
    for node in graph.nodes:
        if isinstance(node, TargetNode) and expanded.get(node.id):
            node = replace(node, expanded_fields=node.expanded_fields | expanded[node.id])
        nodes.append(node)
    return graph.with_nodes(nodes)


# Node records


def _position(record: SourceRecord | TargetRecord | TransformRecord | MappingNodeRecord) -> Position:
    return Position(x=record.position.x, y=record.position.y)


def _source_node(record: SourceRecord) -> SourceNode:
    rows = tuple(row for row in record.sample_data if isinstance(row, dict))
    persisted = fields_from_dicts(record.schema_.field_dicts())
    if rows:
        fields = _carry_manual_values(infer_fields(rows[0]), persisted)
    else:
        fields = persisted
    return SourceNode(id=record.id, label=record.label, position=_position(record), fields=fields, sample_data=rows)


def _carry_manual_values(fields: Sequence[SchemaField], persisted: Sequence[SchemaField]) -> tuple[SchemaField, ...]:
    """Keep manual literals of persisted fields whose id survives inference."""
    manual = {f.id: f.value for f in iter_fields(persisted) if f.has_manual_value}
    if not manual:
        return tuple(fields)

    def carry(node: SchemaField) -> SchemaField:
        children = tuple(carry(child) for child in node.children)
        return replace(node, children=children, value=manual.get(node.id, node.value))

    return tuple(carry(f) for f in fields)


def _target_node(record: TargetRecord) -> TargetNode:
    group_by = {config.target_array: config.group_by for config in record.array_configs}
    fields = _attach_group_by(fields_from_dicts(record.schema_.field_dicts()), group_by)
    return TargetNode(
        id=record.id,
        label=record.label,
        position=_position(record),
        fields=fields,
        field_values=MappingProxyType(dict(record.field_values or {})),
        output_data=tuple(row for row in record.output_data if isinstance(row, dict)),
    )


def _attach_group_by(fields: Sequence[SchemaField], group_by: Mapping[str, str]) -> tuple[SchemaField, ...]:
    if not group_by:
        return tuple(fields)
    result: list[SchemaField] = []
    for node in fields:
        children = _attach_group_by(node.children, group_by)
        key = group_by.get(node.name) if node.type is FieldType.ARRAY else None
        result.append(replace(node, children=children, group_by=key or node.group_by))
    return tuple(result)


def _mapping_node(record: MappingNodeRecord) -> ConversionMappingNode:
    entries = tuple(
        ConversionEntry(from_value=_text(entry.from_), to_value=_text(entry.to)) for entry in record.mappings
    )
    return ConversionMappingNode(id=record.id, label=record.label, position=_position(record), mappings=entries)


def _transform_node(record: TransformRecord) -> Node | None:
    """Build the node for a transform record, or None for unknown kinds."""
    kind = record.type
    transform_type = record.transform_type
    base: dict[str, Any] = {"id": record.id, "label": record.label, "position": _position(record)}

    if kind == "coalesceTransform" or transform_type == "coalesce":
        return CoalesceNode(
            **base,
            rules=_rules(_setting(record, "rules", [])),
            default_value=_text(_setting(record, "defaultValue", "")),
        )
    if kind == "concatTransform" or transform_type == "concat":
        return ConcatNode(
            **base,
            rules=_rules(_setting(record, "rules", [])),
            delimiter=_text(_setting(record, "delimiter", ",")),
        )
    if kind == "ifThen" or transform_type == "IF THEN":
        return IfThenNode(
            **base,
            operator=_text(_setting(record, "operator", "=")) or "=",
            compare_value=_text(_setting(record, "compareValue", "")),
            then_value=_text(_setting(record, "thenValue", "")),
            else_value=_text(_setting(record, "elseValue", "")),
        )
    if kind == "staticValue" or transform_type == "Static Value":
        return StaticValueNode(**base, values=_slots(_setting(record, "values", [])))
    if kind == "splitterTransform" or transform_type == "Text Splitter":
        max_split = _setting(record, "maxSplit", None)
        return SplitterNode(
            **base,
            delimiter=_text(_setting(record, "delimiter", ",")) or ",",
            index=_int(_setting(record, "splitIndex", 0), 0),
            max_split=None if max_split is None else _int(max_split, 0),
        )
    if kind == "transform":
        return _string_transform(record, base)
    return None


def _string_transform(record: TransformRecord, base: dict[str, Any]) -> StringTransformNode:
    operation = _setting(record, "operation", MISSING)
    if operation is MISSING:
        # Older documents: {"stringOperation": ..., "substringStart": ..., "substringEnd": ...}
        operation = record.config.get("stringOperation", "uppercase")
    parameters = _setting(record, "parameters", None)
    if not isinstance(parameters, dict):
        parameters = {key: value for key, value in record.config.items() if key not in ("operation", "stringOperation")}
        if "substringStart" in parameters:
            parameters["start"] = parameters.pop("substringStart")
        if "substringEnd" in parameters:
            parameters["end"] = parameters.pop("substringEnd")
    return StringTransformNode(**base, operation=_text(operation), parameters=MappingProxyType(dict(parameters)))


def _setting(record: TransformRecord, key: str, default: Any) -> Any:
    """Kind setting from nodeData, then config.parameters, then config."""
    parameters = record.config.get("parameters")
    for source in (record.node_data, parameters, record.config):
        if isinstance(source, dict) and key in source and source[key] is not None:
            return source[key]
    return default


def _rules(raw: Any) -> tuple[PriorityRule, ...]:
    if not isinstance(raw, list):
        return ()
    rules: list[PriorityRule] = []
    for position, item in enumerate(raw, start=1):
        if not isinstance(item, dict) or "id" not in item:
            continue
        rules.append(
            PriorityRule(
                id=str(item["id"]),
                priority=_int(item.get("priority"), position),
                output_value=_text(item.get("outputValue", "")),
            )
        )
    return tuple(rules)


def _slots(raw: Any) -> tuple[StaticSlot, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(
        StaticSlot(id=str(item["id"]), value=item.get("value", ""), label=_text(item.get("label", "")))
        for item in raw
        if isinstance(item, dict) and "id" in item
    )


def _edge(connection: ConnectionRecord) -> Edge:
    return Edge(
        id=connection.id,
        source=connection.source_node_id,
        target=connection.target_node_id,
        source_handle=connection.source_handle or None,
        target_handle=connection.target_handle or None,
    )


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
