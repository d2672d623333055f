"""Visual Config export.

Serializes every node with its full kind-specific configuration, sample and
output data, and layout position, so an import reproduces equivalent
behavior. Kind settings are written twice: in ``nodeData`` (what import
reads first) and in ``config.parameters`` (for readers that only know that
shape).
"""

from __future__ import annotations

import json
import time
from datetime import UTC, datetime
from typing import Any, assert_never

from mapwright.contracts.documents import VisualConfigDocument
from mapwright.contracts.enums import ConnectionType, FieldType, NodeKind
from mapwright.contracts.graph import (
    CoalesceNode,
    ConcatNode,
    ConversionMappingNode,
    Edge,
    IfThenNode,
    MappingGraph,
    Node,
    SourceNode,
    SplitterNode,
    StaticValueNode,
    StringTransformNode,
    TargetNode,
    TransformNode,
)
from mapwright.contracts.schema import iter_fields
from mapwright.core.config import ExportSettings
from mapwright.core.logging import get_logger
from mapwright.engine.steps import build_execution_steps

slog = get_logger(__name__)

VISUAL_DESCRIPTION = "UI mapping configuration for canvas restoration"
VISUAL_TAGS = ("ui-state", "canvas-layout", "visual-mapping")

# NodeKind -> (record "type", record "transformType") for transform records
TRANSFORM_WIRE_TYPES: dict[NodeKind, tuple[str, str]] = {
    NodeKind.STATIC_VALUE: ("staticValue", "Static Value"),
    NodeKind.IF_THEN: ("ifThen", "IF THEN"),
    NodeKind.SPLITTER: ("splitterTransform", "Text Splitter"),
    NodeKind.COALESCE: ("transform", "coalesce"),
    NodeKind.CONCAT: ("concatTransform", "concat"),
    NodeKind.STRING_TRANSFORM: ("transform", "String Transform"),
}


def export_visual_config(
    graph: MappingGraph,
    name: str | None = None,
    *,
    settings: ExportSettings | None = None,
    mapping_id: str | None = None,
    created_at: str | None = None,
) -> VisualConfigDocument:
    """Serialize ``graph`` into a Visual Config document.

    Args:
        graph: Snapshot to export; Targets should already be resolved
        name: Mapping name; defaults to ``settings.default_name``
        settings: Export defaults (author)
        mapping_id: Document id; defaults to ``mapping_<epoch ms>``
        created_at: ISO timestamp; defaults to now (UTC)
    """
    settings = settings or ExportSettings()
    sources: list[dict[str, Any]] = []
    targets: list[dict[str, Any]] = []
    transforms: list[dict[str, Any]] = []
    mappings: list[dict[str, Any]] = []

    for node in graph.nodes:
        match node:
            case SourceNode():
                sources.append(_source_record(node))
            case TargetNode():
                targets.append(_target_record(node))
            case ConversionMappingNode():
                mappings.append(_mapping_record(node))
            case _:
                transforms.append(_transform_record(node))

    document = {
        "id": mapping_id or f"mapping_{time.time_ns() // 1_000_000}",
        "name": name or settings.default_name,
        "version": "1.0.0",
        "createdAt": created_at or datetime.now(UTC).isoformat(),
        "nodes": {"sources": sources, "targets": targets, "transforms": transforms, "mappings": mappings},
        "connections": [_connection_record(graph, edge) for edge in graph.edges],
        "execution": {"steps": build_execution_steps(graph)},
        "metadata": {
            "description": VISUAL_DESCRIPTION,
            "tags": list(VISUAL_TAGS),
            "author": settings.author,
        },
    }
    slog.debug(
        "visual_config_exported",
        nodes=len(graph.nodes),
        connections=len(graph.edges),
        steps=len(document["execution"]["steps"]),
    )
    return VisualConfigDocument.parse(document)


def dumps(document: VisualConfigDocument, indent: int | None = 2) -> str:
    """JSON text of a Visual Config document (``indent=0`` for compact)."""
    return json.dumps(document.to_dict(), indent=indent or None, ensure_ascii=False, default=str)


def _base(node: Node) -> dict[str, Any]:
    return {"id": node.id, "label": node.label, "position": node.position.to_dict()}


def _source_record(node: SourceNode) -> dict[str, Any]:
    return {
        **_base(node),
        "type": "source",
        "schema": {"fields": [f.to_dict(include_group_by=False) for f in node.fields]},
        "sampleData": [dict(row) for row in node.sample_data],
    }


def _target_record(node: TargetNode) -> dict[str, Any]:
    # groupBy travels in arrayConfigs, matched back by field name on import
    array_configs = [
        {"targetArray": f.name, "groupBy": f.group_by}
        for f in iter_fields(node.fields)
        if f.type is FieldType.ARRAY and f.group_by
    ]
    return {
        **_base(node),
        "type": "target",
        "schema": {"fields": [f.to_dict(include_group_by=False) for f in node.fields]},
        "outputData": [dict(row) for row in node.output_data],
        "fieldValues": dict(node.field_values),
        "arrayConfigs": array_configs,
    }


def _mapping_record(node: ConversionMappingNode) -> dict[str, Any]:
    return {**_base(node), "type": "mapping", "mappings": [entry.to_dict() for entry in node.mappings]}


def _transform_record(node: TransformNode) -> dict[str, Any]:
    wire_type, transform_type = TRANSFORM_WIRE_TYPES[node.kind]
    operation, node_data = _transform_settings(node)
    return {
        **_base(node),
        "type": wire_type,
        "transformType": transform_type,
        "config": {"operation": operation, "parameters": node_data},
        "nodeData": node_data,
    }


def _transform_settings(node: TransformNode) -> tuple[str, dict[str, Any]]:
    match node:
        case StaticValueNode():
            values = [{"id": slot.id, "value": slot.value, "label": slot.label} for slot in node.values]
            return "static", {"values": values}
        case SplitterNode():
            data: dict[str, Any] = {"delimiter": node.delimiter, "splitIndex": node.index}
            if node.max_split is not None:
                data["maxSplit"] = node.max_split
            return "split", data
        case CoalesceNode():
            return "coalesce", {
                "rules": [rule.to_dict() for rule in node.rules],
                "defaultValue": node.default_value,
            }
        case ConcatNode():
            return "concat", {"rules": [rule.to_dict() for rule in node.rules], "delimiter": node.delimiter}
        case StringTransformNode():
            return node.operation, {"operation": node.operation, "parameters": dict(node.parameters)}
        case ConversionMappingNode():
            return "mapping", {"mappings": [entry.to_dict() for entry in node.mappings]}
        case IfThenNode():
            return "conditional", {
                "operator": node.operator,
                "compareValue": node.compare_value,
                "thenValue": node.then_value,
                "elseValue": node.else_value,
            }
        case _:
            assert_never(node)


def _connection_record(graph: MappingGraph, edge: Edge) -> dict[str, Any]:
    source = graph.node(edge.source)
    if isinstance(source, ConversionMappingNode):
        connection_type = ConnectionType.MAPPING
    elif source is None or isinstance(source, SourceNode | TargetNode):
        connection_type = ConnectionType.DIRECT
    else:
        connection_type = ConnectionType.TRANSFORM
    return {
        "id": edge.id,
        "sourceNodeId": edge.source,
        "targetNodeId": edge.target,
        "sourceHandle": edge.source_handle or "",
        "targetHandle": edge.target_handle or "",
        "type": str(connection_type),
    }
