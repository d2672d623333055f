"""Execution steps: a per-edge documentation projection of the graph.

Steps are attached to exported Visual Config documents so a reader can see
what flows where. They are never re-consumed on import.
"""

from __future__ import annotations

from typing import Any

from mapwright.contracts.enums import StepType
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
)
from mapwright.contracts.schema import find_field, locate_field
from mapwright.core.dag import MappingDAG
from mapwright.core.paths import get_path_value


def build_execution_steps(graph: MappingGraph) -> list[dict[str, Any]]:
    """One step per Source edge that reaches a Target directly or through one node."""
    dag = MappingDAG(graph)
    outgoing: dict[str, list[Edge]] = {}
    for edge in graph.edges:
        outgoing.setdefault(edge.source, []).append(edge)

    steps: list[dict[str, Any]] = []

    def add(step_type: StepType, **payload: Any) -> None:
        steps.append({"stepId": f"step_{len(steps) + 1}", "type": str(step_type), **payload})

    for edge in graph.edges:
        source = dag.node(edge.source)
        target = dag.node(edge.target)
        if not isinstance(source, SourceNode) or target is None:
            continue

        source_ref = _source_ref(source, edge.source_handle)

        if isinstance(target, TargetNode):
            add(StepType.DIRECT_MAPPING, source=source_ref, target=_field_ref(target, edge.target_handle))
            continue

        onward = _onward_target(dag, outgoing.get(target.id, []))
        if onward is None:
            continue
        onward_edge, final_target = onward
        target_ref = _field_ref(final_target, onward_edge.target_handle)

        if isinstance(target, ConversionMappingNode):
            add(
                StepType.CONVERSION_MAPPING,
                source=source_ref,
                target=target_ref,
                conversion={"rules": [entry.to_dict() for entry in target.mappings]},
            )
        else:
            add(StepType.TRANSFORM, source=source_ref, target=target_ref, transform=_transform_summary(target))

    return steps


def _onward_target(dag: MappingDAG, edges: list[Edge]) -> tuple[Edge, TargetNode] | None:
    """First edge leaving a transform that lands on a Target, with that Target."""
    for edge in edges:
        node = dag.node(edge.target)
        if isinstance(node, TargetNode):
            return edge, node
    return None


def _source_ref(node: SourceNode, handle: str | None) -> dict[str, Any]:
    location = locate_field(node.fields, handle)
    if location is None:
        return {"nodeId": node.id, "fieldId": handle or "", "fieldName": handle or "", "value": None}
    if location.field.has_manual_value:
        value = location.field.value
    else:
        value = get_path_value(node.sample_data[0], location.path, default=None) if node.sample_data else None
    return {"nodeId": node.id, "fieldId": location.field.id, "fieldName": location.field.name, "value": value}


def _field_ref(node: TargetNode, handle: str | None) -> dict[str, Any]:
    target_field = find_field(node.fields, handle)
    name = target_field.name if target_field else handle or ""
    return {"nodeId": node.id, "fieldId": handle or "", "fieldName": name}


def _transform_summary(node: Node) -> dict[str, Any]:
    match node:
        case IfThenNode():
            parameters: dict[str, Any] = {
                "operator": node.operator,
                "compareValue": node.compare_value,
                "thenValue": node.then_value,
                "elseValue": node.else_value,
            }
            operation = node.operator
        case SplitterNode():
            parameters = {"delimiter": node.delimiter, "index": node.index}
            operation = "split"
        case CoalesceNode():
            parameters = {"rules": [rule.to_dict() for rule in node.sorted_rules()], "defaultValue": node.default_value}
            operation = "coalesce"
        case ConcatNode():
            parameters = {"rules": [rule.to_dict() for rule in node.sorted_rules()], "delimiter": node.delimiter}
            operation = "concat"
        case StringTransformNode():
            parameters = dict(node.parameters)
            operation = node.operation
        case StaticValueNode():
            parameters = {"values": [slot.value for slot in node.values]}
            operation = "static"
        case _:
            parameters = {}
            operation = None
    return {"type": str(node.kind), "operation": operation, "parameters": parameters}
