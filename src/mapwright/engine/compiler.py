"""Execution Config Compiler.

Flattens a mapping graph into the declarative rule list consumed by an
external execution runtime. One rule is emitted per edge that reaches a
Target field; the rule type follows the immediate upstream node kind.

Compilation is pure and deterministic: targets are visited in node order,
fields in pre-order, edges in snapshot order. Positions are never read.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, assert_never

from mapwright.contracts.enums import FieldType, RuleType, StringOperation
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
from mapwright.contracts.rules import ArrayMapping, ExecutionConfig, ExecutionRule, IfClause
from mapwright.contracts.schema import SchemaField, iter_fields, locate_field
from mapwright.core.config import ExportSettings
from mapwright.core.dag import MappingDAG
from mapwright.core.logging import get_logger

slog = get_logger(__name__)

EXECUTION_DESCRIPTION = "Simplified execution mapping configuration for integration tools"
EXECUTION_TAGS = ("execution", "integration", "data-transformation")


class ExecutionCompiler:
    """Compiles one snapshot. Holds only indexes over that snapshot."""

    def __init__(self, graph: MappingGraph) -> None:
        self._dag = MappingDAG(graph)

    def rules(self) -> list[ExecutionRule]:
        rules: list[ExecutionRule] = []
        for target in self._dag.snapshot.targets():
            for target_field in iter_fields(target.fields):
                to_path = _field_path(target.fields, target_field.id) or target_field.name
                for edge in self._dag.incoming(target.id, target_field.id):
                    rule = self._rule_for(edge, to_path)
                    if rule is None:
                        slog.debug("no_rule_for_edge", edge_id=edge.id, source=edge.source, to=to_path)
                        continue
                    rules.append(rule)
        return rules

    def arrays(self, mapped_paths: set[str]) -> list[ArrayMapping]:
        """Grouping instructions for every Target array field with a groupBy."""
        arrays: list[ArrayMapping] = []
        for target in self._dag.snapshot.targets():
            for array_field in iter_fields(target.fields):
                if array_field.type is not FieldType.ARRAY or not array_field.group_by:
                    continue
                fields = [
                    path
                    for path in (_field_path(target.fields, child.id) for child in iter_fields(array_field.children))
                    if path in mapped_paths
                ]
                arrays.append(
                    ArrayMapping(
                        target=_field_path(target.fields, array_field.id) or array_field.name,
                        group_by=array_field.group_by,
                        fields=fields,
                    )
                )
        return arrays

    def _rule_for(self, edge: Edge, to_path: str) -> ExecutionRule | None:
        node = self._dag.node(edge.source)
        if node is None:
            return None

        match node:
            case SourceNode():
                from_path = self._source_path(node.id, edge.source_handle)
                if from_path is None:
                    return None
                return ExecutionRule(from_=from_path, to=to_path, type=RuleType.DIRECT)
            case TargetNode():
                return None
            case StaticValueNode():
                slot = node.slot(edge.source_handle)
                if slot is None:
                    return None
                return ExecutionRule(from_=None, to=to_path, type=RuleType.STATIC, value=slot.value)
            case IfThenNode():
                return ExecutionRule(
                    from_=self._traced_input(node.id),
                    to=to_path,
                    type=RuleType.IF_THEN,
                    if_=IfClause(operator=node.operator, value=node.compare_value),
                    then=node.then_value,
                    else_=node.else_value,
                )
            case CoalesceNode():
                inputs = self._rule_sources(node.id)
                transform = {
                    "type": "coalesce",
                    "operation": "coalesce",
                    "parameters": {
                        "rules": [
                            {
                                "sourceField": inputs.get(rule.id),
                                "outputValue": rule.output_value,
                                "priority": rule.priority,
                            }
                            for rule in node.sorted_rules()
                        ],
                        "defaultValue": node.default_value,
                    },
                }
                return ExecutionRule(from_=None, to=to_path, type=RuleType.TRANSFORM, transform=transform)
            case ConcatNode():
                inputs = self._rule_sources(node.id)
                transform = {
                    "type": "concat",
                    "operation": "concat",
                    "parameters": {
                        "rules": [
                            {"sourceField": inputs.get(rule.id), "priority": rule.priority}
                            for rule in node.sorted_rules()
                        ],
                        "delimiter": node.delimiter,
                    },
                }
                return ExecutionRule(from_=None, to=to_path, type=RuleType.TRANSFORM, transform=transform)
            case ConversionMappingNode():
                return self._map_rule(node, to_path)
            case SplitterNode():
                return ExecutionRule(
                    from_=self._traced_input(node.id),
                    to=to_path,
                    type=RuleType.SPLIT,
                    split=_split_descriptor(node),
                )
            case StringTransformNode():
                return ExecutionRule(
                    from_=self._traced_input(node.id),
                    to=to_path,
                    type=RuleType.TRANSFORM,
                    transform=string_transform_descriptor(node),
                )
            case _:
                assert_never(node)

    def _map_rule(self, node: ConversionMappingNode, to_path: str) -> ExecutionRule:
        from_path: str | None = None
        transform: dict[str, Any] | None = None

        input_edge = self._dag.first_incoming(node.id)
        if input_edge is not None:
            upstream = self._dag.node(input_edge.source)
            match upstream:
                case SplitterNode():
                    # One level of chain flattening only.
                    from_path = self._traced_input(upstream.id)
                    transform = {"type": "split", **_split_descriptor(upstream)}
                case StringTransformNode():
                    from_path = self._traced_input(upstream.id)
                    transform = string_transform_descriptor(upstream)
                case _:
                    from_path = self._source_path(input_edge.source, input_edge.source_handle)

        return ExecutionRule(
            from_=from_path,
            to=to_path,
            type=RuleType.MAP,
            map=node.as_table(),
            default_value=ConversionMappingNode.NOT_MAPPED,
            transform=transform,
        )

    def _source_path(self, node_id: str, handle: str | None) -> str | None:
        """Path of a Source field, or None when the endpoint is not a Source field."""
        node = self._dag.node(node_id)
        if not isinstance(node, SourceNode):
            return None
        return _field_path(node.fields, handle)

    def _traced_input(self, node_id: str) -> str | None:
        edge = self._dag.first_incoming(node_id)
        if edge is None:
            return None
        return self._source_path(edge.source, edge.source_handle)

    def _rule_sources(self, node_id: str) -> dict[str, str | None]:
        """Rule id -> traced Source path for a multi-input node."""
        sources: dict[str, str | None] = {}
        for edge in self._dag.incoming(node_id):
            if edge.target_handle:
                sources[edge.target_handle] = self._source_path(edge.source, edge.source_handle)
        return sources


def _field_path(fields: tuple[SchemaField, ...], field_id: str | None) -> str | None:
    location = locate_field(fields, field_id)
    return location.path if location else None


def _split_descriptor(node: SplitterNode) -> dict[str, Any]:
    descriptor: dict[str, Any] = {"delimiter": node.delimiter, "index": node.index}
    if node.max_split is not None:
        descriptor["maxSplit"] = node.max_split
    return descriptor


def string_transform_descriptor(node: StringTransformNode) -> dict[str, Any]:
    """Runtime descriptor of a string operation.

    Substring uses the flat ``{type: "substring", start, end}`` shape the
    runtime expects; every other operation is ``{type: "string", ...}``.
    """
    if node.operation == StringOperation.SUBSTRING:
        return {
            "type": "substring",
            "start": node.parameters.get("start", 0),
            "end": node.parameters.get("end"),
        }
    return {"type": "string", "operation": node.operation, "parameters": dict(node.parameters)}


def compile_execution_config(
    graph: MappingGraph,
    name: str | None = None,
    *,
    settings: ExportSettings | None = None,
) -> ExecutionConfig:
    """Compile ``graph`` into an Execution Config document.

    Args:
        graph: Snapshot to compile (not modified)
        name: Mapping name; defaults to ``settings.default_name``
        settings: Export defaults (version string, author)
    """
    settings = settings or ExportSettings()
    compiler = ExecutionCompiler(graph)
    rules = compiler.rules()
    arrays = compiler.arrays({rule.to for rule in rules})

    slog.debug("execution_config_compiled", rules=len(rules), arrays=len(arrays))

    return ExecutionConfig(
        name=name or settings.default_name,
        version=settings.execution_version,
        mappings=rules,
        arrays=arrays,
        metadata={
            "description": EXECUTION_DESCRIPTION,
            "tags": list(EXECUTION_TAGS),
            "author": settings.author,
        },
    )


def compile_mappings(nodes: Iterable[Node], edges: Iterable[Edge], name: str | None = None) -> ExecutionConfig:
    """``compile(nodes, edges) -> {mappings}`` over loose node and edge lists."""
    return compile_execution_config(MappingGraph(nodes=tuple(nodes), edges=tuple(edges)), name)
