"""Value Resolution Engine.

Computes the resolved value of every Target field from one graph snapshot.
Resolution is a pure function of its input: the snapshot is never mutated,
a new snapshot is returned, and nothing is remembered between calls. The
caller owns sequencing (apply nodes, apply edges, then resolve).

Resolution never raises on graph content. Dead edges are skipped, cycles
are cut by a re-entry guard, and anything surprising is recorded as a
ResolutionWarning on the result.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date
from types import MappingProxyType
from typing import Any, assert_never

from mapwright.contracts.enums import DuplicateEdgePolicy, FieldType
from mapwright.contracts.errors import ResolutionWarning
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
from mapwright.contracts.schema import FieldLocation, locate_field
from mapwright.core.config import ResolutionSettings
from mapwright.core.dag import MappingDAG
from mapwright.core.logging import get_logger
from mapwright.core.paths import get_path_value
from mapwright.core.sentinels import MISSING
from mapwright.engine.conditions import evaluate_condition
from mapwright.engine.transforms import (
    apply_coalesce,
    apply_concat,
    apply_conversion,
    apply_string_operation,
)

slog = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Resolved snapshot plus the non-fatal findings made on the way."""

    graph: MappingGraph
    warnings: tuple[ResolutionWarning, ...] = ()

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self.graph.nodes

    def warning_codes(self) -> list[str]:
        return [warning.code for warning in self.warnings]


@dataclass(slots=True)
class _FieldWrite:
    location: FieldLocation
    values: list[Any] = field(default_factory=list)
    edge_ids: list[str] = field(default_factory=list)


class ValueResolver:
    """Resolves one snapshot. Create a new instance per call."""

    def __init__(self, graph: MappingGraph, settings: ResolutionSettings | None = None) -> None:
        settings = settings or ResolutionSettings()
        self._dag = MappingDAG(graph)
        self._policy = settings.duplicate_edge_policy
        self._today = settings.today or date.today()
        self._warnings: list[ResolutionWarning] = []

    def run(self) -> ResolutionResult:
        snapshot = self._dag.snapshot

        cycle = self._dag.find_cycle()
        if cycle:
            slog.warning("cycle_detected", node_ids=cycle)
            self._warn("cycle_detected", f"Graph contains a cycle: {' -> '.join(cycle)}", cycle)

        for edge in self._dag.dangling_edges():
            slog.debug("dead_edge_skipped", edge_id=edge.id, source=edge.source, target=edge.target)
            self._warn(
                "dead_reference",
                f"Edge {edge.id} references a missing node ({edge.source} -> {edge.target})",
                [edge.id],
            )

        nodes = tuple(self._resolve_target(node) if isinstance(node, TargetNode) else node for node in snapshot.nodes)
        return ResolutionResult(graph=snapshot.with_nodes(nodes), warnings=tuple(self._warnings))

    def _warn(self, code: str, message: str, node_ids: Iterable[str] = ()) -> None:
        self._warnings.append(ResolutionWarning(code=code, message=message, node_ids=tuple(node_ids)))

    # Targets

    def _resolve_target(self, target: TargetNode) -> TargetNode:
        incoming = self._dag.incoming(target.id)
        if not incoming:
            return replace(target, field_values=MappingProxyType({}), output_data=({},))

        writes: dict[str, _FieldWrite] = {}
        for edge in incoming:
            location = locate_field(target.fields, edge.target_handle)
            if location is None:
                slog.debug("dead_target_handle", edge_id=edge.id, target=target.id, handle=edge.target_handle)
                continue
            value = self._output_of(edge.source, edge.source_handle, frozenset({target.id}))
            if value is MISSING:
                slog.debug("unresolved_upstream", edge_id=edge.id, source=edge.source, handle=edge.source_handle)
                continue
            write = writes.setdefault(location.field.id, _FieldWrite(location))
            write.values.append(value)
            write.edge_ids.append(edge.id)

        field_values: dict[str, Any] = {}
        output: dict[str, Any] = {}
        for field_id, write in writes.items():
            if len(write.values) > 1:
                slog.warning(
                    "duplicate_target_edge",
                    target=target.id,
                    field_id=field_id,
                    edge_ids=write.edge_ids,
                    policy=str(self._policy),
                )
                self._warn(
                    "duplicate_target_edge",
                    f"{len(write.values)} edges write field '{field_id}' of target '{target.id}'",
                    [target.id, *write.edge_ids],
                )
                if self._policy is DuplicateEdgePolicy.REJECT:
                    continue
            value = write.values[-1]
            field_values[field_id] = value
            _place(output, write.location, value)

        return replace(target, field_values=MappingProxyType(field_values), output_data=(output,))

    # Upstream values

    def _output_of(self, node_id: str, handle: str | None, visiting: frozenset[str]) -> Any:
        """Value produced by ``node_id`` on ``handle``, or MISSING."""
        node = self._dag.node(node_id)
        if node is None:
            return MISSING
        if node_id in visiting:
            # Re-entered on its own evaluation path: the cycle is cut here.
            return MISSING
        visiting = visiting | {node_id}

        match node:
            case SourceNode():
                return self._source_value(node, handle)
            case TargetNode():
                return MISSING
            case StaticValueNode():
                slot = node.slot(handle)
                return MISSING if slot is None else slot.value
            case IfThenNode():
                value = self._single_input(node.id, visiting)
                matched = evaluate_condition(value, node.operator, node.compare_value, today=self._today)
                return node.then_value if matched else node.else_value
            case CoalesceNode():
                return apply_coalesce(node.rules, self._rule_inputs(node.id, visiting), node.default_value)
            case ConcatNode():
                return apply_concat(node.rules, self._rule_inputs(node.id, visiting), node.delimiter)
            case ConversionMappingNode():
                return apply_conversion(node.mappings, self._single_input(node.id, visiting))
            case SplitterNode():
                # Display pass-through; splitting happens in the execution runtime.
                return self._single_input(node.id, visiting)
            case StringTransformNode():
                value = self._single_input(node.id, visiting)
                return apply_string_operation(value, node.operation, node.parameters)
            case _:
                assert_never(node)

    def _source_value(self, node: SourceNode, handle: str | None) -> Any:
        location = locate_field(node.fields, handle)
        if location is None:
            return MISSING
        if location.field.has_manual_value:
            return location.field.value
        if not node.sample_data:
            return None
        row = node.sample_data[0]
        value = get_path_value(row, location.path)
        if value is MISSING:
            # Field ids are usually paths too; try the id before giving up.
            value = get_path_value(row, location.field.id, default=None)
        return value

    def _single_input(self, node_id: str, visiting: frozenset[str]) -> Any:
        edge = self._dag.first_incoming(node_id)
        if edge is None:
            return MISSING
        return self._output_of(edge.source, edge.source_handle, visiting)

    def _rule_inputs(self, node_id: str, visiting: frozenset[str]) -> dict[str, Any]:
        inputs: dict[str, Any] = {}
        for edge in self._dag.incoming(node_id):
            if edge.target_handle:
                inputs[edge.target_handle] = self._output_of(edge.source, edge.source_handle, visiting)
        return inputs


def _place(output: dict[str, Any], location: FieldLocation, value: Any) -> None:
    """Write ``value`` into a nested row along the field's ancestor chain.

    Array ancestors become a single-element list (row 0).
    """
    container = output
    for ancestor in location.ancestors:
        if ancestor.type is FieldType.ARRAY:
            rows = container.get(ancestor.name)
            if not isinstance(rows, list) or not rows or not isinstance(rows[0], dict):
                rows = [{}]
                container[ancestor.name] = rows
            container = rows[0]
        else:
            child = container.get(ancestor.name)
            if not isinstance(child, dict):
                child = {}
                container[ancestor.name] = child
            container = child
    container[location.field.name] = value


def resolve_graph(
    graph: MappingGraph,
    *,
    settings: ResolutionSettings | None = None,
    today: date | None = None,
) -> ResolutionResult:
    """Resolve every Target of ``graph`` and report warnings.

    Args:
        graph: Snapshot to resolve (not modified)
        settings: Duplicate-edge policy and date override
        today: Reference date for date-relative conditions; overrides settings
    """
    settings = settings or ResolutionSettings()
    if today is not None:
        settings = settings.model_copy(update={"today": today})
    return ValueResolver(graph, settings).run()


def resolve(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    *,
    settings: ResolutionSettings | None = None,
    today: date | None = None,
) -> tuple[Node, ...]:
    """``resolve(nodes, edges) -> nodes'``: the same nodes with Targets resolved."""
    graph = MappingGraph(nodes=tuple(nodes), edges=tuple(edges))
    return resolve_graph(graph, settings=settings, today=today).nodes


def field_values_by_target(nodes: Iterable[Node]) -> dict[str, Mapping[str, Any]]:
    """Target id -> resolved field values, for reporting."""
    return {node.id: node.field_values for node in nodes if isinstance(node, TargetNode)}
