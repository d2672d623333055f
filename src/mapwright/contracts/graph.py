"""Node kinds, edges, and the mapping graph snapshot.

Nodes form a closed tagged union (``Node``). Each class carries its
NodeKind as a ClassVar; consumers dispatch with ``match`` and finish with
``assert_never`` so adding a kind fails type checking until every consumer
handles it.

All types are frozen. The host that edits a graph builds new snapshots with
``dataclasses.replace``; the engine never mutates what it is given.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, ClassVar, TypeAlias

from mapwright.contracts.enums import IfThenOperator, NodeKind, StringOperation
from mapwright.contracts.schema import SchemaField


@dataclass(frozen=True, slots=True)
class Position:
    """Canvas layout position. Never used by resolution or compilation."""

    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True, slots=True, kw_only=True)
class BaseNode:
    """Fields shared by every node kind."""

    kind: ClassVar[NodeKind]

    id: str
    label: str = ""
    position: Position = field(default_factory=Position)


@dataclass(frozen=True, slots=True, kw_only=True)
class SourceNode(BaseNode):
    """Source schema with sample data rows (row 0 drives live resolution)."""

    kind: ClassVar[NodeKind] = NodeKind.SOURCE

    fields: tuple[SchemaField, ...] = ()
    sample_data: tuple[dict[str, Any], ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class TargetNode(BaseNode):
    """Target schema plus the last resolved values.

    Attributes:
        field_values: Flat map of target field id -> resolved value
        output_data: Denormalized nested output row(s)
        expanded_fields: Field ids shown expanded on the canvas
    """

    kind: ClassVar[NodeKind] = NodeKind.TARGET

    fields: tuple[SchemaField, ...] = ()
    field_values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    output_data: tuple[dict[str, Any], ...] = ()
    expanded_fields: frozenset[str] = frozenset()


@dataclass(frozen=True, slots=True)
class StaticSlot:
    """One literal output of a StaticValue node, addressed by id."""

    id: str
    value: Any = ""
    label: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class StaticValueNode(BaseNode):
    kind: ClassVar[NodeKind] = NodeKind.STATIC_VALUE

    values: tuple[StaticSlot, ...] = ()

    def slot(self, slot_id: str | None) -> StaticSlot | None:
        for slot in self.values:
            if slot.id == slot_id:
                return slot
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class IfThenNode(BaseNode):
    """Conditional: compares its single input with compare_value.

    operator is kept as the raw string so documents with operators this
    version does not know still round-trip; unknown operators evaluate false.
    """

    kind: ClassVar[NodeKind] = NodeKind.IF_THEN

    operator: str = IfThenOperator.EQUALS.value
    compare_value: str = ""
    then_value: str = ""
    else_value: str = ""


@dataclass(frozen=True, slots=True, kw_only=True)
class SplitterNode(BaseNode):
    kind: ClassVar[NodeKind] = NodeKind.SPLITTER

    delimiter: str = ","
    index: int = 0
    max_split: int | None = None


@dataclass(frozen=True, slots=True)
class PriorityRule:
    """Ordered input slot of a Coalesce or Concat node.

    The rule id doubles as the node's target handle for the matching input.
    """

    id: str
    priority: int
    output_value: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "priority": self.priority, "outputValue": self.output_value}


@dataclass(frozen=True, slots=True, kw_only=True)
class CoalesceNode(BaseNode):
    kind: ClassVar[NodeKind] = NodeKind.COALESCE

    rules: tuple[PriorityRule, ...] = ()
    default_value: str = ""

    def sorted_rules(self) -> list[PriorityRule]:
        return sorted(self.rules, key=lambda rule: rule.priority)


@dataclass(frozen=True, slots=True, kw_only=True)
class ConcatNode(BaseNode):
    kind: ClassVar[NodeKind] = NodeKind.CONCAT

    rules: tuple[PriorityRule, ...] = ()
    delimiter: str = ","

    def sorted_rules(self) -> list[PriorityRule]:
        return sorted(self.rules, key=lambda rule: rule.priority)


@dataclass(frozen=True, slots=True)
class ConversionEntry:
    """One row of a lookup table: input ``from_value`` becomes ``to_value``."""

    from_value: str
    to_value: str

    def to_dict(self) -> dict[str, str]:
        return {"from": self.from_value, "to": self.to_value}


@dataclass(frozen=True, slots=True, kw_only=True)
class ConversionMappingNode(BaseNode):
    kind: ClassVar[NodeKind] = NodeKind.CONVERSION_MAPPING

    # Fixed fallback for lookups that miss the table.
    NOT_MAPPED: ClassVar[str] = "NotMapped"

    mappings: tuple[ConversionEntry, ...] = ()

    def as_table(self) -> dict[str, str]:
        """Lookup table as a dict; later duplicate ``from`` entries win."""
        return {entry.from_value: entry.to_value for entry in self.mappings}


@dataclass(frozen=True, slots=True, kw_only=True)
class StringTransformNode(BaseNode):
    """String operation on a single input.

    parameters by operation:
        prefix: {"prefix": str}
        suffix: {"suffix": str}
        substring: {"start": int, "end": int | None}
        replace: {"pattern": regex, "replacement": str}
    """

    kind: ClassVar[NodeKind] = NodeKind.STRING_TRANSFORM

    operation: str = StringOperation.UPPERCASE.value
    parameters: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


TransformNode: TypeAlias = (
    StaticValueNode | IfThenNode | SplitterNode | CoalesceNode | ConcatNode | ConversionMappingNode | StringTransformNode
)
Node: TypeAlias = SourceNode | TargetNode | TransformNode


@dataclass(frozen=True, slots=True)
class Edge:
    """Directed connection between two node handles.

    Handles address a field (Source/Target), a slot (StaticValue), or a rule
    (Coalesce/Concat) on the endpoint node. A handle that addresses nothing
    makes the edge dead; dead edges are ignored, never fatal.
    """

    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None


@dataclass(frozen=True, slots=True)
class MappingGraph:
    """Immutable snapshot of a mapping canvas: node set plus edge set."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    def node(self, node_id: str | None) -> Node | None:
        for candidate in self.nodes:
            if candidate.id == node_id:
                return candidate
        return None

    def targets(self) -> Iterator[TargetNode]:
        for candidate in self.nodes:
            if isinstance(candidate, TargetNode):
                yield candidate

    def sources(self) -> Iterator[SourceNode]:
        for candidate in self.nodes:
            if isinstance(candidate, SourceNode):
                yield candidate

    def with_nodes(self, nodes: tuple[Node, ...] | list[Node]) -> MappingGraph:
        return MappingGraph(nodes=tuple(nodes), edges=self.edges)
