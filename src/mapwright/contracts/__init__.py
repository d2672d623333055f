"""Shared contracts for mapping graphs.

Leaf package: the types here are imported by every other subsystem and
import nothing outside ``mapwright.contracts`` at module load.
"""

from mapwright.contracts.documents import (
    ConnectionRecord,
    MappingNodeRecord,
    SourceRecord,
    TargetRecord,
    TransformRecord,
    VisualConfigDocument,
)
from mapwright.contracts.enums import (
    ConnectionType,
    DuplicateEdgePolicy,
    FieldType,
    IfThenOperator,
    NodeKind,
    RuleType,
    StepType,
    StringOperation,
)
from mapwright.contracts.errors import (
    DocumentFormatError,
    GraphValidationError,
    MapwrightError,
    ResolutionWarning,
)
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
    TransformNode,
)
from mapwright.contracts.rules import ArrayMapping, ExecutionConfig, ExecutionRule, IfClause
from mapwright.contracts.schema import (
    FieldLocation,
    SchemaField,
    ancestor_ids,
    build_field_path,
    find_field,
    iter_fields,
    locate_field,
)

__all__ = [
    "ArrayMapping",
    "CoalesceNode",
    "ConcatNode",
    "ConnectionRecord",
    "ConnectionType",
    "ConversionEntry",
    "ConversionMappingNode",
    "DocumentFormatError",
    "DuplicateEdgePolicy",
    "Edge",
    "ExecutionConfig",
    "ExecutionRule",
    "FieldLocation",
    "FieldType",
    "GraphValidationError",
    "IfClause",
    "IfThenNode",
    "IfThenOperator",
    "MappingGraph",
    "MappingNodeRecord",
    "MapwrightError",
    "Node",
    "NodeKind",
    "Position",
    "PriorityRule",
    "ResolutionWarning",
    "RuleType",
    "SchemaField",
    "SourceNode",
    "SourceRecord",
    "SplitterNode",
    "StaticSlot",
    "StaticValueNode",
    "StepType",
    "StringOperation",
    "StringTransformNode",
    "TargetNode",
    "TargetRecord",
    "TransformNode",
    "TransformRecord",
    "VisualConfigDocument",
    "ancestor_ids",
    "build_field_path",
    "find_field",
    "iter_fields",
    "locate_field",
]
