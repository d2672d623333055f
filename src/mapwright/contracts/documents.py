"""Visual Config document models.

The Visual Config is the layout-preserving, round-trippable persisted form
of a mapping graph. These Pydantic models only enforce the document's
structure (Tier-3 data from files and storage). Per-kind node semantics are
applied by ``mapwright.serialization.importer``.

Records tolerate unknown keys (``extra="allow"``) so documents written by
newer versions, or carrying UI-only state, still load.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mapwright.contracts.enums import ConnectionType
from mapwright.contracts.errors import DocumentFormatError
from mapwright.contracts.rules import describe_validation_error


class _Record(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PositionRecord(_Record):
    x: float = 0.0
    y: float = 0.0


class FieldRecord(_Record):
    """One persisted schema field; ``children`` nest recursively.

    Only ``id`` is required. An unknown ``type`` string is accepted here and
    degrades to string when the SchemaField is built.
    """

    id: str
    name: str | None = None
    type: str = "string"
    children: list[FieldRecord] | None = None
    group_by: str | None = Field(default=None, alias="groupBy")
    is_attribute: bool | None = Field(default=None, alias="isAttribute")
    value: Any = None


class SchemaRecord(_Record):
    fields: list[FieldRecord] = Field(default_factory=list)

    def field_dicts(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self.fields]


class ArrayConfigRecord(_Record):
    """groupBy for one Target array field, matched by field name on import."""

    target_array: str = Field(alias="targetArray")
    group_by: str = Field(alias="groupBy")


class SourceRecord(_Record):
    id: str
    type: str = "source"
    label: str = ""
    position: PositionRecord = Field(default_factory=PositionRecord)
    schema_: SchemaRecord = Field(default_factory=SchemaRecord, alias="schema")
    sample_data: list[Any] = Field(default_factory=list, alias="sampleData")


class TargetRecord(_Record):
    id: str
    type: str = "target"
    label: str = ""
    position: PositionRecord = Field(default_factory=PositionRecord)
    schema_: SchemaRecord = Field(default_factory=SchemaRecord, alias="schema")
    output_data: list[Any] = Field(default_factory=list, alias="outputData")
    field_values: dict[str, Any] | None = Field(default=None, alias="fieldValues")
    array_configs: list[ArrayConfigRecord] = Field(default_factory=list, alias="arrayConfigs")


class TransformRecord(_Record):
    """Any transform-like node; ``type`` selects the kind.

    Kind-specific settings live in ``nodeData`` (preferred on import) and are
    mirrored in ``config.parameters`` for readers that only know that shape.
    """

    id: str
    type: str
    label: str = ""
    position: PositionRecord = Field(default_factory=PositionRecord)
    transform_type: str = Field(default="", alias="transformType")
    config: dict[str, Any] = Field(default_factory=dict)
    node_data: dict[str, Any] | None = Field(default=None, alias="nodeData")


class ConversionRecord(_Record):
    from_: Any = Field(default="", alias="from")
    to: Any = ""


class MappingNodeRecord(_Record):
    id: str
    type: str = "mapping"
    label: str = ""
    position: PositionRecord = Field(default_factory=PositionRecord)
    mappings: list[ConversionRecord] = Field(default_factory=list)


class ConnectionRecord(_Record):
    id: str
    source_node_id: str = Field(alias="sourceNodeId")
    target_node_id: str = Field(alias="targetNodeId")
    source_handle: str = Field(default="", alias="sourceHandle")
    target_handle: str = Field(default="", alias="targetHandle")
    type: str = ConnectionType.DIRECT.value


class NodesSection(_Record):
    sources: list[SourceRecord] = Field(default_factory=list)
    targets: list[TargetRecord] = Field(default_factory=list)
    transforms: list[TransformRecord] = Field(default_factory=list)
    mappings: list[MappingNodeRecord] = Field(default_factory=list)


class ExecutionSection(_Record):
    """Documentation-only projection; never re-consumed on import."""

    steps: list[dict[str, Any]] = Field(default_factory=list)


class VisualConfigDocument(_Record):
    """``{id, name, version, createdAt, nodes, connections, execution, metadata?}``.

    ``nodes`` and ``connections`` are required; their absence is the
    structural failure that aborts an import.
    """

    id: str = ""
    name: str = "Untitled Mapping"
    version: str = "1.0.0"
    created_at: str = Field(default="", alias="createdAt")
    nodes: NodesSection
    connections: list[ConnectionRecord]
    execution: ExecutionSection = Field(default_factory=ExecutionSection)
    metadata: dict[str, Any] | None = None

    @classmethod
    def parse(cls, data: Any) -> VisualConfigDocument:
        """Validate a decoded document.

        Raises:
            DocumentFormatError: If required sections are missing or malformed
        """
        if not isinstance(data, dict):
            raise DocumentFormatError("visual", [f"expected an object, got {type(data).__name__}"])
        missing = [key for key in ("nodes", "connections") if key not in data]
        if missing:
            raise DocumentFormatError("visual", [f"missing required section '{key}'" for key in missing])
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DocumentFormatError("visual", describe_validation_error(e)) from e
