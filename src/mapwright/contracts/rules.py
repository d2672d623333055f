"""Execution Config: the flattened rule list consumed by an external runtime.

Rules are a derived projection of a mapping graph, never a system of record.
The wire shape uses the runtime's camelCase keys (``from``, ``if``,
``else``, ``defaultValue``); Python attributes use trailing underscores.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from mapwright.contracts.enums import RuleType
from mapwright.contracts.errors import DocumentFormatError


class IfClause(BaseModel):
    """Condition of an ifThen rule."""

    model_config = ConfigDict(frozen=True)

    operator: str
    value: str = ""


class ExecutionRule(BaseModel):
    """One mapping rule for a single target field.

    ``from_`` is null only for static rules and for rules whose input could
    not be traced back to a Source field.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: str | None = Field(default=None, alias="from")
    to: str
    type: RuleType
    value: Any = None
    if_: IfClause | None = Field(default=None, alias="if")
    then: str | None = None
    else_: str | None = Field(default=None, alias="else")
    map: dict[str, str] | None = None
    default_value: str | None = Field(default=None, alias="defaultValue")
    split: dict[str, Any] | None = None
    transform: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        # "from" is always present on the wire, even when null.
        return {"from": self.from_, **data}


class ArrayMapping(BaseModel):
    """Grouping instructions for one Target array field."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target: str = Field(description="Path of the target array field")
    group_by: str = Field(alias="groupBy", description="Key rows are grouped by")
    fields: list[str] = Field(default_factory=list, description="Mapped descendant paths")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ExecutionConfig(BaseModel):
    """Execution Config document: ``{name, version, mappings, arrays?, metadata?}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    version: str = "1.0.0"
    mappings: list[ExecutionRule] = Field(default_factory=list)
    arrays: list[ArrayMapping] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "mappings": [rule.to_dict() for rule in self.mappings],
        }
        if self.arrays:
            data["arrays"] = [array.to_dict() for array in self.arrays]
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data

    def to_json(self) -> str:
        """Canonical (RFC 8785) JSON text; identical graphs give identical bytes."""
        from mapwright.core.canonical import canonical_json

        return canonical_json(self.to_dict())

    def fingerprint(self) -> str:
        from mapwright.core.canonical import stable_hash

        return stable_hash(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> ExecutionConfig:
        """Parse a persisted Execution Config.

        Raises:
            DocumentFormatError: If the document is structurally malformed
        """
        if not isinstance(data, dict):
            raise DocumentFormatError("execution", [f"expected an object, got {type(data).__name__}"])
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DocumentFormatError("execution", describe_validation_error(e)) from e


def describe_validation_error(error: ValidationError) -> list[str]:
    return [f"{'.'.join(str(part) for part in item['loc']) or '<root>'}: {item['msg']}" for item in error.errors()]
