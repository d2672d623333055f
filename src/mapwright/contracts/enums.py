"""Closed vocabularies shared across the mapping graph, engine, and documents.

Every node kind the canvas can hold is listed in NodeKind. The engine and the
compiler match on it exhaustively; a kind missing from either is a bug, not a
runtime fallback.
"""

from enum import StrEnum


class FieldType(StrEnum):
    """Type of a schema field.

    OBJECT and ARRAY fields carry children (possibly empty); all other
    types are leaves.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"

    @property
    def is_container(self) -> bool:
        return self in (FieldType.OBJECT, FieldType.ARRAY)


class NodeKind(StrEnum):
    """Kind of node in the mapping graph."""

    SOURCE = "source"
    TARGET = "target"
    STATIC_VALUE = "static_value"
    IF_THEN = "if_then"
    SPLITTER = "splitter"
    COALESCE = "coalesce"
    CONCAT = "concat"
    CONVERSION_MAPPING = "conversion_mapping"
    STRING_TRANSFORM = "string_transform"


class IfThenOperator(StrEnum):
    """Comparison applied by an IfThen node to its input.

    Values:
        EQUALS / NOT_EQUALS: trimmed string comparison
        GREATER / LESS / GREATER_EQUAL / LESS_EQUAL: numeric comparison;
            a non-numeric side makes the condition false
        DATE_*: date-relative comparisons against today or compareValue
    """

    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER = ">"
    LESS = "<"
    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="
    DATE_BEFORE_TODAY = "date_before_today"
    DATE_AFTER_TODAY = "date_after_today"
    DATE_BEFORE = "date_before"
    DATE_AFTER = "date_after"


class StringOperation(StrEnum):
    """Operation applied by a StringTransform node."""

    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    TRIM = "trim"
    PREFIX = "prefix"
    SUFFIX = "suffix"
    SUBSTRING = "substring"
    REPLACE = "replace"


class RuleType(StrEnum):
    """Type of a compiled execution rule."""

    DIRECT = "direct"
    STATIC = "static"
    IF_THEN = "ifThen"
    MAP = "map"
    SPLIT = "split"
    TRANSFORM = "transform"


class ConnectionType(StrEnum):
    """Connection classification stored in Visual Config documents."""

    DIRECT = "direct"
    TRANSFORM = "transform"
    MAPPING = "mapping"


class StepType(StrEnum):
    """Type of a documentation-only execution step."""

    DIRECT_MAPPING = "direct_mapping"
    TRANSFORM = "transform"
    CONVERSION_MAPPING = "conversion_mapping"


class DuplicateEdgePolicy(StrEnum):
    """How resolution treats several edges writing the same target field.

    WARN keeps the last-processed value and records a warning.
    REJECT writes nothing for the field and records a warning.
    """

    WARN = "warn"
    REJECT = "reject"
