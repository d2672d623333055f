"""Exceptions and warning records for mapping graphs.

Resolution and compilation never raise on graph content: graphs are edited
incrementally and are routinely half-wired. Only parsing a persisted
document, or an explicit strict validation, fails fast.
"""

from __future__ import annotations

from dataclasses import dataclass


class MapwrightError(Exception):
    """Base class for all mapwright errors."""


class DocumentFormatError(MapwrightError, ValueError):
    """Raised when a persisted document is structurally malformed.

    Import aborts without producing a partial graph.

    Attributes:
        document_kind: "visual" or "execution"
        details: Human-readable list of problems found
    """

    def __init__(self, document_kind: str, details: list[str]) -> None:
        self.document_kind = document_kind
        self.details = details
        joined = "; ".join(details) if details else "unknown problem"
        super().__init__(f"Malformed {document_kind} config document: {joined}")


class GraphValidationError(MapwrightError, ValueError):
    """Raised by strict graph validation (cycles, unknown edge endpoints)."""


@dataclass(frozen=True, slots=True)
class ResolutionWarning:
    """Non-fatal finding recorded while resolving a graph.

    Unlike GraphValidationError, warnings never stop resolution. They tell
    the caller why a target field ended up empty or overwritten.
    """

    code: str
    message: str
    node_ids: tuple[str, ...] = ()
