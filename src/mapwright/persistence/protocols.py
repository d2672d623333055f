"""MappingStore protocol for the persistence collaborator.

The core never implements storage. It hands a store both documents and a
version string, and reads Visual Config documents back.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from mapwright.contracts.documents import VisualConfigDocument
from mapwright.contracts.errors import MapwrightError
from mapwright.contracts.rules import ExecutionConfig


class MappingNotFoundError(MapwrightError, LookupError):
    """Raised by a store when no mapping has the requested id."""


@dataclass(frozen=True, slots=True)
class StoredMapping:
    """One saved version of a mapping as returned by a store."""

    id: str
    name: str
    version: str
    visual_config: VisualConfigDocument
    execution_config: ExecutionConfig
    is_active: bool = False


@runtime_checkable
class MappingStore(Protocol):
    """Protocol for mapping persistence backends.

    A name groups successive versions; at most one version per name is
    active.
    """

    def save(
        self,
        name: str,
        visual_config: VisualConfigDocument,
        execution_config: ExecutionConfig,
        version: str,
    ) -> StoredMapping:
        """Store a new version.

        Returns:
            The stored record, including its store-assigned id
        """
        ...

    def load(self, mapping_id: str) -> VisualConfigDocument:
        """Visual Config document of a stored version.

        Raises:
            MappingNotFoundError: If no mapping has this id
        """
        ...

    def list_mappings(self, name: str | None = None) -> list[StoredMapping]:
        """Stored versions, oldest first, optionally for one name."""
        ...

    def activate_version(self, mapping_id: str) -> StoredMapping:
        """Make one version the active one for its name.

        Raises:
            MappingNotFoundError: If no mapping has this id
        """
        ...

    def latest_version(self, name: str) -> str | None:
        """Version string of the newest save for ``name``, None if never saved."""
        ...
