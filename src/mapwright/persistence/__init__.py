"""Persistence collaborator interface and save orchestration."""

from mapwright.persistence.protocols import MappingNotFoundError, MappingStore, StoredMapping
from mapwright.persistence.service import save_mapping
from mapwright.persistence.versioning import FIRST_VERSION, next_version

__all__ = [
    "FIRST_VERSION",
    "MappingNotFoundError",
    "MappingStore",
    "StoredMapping",
    "next_version",
    "save_mapping",
]
