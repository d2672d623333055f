"""Save orchestration: resolve, export both documents, bump the version."""

from __future__ import annotations

from mapwright.contracts.graph import MappingGraph
from mapwright.core.config import MapwrightSettings
from mapwright.core.logging import get_logger
from mapwright.engine.compiler import compile_execution_config
from mapwright.engine.resolver import resolve_graph
from mapwright.persistence.protocols import MappingStore, StoredMapping
from mapwright.persistence.versioning import next_version
from mapwright.serialization.exporter import export_visual_config

slog = get_logger(__name__)


def save_mapping(
    store: MappingStore,
    name: str,
    graph: MappingGraph,
    *,
    settings: MapwrightSettings | None = None,
) -> StoredMapping:
    """Persist ``graph`` under ``name`` as the next version.

    Targets are resolved first so the stored document carries current
    field values.
    """
    settings = settings or MapwrightSettings()
    resolved = resolve_graph(graph, settings=settings.resolution).graph
    visual = export_visual_config(resolved, name, settings=settings.export)
    execution = compile_execution_config(resolved, name, settings=settings.export)
    version = next_version(store.latest_version(name))

    stored = store.save(name, visual, execution, version)
    slog.info(
        "mapping_saved",
        mapping_id=stored.id,
        name=name,
        version=version,
        rules=len(execution.mappings),
        fingerprint=execution.fingerprint(),
    )
    return stored
