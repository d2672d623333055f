"""Tests for saving mappings through a MappingStore."""

import pytest

from mapwright.contracts.graph import MappingGraph
from mapwright.contracts.rules import ExecutionConfig
from mapwright.core.config import ExportSettings, MapwrightSettings
from mapwright.persistence import MappingNotFoundError, MappingStore, save_mapping
from mapwright.serialization import import_visual_config
from mapwright.testing import InMemoryMappingStore


@pytest.fixture
def store() -> InMemoryMappingStore:
    return InMemoryMappingStore()


class TestInMemoryStore:
    def test_satisfies_protocol(self, store: InMemoryMappingStore) -> None:
        assert isinstance(store, MappingStore)

    def test_load_unknown_id(self, store: InMemoryMappingStore) -> None:
        with pytest.raises(MappingNotFoundError):
            store.load("nope@v1.00")

    def test_activate_unknown_id(self, store: InMemoryMappingStore) -> None:
        with pytest.raises(MappingNotFoundError):
            store.activate_version("nope@v1.00")

    def test_not_found_is_a_lookup_error(self) -> None:
        assert issubclass(MappingNotFoundError, LookupError)


class TestSaveMapping:
    def test_first_save(self, store: InMemoryMappingStore, direct_graph: MappingGraph) -> None:
        stored = save_mapping(store, "orders", direct_graph)

        assert stored.version == "v1.00"
        assert stored.id == "orders@v1.00"
        assert stored.visual_config.name == "orders"
        assert isinstance(stored.execution_config, ExecutionConfig)
        assert len(stored.execution_config.mappings) == 4

    def test_versions_increment_per_name(self, store: InMemoryMappingStore, direct_graph: MappingGraph) -> None:
        save_mapping(store, "orders", direct_graph)
        save_mapping(store, "orders", direct_graph)
        save_mapping(store, "invoices", direct_graph)

        assert [m.version for m in store.list_mappings("orders")] == ["v1.00", "v1.01"]
        assert [m.version for m in store.list_mappings("invoices")] == ["v1.00"]
        assert len(store.list_mappings()) == 3

    def test_stored_document_is_resolved(self, store: InMemoryMappingStore, direct_graph: MappingGraph) -> None:
        stored = save_mapping(store, "orders", direct_graph)

        (target,) = stored.visual_config.nodes.targets
        assert target.field_values is not None
        assert target.field_values["full_name"] == "Ada Lovelace"

    def test_stored_document_reloads(self, store: InMemoryMappingStore, direct_graph: MappingGraph) -> None:
        stored = save_mapping(store, "orders", direct_graph)

        graph = import_visual_config(store.load(stored.id))

        assert [node.id for node in graph.nodes] == ["src", "tgt"]
        assert graph.edges == direct_graph.edges

    def test_settings_flow_into_documents(self, store: InMemoryMappingStore, direct_graph: MappingGraph) -> None:
        settings = MapwrightSettings(export=ExportSettings(author="ops", execution_version="3.1.0"))

        stored = save_mapping(store, "orders", direct_graph, settings=settings)

        assert stored.execution_config.version == "3.1.0"
        assert stored.execution_config.metadata["author"] == "ops"  # type: ignore[index]
        assert stored.visual_config.metadata["author"] == "ops"  # type: ignore[index]


class TestActivation:
    def test_only_one_active_version_per_name(self, store: InMemoryMappingStore, direct_graph: MappingGraph) -> None:
        first = save_mapping(store, "orders", direct_graph)
        second = save_mapping(store, "orders", direct_graph)
        other = save_mapping(store, "invoices", direct_graph)
        store.activate_version(other.id)

        store.activate_version(first.id)
        activated = store.activate_version(second.id)

        assert activated.is_active
        active = {m.id for m in store.list_mappings() if m.is_active}
        assert active == {second.id, other.id}
