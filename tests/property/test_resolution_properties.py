"""Property-based tests for resolution, compilation and round-tripping.

Rows are generated with simple identifier keys and scalar values, wired
field-for-field into a target of the same shape.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st

from mapwright.contracts.graph import MappingGraph, Position, TargetNode
from mapwright.contracts.schema import locate_field
from mapwright.core.paths import get_path_value
from mapwright.engine import compile_execution_config, resolve_graph
from mapwright.serialization import dumps, export_visual_config, loads
from mapwright.testing import make_edge, make_fields, make_graph, make_source, make_target

# =============================================================================
# Strategies
# =============================================================================

_MAX_SAFE_INT = 2**53 - 1

field_names = st.from_regex(r"[a-z][a-z0-9_]{0,8}", fullmatch=True)

scalars = (
    st.none()
    | st.booleans()
    | st.integers(min_value=-_MAX_SAFE_INT, max_value=_MAX_SAFE_INT)
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(alphabet=st.characters(blacklist_categories=("Cs",)), max_size=30)
)

rows = st.dictionaries(keys=field_names, values=scalars, min_size=1, max_size=8)

positions = st.tuples(
    st.floats(min_value=-5000, max_value=5000, allow_nan=False),
    st.floats(min_value=-5000, max_value=5000, allow_nan=False),
)


def wired_graph(row: dict[str, Any]) -> MappingGraph:
    names = list(row)
    source = make_source("src", rows=[row])
    target = make_target("tgt", make_fields(*names))
    edges = [make_edge("src", name, "tgt", name, edge_id=f"e-{name}") for name in names]
    return make_graph([source, target], edges)


def target_of(graph: MappingGraph) -> TargetNode:
    node = graph.node("tgt")
    assert isinstance(node, TargetNode)
    return node


# =============================================================================
# Resolution
# =============================================================================


class TestResolutionProperties:
    @given(row=rows)
    @settings(max_examples=100)
    def test_direct_values_equal_sample_values(self, row: dict[str, Any]) -> None:
        """Property: a direct wire copies the sample value unchanged, falsy values included."""
        target = target_of(resolve_graph(wired_graph(row)).graph)

        assert dict(target.field_values) == row

    @given(row=rows)
    @settings(max_examples=100)
    def test_resolution_is_idempotent(self, row: dict[str, Any]) -> None:
        """Property: resolve(resolve(g)) yields the same target values as resolve(g)."""
        once = resolve_graph(wired_graph(row)).graph
        twice = resolve_graph(once).graph

        assert dict(target_of(twice).field_values) == dict(target_of(once).field_values)
        assert target_of(twice).output_data == target_of(once).output_data

    @given(row=rows)
    @settings(max_examples=100)
    def test_output_rows_agree_with_field_values(self, row: dict[str, Any]) -> None:
        """Property: every field value sits at its field path in output row 0."""
        target = target_of(resolve_graph(wired_graph(row)).graph)

        for field_id, value in target.field_values.items():
            location = locate_field(target.fields, field_id)
            assert location is not None
            assert get_path_value(target.output_data[0], location.path) == value


# =============================================================================
# Compilation
# =============================================================================


class TestCompilationProperties:
    @given(row=rows, moves=st.lists(positions, min_size=2, max_size=2))
    @settings(max_examples=100)
    def test_layout_never_changes_compiled_bytes(self, row: dict[str, Any], moves: list[tuple[float, float]]) -> None:
        """Property: canvas positions are not part of the Execution Config."""
        graph = wired_graph(row)
        moved = graph.with_nodes(
            [replace(node, position=Position(*move)) for node, move in zip(graph.nodes, moves, strict=True)]
        )

        assert compile_execution_config(moved, "p").to_json() == compile_execution_config(graph, "p").to_json()

    @given(row=rows)
    @settings(max_examples=100)
    def test_one_direct_rule_per_wired_field(self, row: dict[str, Any]) -> None:
        config = compile_execution_config(wired_graph(row), "p")

        assert [(rule.from_, rule.to) for rule in config.mappings] == [(name, name) for name in row]
        assert config.fingerprint() == compile_execution_config(wired_graph(row), "p").fingerprint()


# =============================================================================
# Round trip
# =============================================================================


class TestRoundTripProperties:
    @given(row=rows)
    @settings(max_examples=50)
    def test_export_import_preserves_behavior(self, row: dict[str, Any]) -> None:
        """Property: resolving an imported export gives the original values."""
        resolved = resolve_graph(wired_graph(row)).graph
        text = dumps(export_visual_config(resolved, "p", mapping_id="m", created_at="t"))

        reimported = resolve_graph(loads(text)).graph

        assert dict(target_of(reimported).field_values) == dict(target_of(resolved).field_values)
        assert compile_execution_config(loads(text), "p").to_json() == compile_execution_config(resolved, "p").to_json()
