"""Tests for the per-edge execution step projection."""

from mapwright.contracts.graph import MappingGraph
from mapwright.engine.steps import build_execution_steps
from mapwright.testing import (
    make_conversion,
    make_edge,
    make_field,
    make_fields,
    make_graph,
    make_if_then,
    make_source,
    make_string_transform,
    make_target,
)


class TestBuildExecutionSteps:
    def test_direct_mappings(self, direct_graph: MappingGraph) -> None:
        steps = build_execution_steps(direct_graph)

        assert [step["stepId"] for step in steps] == ["step_1", "step_2", "step_3", "step_4"]
        assert {step["type"] for step in steps} == {"direct_mapping"}
        assert steps[0]["source"] == {
            "nodeId": "src",
            "fieldId": "customer.name",
            "fieldName": "name",
            "value": "Ada Lovelace",
        }
        assert steps[0]["target"] == {"nodeId": "tgt", "fieldId": "full_name", "fieldName": "full_name"}
        assert steps[3]["source"]["value"] == 2

    def test_conversion_step(self) -> None:
        source = make_source("src", rows=[{"status": "A"}])
        table = make_conversion("conv", {"A": "Active"})
        target = make_target("tgt", make_fields("state"))
        graph = make_graph(
            [source, table, target],
            [make_edge("src", "status", "conv"), make_edge("conv", "output", "tgt", "state")],
        )

        (step,) = build_execution_steps(graph)

        assert step["type"] == "conversion_mapping"
        assert step["conversion"] == {"rules": [{"from": "A", "to": "Active"}]}
        assert step["target"]["fieldId"] == "state"

    def test_transform_step(self) -> None:
        source = make_source("src", rows=[{"amount": "15"}])
        condition = make_if_then("cond", ">", "10", "BIG", "SMALL")
        target = make_target("tgt", make_fields("size"))
        graph = make_graph(
            [source, condition, target],
            [make_edge("src", "amount", "cond"), make_edge("cond", "output", "tgt", "size")],
        )

        (step,) = build_execution_steps(graph)

        assert step["type"] == "transform"
        assert step["transform"]["type"] == "if_then"
        assert step["transform"]["parameters"]["thenValue"] == "BIG"

    def test_manual_value_reported(self) -> None:
        source = make_source("src", [make_field("code", value="X-1")], [{"code": "ignored"}])
        target = make_target("tgt", make_fields("code"))
        graph = make_graph([source, target], [make_edge("src", "code", "tgt", "code")])

        (step,) = build_execution_steps(graph)

        assert step["source"]["value"] == "X-1"

    def test_transform_without_target_has_no_step(self) -> None:
        source = make_source("src", rows=[{"amount": "15"}])
        condition = make_if_then("cond")
        graph = make_graph([source, condition], [make_edge("src", "amount", "cond")])

        assert build_execution_steps(graph) == []

    def test_transform_step_skips_non_target_outputs(self) -> None:
        source = make_source("src", rows=[{"amount": "15"}])
        condition = make_if_then("cond", ">", "10", "BIG", "SMALL")
        upper = make_string_transform("upper", "uppercase")
        target = make_target("tgt", make_fields("size"))
        graph = make_graph(
            [source, condition, upper, target],
            [
                make_edge("src", "amount", "cond"),
                make_edge("cond", "output", "upper"),
                make_edge("cond", "output", "tgt", "size"),
            ],
        )

        (step,) = build_execution_steps(graph)

        assert step["target"] == {"nodeId": "tgt", "fieldId": "size", "fieldName": "size"}
