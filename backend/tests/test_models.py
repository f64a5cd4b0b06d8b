import pytest
from pydantic import ValidationError

from agent_builder.models.graph import (
    LoopNode,
    MapNode,
    ProjectConfig,
    RouterNode,
    SleepUntilNode,
    ToolNode,
    WaitForEventNode,
    normalize_node,
    parse_node,
)


@pytest.mark.parametrize(
    "raw_type,expected",
    [
        ("conditional", RouterNode),
        ("router", RouterNode),
        ("sleepuntil", SleepUntilNode),
        ("waitforevent", WaitForEventNode),
    ],
)
def test_legacy_kind_spellings(raw_type, expected):
    node = parse_node({"id": "n", "type": raw_type, "data": {"config": {}}})

    assert isinstance(node, expected)


def test_normalize_accepts_both_shapes():
    canvas = {"id": "n", "type": "tool", "position": {"x": 5, "y": 6}, "data": {"config": {"id": "t"}}}
    flat = {"id": "n", "kind": "tool", "config": {"id": "t"}}

    assert normalize_node(canvas) == {"id": "n", "kind": "tool", "position": {"x": 5, "y": 6}, "config": {"id": "t"}}
    assert parse_node(flat).declared_id == "t"


def test_unknown_kind_is_rejected():
    with pytest.raises(ValidationError):
        parse_node({"id": "n", "type": "teleport", "data": {"config": {}}})


def test_camel_and_snake_keys_are_equivalent():
    camel = parse_node({"id": "t", "kind": "tool", "config": {"id": "x", "executeCode": "f", "requireApproval": True}})
    snake = parse_node({"id": "t", "kind": "tool", "config": {"id": "x", "execute_code": "f", "require_approval": True}})

    assert isinstance(camel, ToolNode)
    assert camel == snake
    assert camel.to_wire()["config"] == {"id": "x", "description": "", "executeCode": "f", "requireApproval": True}


def test_loop_type_aliases():
    node = parse_node({"id": "l", "type": "loop", "data": {"config": {"type": "until", "maxIterations": 3}}})

    assert isinstance(node, LoopNode)
    assert node.config.loop_type == "until"
    assert node.to_wire()["config"]["type"] == "until"
    assert parse_node(node.to_wire()) == node


def test_router_accepts_branches_key():
    node = parse_node({"id": "r", "kind": "router", "config": {"branches": [{"name": "a", "condition": "x"}]}})

    assert [route.name for route in node.config.routes] == ["a"]


def test_map_fields_from_mapping_form():
    node = parse_node({"id": "m", "kind": "map", "config": {"fields": {
        "total": {"source": "step", "step": "sum", "path": "value"},
        "unit": {"source": "constant", "value": "kg"},
    }}})

    assert isinstance(node, MapNode)
    total, unit = node.config.fields
    assert (total.target_field, total.source_type, total.source_step, total.source_path) == ("total", "step", "sum", "value")
    assert (unit.target_field, unit.source_type, unit.constant_value) == ("unit", "constant", "kg")


def test_declared_id_is_none_for_blank_or_missing_ids():
    assert parse_node({"id": "s", "kind": "step", "config": {"id": ""}}).declared_id is None
    assert parse_node({"id": "l", "kind": "loop", "config": {}}).declared_id is None


def test_project_round_trips_through_wire_format(workflow_project):
    assert ProjectConfig.model_validate(workflow_project.to_wire()) == workflow_project
    assert workflow_project.node_by_id("n-b").declared_id == "stepB"
    assert workflow_project.node_by_id("missing") is None
