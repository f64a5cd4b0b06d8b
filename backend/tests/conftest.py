"""Shared builders for canvas snapshots."""

import pytest

from agent_builder.models.graph import Edge, ProjectConfig, parse_node


@pytest.fixture
def make_node():
    """Build a node in the editor's canvas shape: ``{id, type, data: {config}}``."""

    def _make(node_id: str, kind: str, **config):
        return parse_node({
            "id": node_id,
            "type": kind,
            "position": {"x": 0, "y": 0},
            "data": {"config": config},
        })

    return _make


@pytest.fixture
def make_edge():
    def _make(source: str, target: str):
        return Edge(id=f"e-{source}-{target}", source=source, target=target)

    return _make


@pytest.fixture
def support_agent_project(make_node):
    """One complete agent and nothing else."""
    agent = make_node(
        "agent-1",
        "agent",
        id="supportAgent",
        name="Support",
        instructions="Help users",
        model={"provider": "openai", "name": "gpt-4"},
    )
    return ProjectConfig(id="support", name="Support Desk", nodes=[agent])


@pytest.fixture
def workflow_project(make_node, make_edge):
    """Two chained steps with valid execute code."""
    code = "async ({ inputData }) => { return inputData; }"
    step_a = make_node("n-a", "step", id="stepA", description="First", executeCode=code)
    step_b = make_node("n-b", "step", id="stepB", description="Second", executeCode=code)
    return ProjectConfig(
        id="flow",
        name="Flow",
        nodes=[step_a, step_b],
        edges=[make_edge("n-a", "n-b")],
    )
