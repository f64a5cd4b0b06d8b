from agent_builder.services.workflow_generator import WorkflowCodeGenerator

CODE = "async ({ inputData }) => inputData"


def chain(nodes, edges):
    return "\n".join(WorkflowCodeGenerator().build_chain(nodes, edges))


def test_steps_chain_in_edge_order(make_node, make_edge):
    """The entry node is the one without incoming edges, not the first in the list."""
    nodes = [
        make_node("n-b", "step", id="stepB", executeCode=CODE),
        make_node("n-a", "step", id="stepA", executeCode=CODE),
    ]

    output = chain(nodes, [make_edge("n-a", "n-b")])

    assert ".then(stepAStep)" in output
    assert output.index(".then(stepAStep)") < output.index(".then(stepBStep)")


def test_pure_cycle_falls_back_to_first_node_and_terminates(make_node, make_edge):
    nodes = [make_node("a", "step", id="a"), make_node("b", "step", id="b")]
    edges = [make_edge("a", "b"), make_edge("b", "a")]

    lines = WorkflowCodeGenerator().build_chain(nodes, edges)

    assert lines == [
        "  .then(aStep)",
        "  .then(bStep)",
        "  // Stopped at a: node already visited",
    ]


def test_fan_out_is_annotated_and_first_edge_followed(make_node, make_edge):
    nodes = [
        make_node("a", "step", id="a"),
        make_node("b", "step", id="b"),
        make_node("c", "step", id="c"),
    ]
    edges = [make_edge("a", "b"), make_edge("a", "c")]

    output = chain(nodes, edges)

    assert "// NOTE: a has 2 outgoing edges; only the first is followed" in output
    assert ".then(bStep)" in output
    assert ".then(cStep)" not in output


def test_control_flow_calls(make_node, make_edge):
    nodes = [
        make_node("1", "loop", type="until", condition="context.done === true", maxIterations=5),
        make_node("2", "foreach", concurrency=4),
        make_node("3", "sleep", duration=250),
        make_node("4", "sleepuntil", date="2030-01-01T00:00:00Z"),
        make_node("5", "waitforevent", event="approved", timeout=60000),
        make_node("6", "map", fields=[
            {"targetField": "total", "sourceType": "step", "sourceStep": "sum", "sourcePath": "result.value"},
            {"targetField": "currency", "sourceType": "constant", "constantValue": "EUR"},
            {"targetField": "stamp", "sourceType": "function", "functionCode": "(context) => Date.now()"},
        ]),
    ]
    edges = [make_edge(str(i), str(i + 1)) for i in range(1, 6)]

    assert WorkflowCodeGenerator().build_chain(nodes, edges) == [
        "  .until({",
        "    condition: (context) => context.done === true,",
        "    maxIterations: 5,",
        "  })",
        "  .foreach({",
        "    concurrency: 4,",
        "  })",
        "  .sleep(250)",
        "  .sleepUntil(new Date('2030-01-01T00:00:00Z'))",
        "  .waitForEvent({",
        "    event: 'approved',",
        "    timeout: 60000,",
        "  })",
        "  .map({",
        "    total: (context) => context?.sum?.result?.value,",
        "    currency: 'EUR',",
        "    stamp: (context) => Date.now(),",
        "  })",
    ]


def test_parallel_and_branch_reference_defined_steps(make_node, make_edge):
    nodes = [
        make_node("p", "parallel", steps=["left", "right", "ghost"]),
        make_node("r", "conditional", branches=[
            {"name": "big", "condition": "context.size > 10", "stepId": "left"},
            {"condition": "true"},
        ]),
        make_node("left-node", "step", id="left"),
        make_node("right-node", "step", id="right"),
    ]

    lines = WorkflowCodeGenerator().build_chain(nodes, [make_edge("p", "r")])

    assert lines[0] == "  // Skipped parallel node p: step ghost is not defined"
    assert lines[1] == "  .parallel([leftStep, rightStep])"
    assert lines[2:] == [
        "  .branch({",
        "    'big': {",
        "      condition: (context) => context.size > 10,",
        "      step: leftStep,",
        "    },",
        "    'route1': {",
        "      condition: (context) => true,",
        "    },",
        "  })",
    ]


def test_dangerous_conditions_are_replaced(make_node):
    node = make_node("l", "loop", condition="process.env.LOOP === '1'")

    lines = WorkflowCodeGenerator().build_chain([node], [])

    assert lines[0].startswith("    // Condition of loop node l rejected: contains potentially dangerous pattern")
    assert "    condition: (context) => false," in lines
    assert not any("process.env.LOOP" in line for line in lines)


def test_step_without_declared_id_is_skipped(make_node, make_edge):
    nodes = [make_node("anon", "step"), make_node("named", "step", id="named")]

    lines = WorkflowCodeGenerator().build_chain(nodes, [make_edge("anon", "named")])

    assert lines == [
        "  // Skipped step node anon: step (no id) is not defined",
        "  .then(namedStep)",
    ]


def test_non_workflow_nodes_are_ignored(make_node, make_edge):
    nodes = [
        make_node("agent", "agent", id="helper", name="Helper"),
        make_node("s", "step", id="only"),
    ]

    assert WorkflowCodeGenerator().build_chain(nodes, [make_edge("agent", "s")]) == ["  .then(onlyStep)"]


def test_generate_workflow_module(make_node, make_edge):
    nodes = [make_node("a", "step", id="first"), make_node("b", "sleep", duration=10)]

    code = WorkflowCodeGenerator().generate(nodes, [make_edge("a", "b")], "main")

    assert code == (
        "import { createWorkflow } from '@mastra/core/workflows';\n"
        "import { z } from 'zod';\n"
        "import { firstStep } from '../steps';\n"
        "\n"
        "export const mainWorkflow = createWorkflow({\n"
        "  id: 'main',\n"
        "  inputSchema: z.object({}),\n"
        "  outputSchema: z.object({}),\n"
        "})\n"
        "  .then(firstStep)\n"
        "  .sleep(10)\n"
        "  .commit();\n"
    )


def test_empty_chain_still_commits():
    code = WorkflowCodeGenerator().generate([], [], "main")

    assert "  // No workflow steps connected\n  .commit();\n" in code
    assert "../steps" not in code


def test_tools_between_steps_do_not_break_the_chain(make_node, make_edge):
    nodes = [
        make_node("a", "step", id="first"),
        make_node("t", "tool", id="lookup", description="Looks things up"),
        make_node("h", "agent", id="helper", name="Helper"),
        make_node("b", "step", id="second"),
    ]
    edges = [make_edge("a", "t"), make_edge("t", "h"), make_edge("h", "b")]

    assert WorkflowCodeGenerator().build_chain(nodes, edges) == [
        "  .then(firstStep)",
        "  .then(secondStep)",
    ]


def test_condition_must_be_a_single_expression(make_node):
    node = make_node("l", "loop", condition="x) || (y")

    lines = WorkflowCodeGenerator().build_chain([node], [])

    assert lines[0] == "    // Condition of loop node l rejected: invalid JavaScript syntax: Expected a single expression"
    assert "    condition: (context) => false," in lines
    assert not any("x) || (y" in line for line in lines)


def test_clashing_step_ids_keep_only_the_first(make_node, make_edge):
    nodes = [make_node("a", "step", id="my-step"), make_node("b", "step", id="my_step")]

    lines = WorkflowCodeGenerator().build_chain(nodes, [make_edge("a", "b")])

    assert lines == [
        "  .then(myStepStep)",
        "  // Skipped step node b: step my_step is not defined",
    ]
