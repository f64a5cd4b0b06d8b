from agent_builder.models.graph import ProjectConfig, ProjectSettings
from agent_builder.services.instance_generator import (
    MastraInstanceGenerator,
    collect_skipped,
    complete_entities,
    runtime_packages,
)


def test_support_agent_is_imported_and_registered(support_agent_project):
    code = MastraInstanceGenerator().generate(support_agent_project)

    assert code == (
        "import { Mastra } from '@mastra/core/mastra';\n"
        "import { supportAgentAgent } from './agents';\n"
        "\n"
        "export const mastra = new Mastra({\n"
        "  agents: {\n"
        "    supportAgent: supportAgentAgent,\n"
        "  },\n"
        "});\n"
    )


def test_incomplete_entities_are_left_out(make_node):
    project = ProjectConfig(nodes=[
        make_node("t1", "tool", id="weather"),
        make_node("t2", "tool", id="search", description="Search"),
        make_node("a1", "agent", id="nameless"),
        make_node("s1", "step"),
    ])

    code = MastraInstanceGenerator().generate(project)
    skipped = collect_skipped(project)

    assert "weatherTool" not in code
    assert "'./agents'" not in code
    assert "    search: searchTool," in code
    assert [(node.node_id, node.missing) for node in skipped] == [
        ("t1", ["description"]),
        ("a1", ["name"]),
        ("s1", ["id"]),
    ]
    assert skipped[0].describe() == "Tool node `t1` (id `weather`) (missing: description)"


def test_duplicate_ids_keep_the_first_node(make_node):
    project = ProjectConfig(nodes=[
        make_node("b", "agent", id="bot", name="First"),
        make_node("x", "agent", id="other", name="Other"),
        make_node("c", "agent", id="bot", name="Second"),
    ])

    agents = complete_entities(project, "agent")
    code = MastraInstanceGenerator().generate(project)

    assert [node.id for node in agents] == ["b", "x"]
    assert "import { botAgent, otherAgent } from './agents';" in code
    assert code.count("bot: botAgent,") == 1


def test_workflow_is_registered_when_workflow_nodes_exist(make_node):
    project = ProjectConfig(nodes=[make_node("s", "step", id="only")])

    code = MastraInstanceGenerator().generate(project, workflow_id="main")

    assert "import { mainWorkflow } from './workflows';" in code
    assert "    main: mainWorkflow," in code


def test_default_settings_emit_no_runtime_wiring(support_agent_project):
    project = support_agent_project.model_copy(update={
        "settings": ProjectSettings(
            storage={"type": "memory"},
            logger={"type": "console"},
            telemetry={"enabled": False},
        ),
    })

    code = MastraInstanceGenerator().generate(project)

    assert "storage" not in code
    assert "logger" not in code
    assert "telemetry" not in code


def test_non_default_settings_are_wired(make_node):
    project = ProjectConfig.model_validate({
        "name": "Ops Bot",
        "nodes": [],
        "settings": {
            "storage": {"type": "libsql"},
            "logger": {"type": "pino", "config": {"level": "debug"}},
            "telemetry": {"enabled": True, "provider": "otlp"},
        },
    })

    code = MastraInstanceGenerator().generate(project)

    assert "import { LibSQLStore } from '@mastra/libsql';" in code
    assert "import { PinoLogger } from '@mastra/loggers';" in code
    assert '  storage: new LibSQLStore({"url": "file:./mastra.db"}),' in code
    assert '  logger: new PinoLogger({"level": "debug", "name": "Mastra"}),' in code
    assert "    serviceName: 'Ops Bot',\n    enabled: true,\n    export: { type: 'otlp' },\n" in code
    assert runtime_packages(project) == ["@mastra/libsql", "@mastra/loggers"]


def test_clashing_ids_keep_the_first_node_and_report_the_rest(make_node):
    project = ProjectConfig(nodes=[
        make_node("a", "agent", id="help-desk", name="First"),
        make_node("b", "agent", id="help_desk", name="Second"),
    ])

    agents = complete_entities(project, "agent")
    skipped = collect_skipped(project)
    code = MastraInstanceGenerator().generate(project)

    assert [node.id for node in agents] == ["a"]
    assert [(node.node_id, node.clashes_with, node.missing) for node in skipped] == [("b", "help-desk", [])]
    assert skipped[0].describe() == "Agent node `b` (id `help_desk`) (generated name clashes with `help-desk`)"
    assert code.count("helpDeskAgent,") == 1
    assert "help_desk" not in code
