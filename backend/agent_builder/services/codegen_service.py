"""Service for generating Mastra projects from canvas graphs."""

import json
import logging
import re

from ..core.config import settings
from ..models.codegen import GeneratedFile, GenerationResult, SkippedNode
from ..models.graph import Node, ProjectConfig
from .agent_generator import AgentCodeGenerator, provider_package, resolve_model
from .codegen_utils import entity_var_name, module_name
from .instance_generator import (
    MastraInstanceGenerator,
    collect_skipped,
    complete_entities,
    has_workflow,
    project_display_name,
    runtime_packages,
)
from .node_validators import validate_project
from .step_generator import StepCodeGenerator
from .tool_generator import ToolCodeGenerator
from .workflow_generator import WorkflowCodeGenerator

logger = logging.getLogger(__name__)

DEV_PACKAGES = ("mastra", "typescript", "tsx", "@types/node")


class CodegenService:
    """Service for code generation."""

    def __init__(self, workflow_id: str | None = None):
        self.workflow_id = workflow_id or settings.workflow_id
        self.tool_generator = ToolCodeGenerator()
        self.step_generator = StepCodeGenerator()
        self.workflow_generator = WorkflowCodeGenerator()
        self.instance_generator = MastraInstanceGenerator()

    def generate(self, project: ProjectConfig) -> GenerationResult:
        """Generate the full file set for a project.

        Validation runs alongside and is reported in the result; it never
        stops generation.

        Args:
            project: Canvas snapshot to compile

        Returns:
            Ordered files plus validation issues and skipped nodes
        """
        issues = validate_project(project)
        skipped = collect_skipped(project)
        files = self.generate_files(project, skipped)

        logger.info(
            "Generated %d files for project %s (%d issues, %d skipped nodes)",
            len(files),
            project.id or project.name or "<unsaved>",
            len(issues),
            len(skipped),
        )
        for node in skipped:
            logger.info("Skipped %s", node.describe())

        return GenerationResult(files=files, issues=issues, skipped=skipped)

    def generate_files(self, project: ProjectConfig, skipped: list[SkippedNode] | None = None) -> list[GeneratedFile]:
        """Ordered ``{path, content}`` list for the project."""
        if skipped is None:
            skipped = collect_skipped(project)

        agents = complete_entities(project, "agent")
        tools = complete_entities(project, "tool")
        steps = complete_entities(project, "step")
        workflow_ids = [self.workflow_id] if has_workflow(project) else []

        files: list[GeneratedFile] = []

        agent_generator = AgentCodeGenerator(default_model=project.settings.default_model)
        available_tools = {node.declared_id for node in tools}
        available_agents = {node.declared_id for node in agents}
        for node in agents:
            content = agent_generator.generate(
                node.config,
                available_tools=available_tools,
                available_workflows=set(workflow_ids),
                available_agents=available_agents,
            )
            files.append(GeneratedFile(path=f"agents/{module_name(node.declared_id)}.ts", content=content))
        if agents:
            files.append(self._barrel("agents", [node.declared_id for node in agents], "Agent"))

        for node in tools:
            content = self.tool_generator.generate(node.config)
            files.append(GeneratedFile(path=f"tools/{module_name(node.declared_id)}.ts", content=content))
        if tools:
            files.append(self._barrel("tools", [node.declared_id for node in tools], "Tool"))

        for node in steps:
            content = self.step_generator.generate(node.config)
            files.append(GeneratedFile(path=f"steps/{module_name(node.declared_id)}.ts", content=content))
        if steps:
            files.append(self._barrel("steps", [node.declared_id for node in steps], "Step"))

        if workflow_ids:
            content = self.workflow_generator.generate(
                project.nodes,
                project.edges,
                self.workflow_id,
                available_steps={node.declared_id for node in steps},
            )
            files.append(GeneratedFile(path=f"workflows/{module_name(self.workflow_id)}.ts", content=content))
            files.append(self._barrel("workflows", workflow_ids, "Workflow"))

        files.append(GeneratedFile(path="index.ts", content=self.instance_generator.generate(project, self.workflow_id)))

        if skipped:
            files.append(GeneratedFile(path="_NOTES.md", content=self._notes(skipped)))

        files.append(GeneratedFile(path="package.json", content=self._package_json(project, agents)))
        files.append(GeneratedFile(path="README.md", content=self._readme(project, files)))

        return files

    def _barrel(self, directory: str, ids: list[str], role: str) -> GeneratedFile:
        lines = [f"export {{ {entity_var_name(entity_id, role)} }} from './{module_name(entity_id)}';" for entity_id in ids]
        return GeneratedFile(path=f"{directory}/index.ts", content="\n".join(lines) + "\n")

    def _notes(self, skipped: list[SkippedNode]) -> str:
        entries = "\n".join(f"{index}. {node.describe()}" for index, node in enumerate(skipped, start=1))
        return f"""# Code Generation Notes

## Skipped Nodes

The following nodes were not included in the generated code because they are missing required configuration
or their generated name clashes with an earlier node:

{entries}

**To include these nodes:**
1. Select each node on the canvas
2. Configure the required fields in the right panel, or give it a distinct ID
3. Generate the code again

---
_This file is for informational purposes only and should not be included in your final project._
"""

    def _package_name(self, project: ProjectConfig) -> str:
        name = re.sub(r"[^a-z0-9._-]+", "-", project_display_name(project).lower()).strip("-.")
        return name or "mastra-app"

    def _package_json(self, project: ProjectConfig, agents: list[Node]) -> str:
        packages = {"@mastra/core", "zod"}
        for node in agents:
            package = provider_package(resolve_model(node.config, project.settings.default_model))
            if package:
                packages.add(package)
            if node.config.memory is not None and node.config.memory.type != "none":
                packages.add("@mastra/memory")
        packages.update(runtime_packages(project))

        versions = settings.package_versions
        package_json = {
            "name": self._package_name(project),
            "version": "1.0.0",
            "description": project.settings.description or project.description or "Generated by Agent Builder",
            "type": "module",
            "private": True,
            "scripts": {
                "dev": "mastra dev",
                "build": "mastra build",
            },
            "dependencies": {package: versions.get(package, "latest") for package in sorted(packages)},
            "devDependencies": {package: versions.get(package, "latest") for package in sorted(DEV_PACKAGES)},
        }
        return json.dumps(package_json, indent=2) + "\n"

    def _readme(self, project: ProjectConfig, files: list[GeneratedFile]) -> str:
        name = project_display_name(project)
        description = project.settings.description or project.description or "AI application built with Mastra"
        tree = "\n".join(f"- `{generated.path}`" for generated in files if generated.path != "_NOTES.md")
        return f"""# {name}

{description}

This project was generated by Agent Builder from a visual canvas.

## Files

{tree}
- `README.md`

## Installation

```bash
npm install
```

Create a `.env` file with the API keys of the model providers you use
(`OPENAI_API_KEY`, `ANTHROPIC_API_KEY`, `GOOGLE_GENERATIVE_AI_API_KEY`).

## Development

```bash
npm run dev
```

## Build

```bash
npm run build
```
"""


codegen_service = CodegenService()
