"""Assemble the root ``index.ts`` that registers every generated entity."""

import json
from typing import Any

from ..core.config import settings
from ..models.codegen import SkippedNode
from ..models.graph import (
    WORKFLOW_KINDS,
    AgentNode,
    LoggerSettings,
    Node,
    ProjectConfig,
    StepNode,
    StorageSettings,
    TelemetrySettings,
    ToolNode,
)
from .codegen_utils import ENTITY_ROLES, clashing_ids, comment_text, entity_var_name, js_key, quote


# Storage type -> (npm package, class, default constructor options)
STORAGE_ADAPTERS = {
    "libsql": ("@mastra/libsql", "LibSQLStore", {"url": "file:./mastra.db"}),
    "postgres": ("@mastra/pg", "PostgresStore", {}),
    "redis": ("@mastra/upstash", "UpstashStore", {}),
}

LOGGER_PACKAGE = "@mastra/loggers"


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def missing_fields(node: Node) -> list[str]:
    """Required fields an entity node lacks; empty for complete or non-entity nodes."""
    config = node.config
    if isinstance(node, AgentNode):
        required = ("id", "name")
    elif isinstance(node, ToolNode):
        required = ("id", "description")
    elif isinstance(node, StepNode):
        required = ("id",)
    else:
        return []
    return [field for field in required if _blank(getattr(config, field))]


def _first_complete(project: ProjectConfig, kind: str) -> list[Node]:
    seen: set[str] = set()
    nodes = []
    for node in project.nodes:
        if node.kind != kind or missing_fields(node):
            continue
        if node.declared_id in seen:
            continue
        seen.add(node.declared_id)
        nodes.append(node)
    return nodes


def _clashes(nodes: list[Node], kind: str) -> dict[str, str]:
    return clashing_ids((node.declared_id for node in nodes), ENTITY_ROLES[kind])


def complete_entities(project: ProjectConfig, kind: str) -> list[Node]:
    """Complete nodes of one entity kind, in canvas order.

    The first node per declared id wins, and a node whose id clashes with an
    earlier one once converted to a variable or file name is dropped.
    """
    nodes = _first_complete(project, kind)
    clashes = _clashes(nodes, kind)
    return [node for node in nodes if node.declared_id not in clashes]


def collect_skipped(project: ProjectConfig) -> list[SkippedNode]:
    """Entity nodes left out of generation: incomplete ones and those whose names clash."""
    clashes = {kind: _clashes(_first_complete(project, kind), kind) for kind in ENTITY_ROLES}
    skipped = []
    for node in project.nodes:
        missing = missing_fields(node)
        if missing:
            skipped.append(
                SkippedNode(node_id=node.id, kind=node.kind, declared_id=node.declared_id, missing=missing)
            )
        elif node.declared_id in clashes.get(node.kind, {}):
            skipped.append(
                SkippedNode(
                    node_id=node.id,
                    kind=node.kind,
                    declared_id=node.declared_id,
                    clashes_with=clashes[node.kind][node.declared_id],
                )
            )
    return skipped


def has_workflow(project: ProjectConfig) -> bool:
    return any(node.kind in WORKFLOW_KINDS for node in project.nodes)


def _js_object(options: dict[str, Any]) -> str:
    return json.dumps(options, sort_keys=True)


def _custom_storage(storage: StorageSettings | None) -> StorageSettings | None:
    if storage is None or storage.type == "memory":
        return None
    return storage


def _custom_logger(logger_settings: LoggerSettings | None) -> LoggerSettings | None:
    if logger_settings is None or logger_settings.type == "console":
        return None
    return logger_settings


def _enabled_telemetry(telemetry: TelemetrySettings | None) -> TelemetrySettings | None:
    if telemetry is None or not telemetry.enabled:
        return None
    return telemetry


def runtime_packages(project: ProjectConfig) -> list[str]:
    """npm packages required by the storage and logger wiring."""
    packages = []
    storage = _custom_storage(project.settings.storage)
    if storage is not None and storage.type in STORAGE_ADAPTERS:
        packages.append(STORAGE_ADAPTERS[storage.type][0])
    logger_settings = _custom_logger(project.settings.logger)
    if logger_settings is not None and logger_settings.type == "pino":
        packages.append(LOGGER_PACKAGE)
    return packages


def project_display_name(project: ProjectConfig) -> str:
    return project.settings.project_name or project.name or "mastra-app"


class MastraInstanceGenerator:
    """Generate ``index.ts`` holding the ``new Mastra({...})`` instance."""

    def generate(self, project: ProjectConfig, workflow_id: str | None = None) -> str:
        """Render the root module.

        Only complete entities are imported and registered, under their
        declared ids. Storage, logger and telemetry wiring appears only when
        it differs from the defaults.
        """
        workflow_id = workflow_id or settings.workflow_id
        agent_ids = [node.declared_id for node in complete_entities(project, "agent")]
        tool_ids = [node.declared_id for node in complete_entities(project, "tool")]
        workflow_ids = [workflow_id] if has_workflow(project) else []

        storage = _custom_storage(project.settings.storage)
        logger_settings = _custom_logger(project.settings.logger)
        telemetry = _enabled_telemetry(project.settings.telemetry)

        lines = ["import { Mastra } from '@mastra/core/mastra';"]
        if storage is not None and storage.type in STORAGE_ADAPTERS:
            package, class_name, _ = STORAGE_ADAPTERS[storage.type]
            lines.append(f"import {{ {class_name} }} from '{package}';")
        if logger_settings is not None and logger_settings.type == "pino":
            lines.append(f"import {{ PinoLogger }} from '{LOGGER_PACKAGE}';")
        for ids, role, directory in (
            (agent_ids, "Agent", "agents"),
            (tool_ids, "Tool", "tools"),
            (workflow_ids, "Workflow", "workflows"),
        ):
            if ids:
                names = ", ".join(entity_var_name(entity_id, role) for entity_id in ids)
                lines.append(f"import {{ {names} }} from './{directory}';")
        lines.append("")

        lines.append("export const mastra = new Mastra({")
        lines.extend(self._registry("agents", agent_ids, "Agent"))
        lines.extend(self._registry("tools", tool_ids, "Tool"))
        lines.extend(self._registry("workflows", workflow_ids, "Workflow"))
        if storage is not None:
            lines.extend(self._storage(storage))
        if logger_settings is not None:
            lines.extend(self._logger(logger_settings))
        if telemetry is not None:
            lines.extend(self._telemetry(telemetry, project_display_name(project)))
        lines.append("});")

        return "\n".join(lines) + "\n"

    def _registry(self, key: str, ids: list[str], role: str) -> list[str]:
        if not ids:
            return []
        lines = [f"  {key}: {{"]
        lines.extend(f"    {js_key(entity_id)}: {entity_var_name(entity_id, role)}," for entity_id in ids)
        lines.append("  },")
        return lines

    def _storage(self, storage: StorageSettings) -> list[str]:
        if storage.type not in STORAGE_ADAPTERS:
            return [f"  // {comment_text(f'Unsupported storage type: {storage.type}')}"]
        _, class_name, defaults = STORAGE_ADAPTERS[storage.type]
        options = {**defaults, **(storage.config or {})}
        return [f"  storage: new {class_name}({_js_object(options)}),"]

    def _logger(self, logger_settings: LoggerSettings) -> list[str]:
        if logger_settings.type == "pino":
            options = {"name": "Mastra", "level": "info", **(logger_settings.config or {})}
            return [f"  logger: new PinoLogger({_js_object(options)}),"]
        return ["  // Custom logger selected: pass the logger instance here"]

    def _telemetry(self, telemetry: TelemetrySettings, service_name: str) -> list[str]:
        lines = [
            "  telemetry: {",
            f"    serviceName: {quote(service_name)},",
            "    enabled: true,",
        ]
        if telemetry.provider:
            lines.append(f"    export: {{ type: {quote(telemetry.provider)} }},")
        lines.append("  },")
        return lines


instance_generator = MastraInstanceGenerator()
