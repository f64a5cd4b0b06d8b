"""Per-node required-field checks for the entity kinds."""

from typing import Sequence

from ..models.codegen import Severity, ValidationIssue
from ..models.graph import AgentNode, Node, ProjectConfig, StepNode, ToolNode
from .code_safety import validate_execute_code
from .graph_validators import validate_workflow_graph


def _blank(value: str | None) -> bool:
    return not value or not value.strip()


def _issue(node: Node, field: str, message: str, severity: Severity) -> ValidationIssue:
    return ValidationIssue(node_id=node.id, field=field, message=message, severity=severity)


def _check_execute_code(node: Node, code: str | None) -> list[ValidationIssue]:
    if _blank(code):
        return [_issue(node, "executeCode", "Execute function is required", "error")]

    result = validate_execute_code(code)
    if not result.is_valid:
        return [_issue(node, "executeCode", result.error, "warning")]
    return []


def validate_agent_node(node: AgentNode) -> list[ValidationIssue]:
    config = node.config
    issues = []

    if _blank(config.id):
        issues.append(_issue(node, "id", "Agent ID is required", "error"))
    if _blank(config.name):
        issues.append(_issue(node, "name", "Agent name is required", "error"))
    if _blank(config.instructions):
        issues.append(_issue(node, "instructions", "Agent instructions are required", "warning"))
    if config.model is None or not config.model.provider or _blank(config.model.name):
        issues.append(_issue(node, "model", "Model configuration is incomplete", "warning"))

    return issues


def validate_step_node(node: StepNode) -> list[ValidationIssue]:
    config = node.config
    issues = []

    if _blank(config.id):
        issues.append(_issue(node, "id", "Step ID is required", "error"))
    if _blank(config.description):
        issues.append(_issue(node, "description", "Step description is recommended", "info"))
    issues.extend(_check_execute_code(node, config.execute_code))

    return issues


def validate_tool_node(node: ToolNode) -> list[ValidationIssue]:
    config = node.config
    issues = []

    if _blank(config.id):
        issues.append(_issue(node, "id", "Tool ID is required", "error"))
    if _blank(config.description):
        issues.append(_issue(node, "description", "Tool description is required", "warning"))
    issues.extend(_check_execute_code(node, config.execute_code))

    return issues


_NODE_VALIDATORS = {
    "agent": validate_agent_node,
    "step": validate_step_node,
    "tool": validate_tool_node,
}


def validate_all_nodes(nodes: Sequence[Node]) -> list[ValidationIssue]:
    """Run the per-kind validator for every node. Control-flow nodes have none."""
    issues: list[ValidationIssue] = []
    for node in nodes:
        validator = _NODE_VALIDATORS.get(node.kind)
        if validator is not None:
            issues.extend(validator(node))
    return issues


def validate_project(project: ProjectConfig) -> list[ValidationIssue]:
    """Graph-level issues followed by per-node issues."""
    return validate_workflow_graph(project.nodes, project.edges) + validate_all_nodes(project.nodes)


def has_errors(node_id: str, issues: Sequence[ValidationIssue]) -> bool:
    return any(issue.node_id == node_id and issue.severity == "error" for issue in issues)


def has_warnings(node_id: str, issues: Sequence[ValidationIssue]) -> bool:
    return any(issue.node_id == node_id and issue.severity == "warning" for issue in issues)


def get_node_issues(node_id: str, issues: Sequence[ValidationIssue]) -> list[ValidationIssue]:
    return [issue for issue in issues if issue.node_id == node_id]
