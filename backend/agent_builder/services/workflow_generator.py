"""Lower the step and control-flow nodes of a canvas into a Mastra workflow chain."""

import logging
import re
from typing import Sequence

from ..models.control_flow import FieldMapping
from ..models.graph import (
    WORKFLOW_KINDS,
    Edge,
    ForeachNode,
    LoopNode,
    MapNode,
    Node,
    ParallelNode,
    RouterNode,
    SleepNode,
    SleepUntilNode,
    StepNode,
    WaitForEventNode,
)
from .code_safety import check_syntax, find_dangerous_pattern, sanitize_code
from .codegen_utils import (
    ENTITY_ROLES,
    clashing_ids,
    comment_text,
    entity_var_name,
    indent_block,
    js_key,
    js_literal,
    quote,
    unique,
)

logger = logging.getLogger(__name__)

INDENT = "  "

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def _check_expression(expression: str) -> str | None:
    """Reason an inline expression may not be embedded, or None when it is acceptable."""
    dangerous = find_dangerous_pattern(expression)
    if dangerous:
        return f"contains potentially dangerous pattern: {dangerous}"
    problem = check_syntax(expression)
    if problem:
        return f"invalid JavaScript syntax: {problem}"
    return None


def _accessor(segments: list[str]) -> str:
    expression = "context"
    for segment in segments:
        if _IDENTIFIER_RE.match(segment):
            expression += f"?.{segment}"
        else:
            expression += f"?.[{quote(segment)}]"
    return expression


class _ChainWalk:
    """State of a single chain build: emitted lines and the steps they reference."""

    def __init__(self, nodes: Sequence[Node], edges: Sequence[Edge], available_steps: set[str] | None = None):
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.by_id = {node.id: node for node in self.nodes}
        if available_steps is None:
            declared = unique(node.declared_id for node in self.nodes if node.kind == "step" and node.declared_id)
            clashes = clashing_ids(declared, ENTITY_ROLES["step"])
            available_steps = {step_id for step_id in declared if step_id not in clashes}
        self.available_steps = available_steps
        self.lines: list[str] = []
        self.used_steps: list[str] = []

    def entry(self) -> Node | None:
        # Agents may point at a workflow without being part of it
        sources = {node.id for node in self.nodes if node.kind != "agent"}
        targets = {edge.target for edge in self.edges if edge.source in sources}
        workflow_nodes = [node for node in self.nodes if node.kind in WORKFLOW_KINDS]
        for node in workflow_nodes:
            if node.id not in targets:
                return node
        return workflow_nodes[0] if workflow_nodes else None

    def run(self) -> None:
        current = self.entry()
        visited: set[str] = set()

        while current is not None:
            if current.id in visited:
                # Linear walk re-entered a cycle
                self.comment(f"Stopped at {current.id}: node already visited")
                break
            visited.add(current.id)

            # Agents and tools on the path emit nothing but still lead on to the next node
            if current.kind in WORKFLOW_KINDS:
                self.emit(current)

            outgoing = [edge for edge in self.edges if edge.source == current.id]
            if len(outgoing) > 1:
                self.comment(
                    f"NOTE: {current.id} has {len(outgoing)} outgoing edges; only the first is followed"
                )
            current = self.by_id.get(outgoing[0].target) if outgoing else None

    def comment(self, text: str, depth: int = 1) -> None:
        self.lines.append(f"{INDENT * depth}// {comment_text(text)}")

    def step_ref(self, declared_id: str | None, label: str) -> str | None:
        if not declared_id or declared_id not in self.available_steps:
            self.comment(f"Skipped {label}: step {declared_id or '(no id)'} is not defined")
            return None
        self.used_steps.append(declared_id)
        return entity_var_name(declared_id, "Step")

    def condition(self, expression: str, label: str, depth: int) -> str:
        expression = expression.strip() or "false"
        reason = _check_expression(expression)
        if reason:
            logger.warning("Rejected %s condition: %s", label, reason)
            self.comment(f"Condition of {label} rejected: {reason}", depth)
            return "false"
        return indent_block(sanitize_code(expression), INDENT * depth)

    def emit(self, node: Node) -> None:
        if isinstance(node, StepNode):
            ref = self.step_ref(node.declared_id, f"step node {node.id}")
            if ref:
                self.lines.append(f"{INDENT}.then({ref})")
        elif isinstance(node, LoopNode):
            self.emit_loop(node)
        elif isinstance(node, ForeachNode):
            self.lines.append(f"{INDENT}.foreach({{")
            self.lines.append(f"{INDENT * 2}concurrency: {node.config.concurrency},")
            self.lines.append(f"{INDENT}}})")
        elif isinstance(node, ParallelNode):
            self.emit_parallel(node)
        elif isinstance(node, RouterNode):
            self.emit_branch(node)
        elif isinstance(node, SleepNode):
            self.lines.append(f"{INDENT}.sleep({node.config.duration})")
        elif isinstance(node, SleepUntilNode):
            if node.config.date:
                self.lines.append(f"{INDENT}.sleepUntil(new Date({quote(node.config.date)}))")
            else:
                self.comment(f"Skipped sleepUntil node {node.id}: no date set")
        elif isinstance(node, WaitForEventNode):
            self.emit_wait_for_event(node)
        elif isinstance(node, MapNode):
            self.emit_map(node)

    def emit_loop(self, node: LoopNode) -> None:
        config = node.config
        condition = self.condition(config.condition, f"loop node {node.id}", 2)
        self.lines.append(f"{INDENT}.{config.loop_type}({{")
        self.lines.append(f"{INDENT * 2}condition: (context) => {condition},")
        if config.max_iterations:
            self.lines.append(f"{INDENT * 2}maxIterations: {config.max_iterations},")
        self.lines.append(f"{INDENT}}})")

    def emit_parallel(self, node: ParallelNode) -> None:
        refs = [
            ref
            for ref in (self.step_ref(step_id, f"parallel node {node.id}") for step_id in unique(node.config.steps))
            if ref
        ]
        if not refs:
            self.comment(f"Skipped parallel node {node.id}: no steps to run")
            return
        self.lines.append(f"{INDENT}.parallel([{', '.join(refs)}])")

    def emit_branch(self, node: RouterNode) -> None:
        routes = node.config.routes
        if not routes:
            self.comment(f"Skipped router node {node.id}: no routes defined")
            return

        self.lines.append(f"{INDENT}.branch({{")
        for index, route in enumerate(routes):
            name = route.name or route.id or f"route{index}"
            condition = self.condition(route.condition, f"route {name} of {node.id}", 3)
            self.lines.append(f"{INDENT * 2}{quote(name)}: {{")
            self.lines.append(f"{INDENT * 3}condition: (context) => {condition},")
            if route.step_id:
                ref = self.step_ref(route.step_id, f"route {name} of {node.id}")
                if ref:
                    self.lines.append(f"{INDENT * 3}step: {ref},")
            self.lines.append(f"{INDENT * 2}}},")
        self.lines.append(f"{INDENT}}})")

    def emit_wait_for_event(self, node: WaitForEventNode) -> None:
        config = node.config
        if not config.event:
            self.comment(f"Skipped waitForEvent node {node.id}: no event name set")
            return
        self.lines.append(f"{INDENT}.waitForEvent({{")
        self.lines.append(f"{INDENT * 2}event: {quote(config.event)},")
        if config.timeout:
            self.lines.append(f"{INDENT * 2}timeout: {config.timeout},")
        self.lines.append(f"{INDENT}}})")

    def emit_map(self, node: MapNode) -> None:
        fields = [field for field in node.config.fields if field.target_field]
        if not fields:
            self.comment(f"Skipped map node {node.id}: no fields mapped")
            return

        self.lines.append(f"{INDENT}.map({{")
        for field in fields:
            self.lines.append(f"{INDENT * 2}{js_key(field.target_field)}: {self.map_value(node, field)},")
        self.lines.append(f"{INDENT}}})")

    def map_value(self, node: MapNode, field: FieldMapping) -> str:
        if field.source_type == "constant":
            return js_literal(field.constant_value)

        if field.source_type == "function":
            code = (field.function_code or "").strip()
            reason = _check_expression(code) if code else "no function provided"
            if reason:
                logger.warning("Rejected map function for %s.%s: %s", node.id, field.target_field, reason)
                self.comment(f"{field.target_field} function rejected: {reason}", 2)
                return "() => undefined"
            return indent_block(sanitize_code(code), INDENT * 2)

        if not field.source_step:
            return "() => undefined"
        segments = [field.source_step]
        if field.source_path:
            segments.extend(part for part in field.source_path.split(".") if part)
        return f"(context) => {_accessor(segments)}"


class WorkflowCodeGenerator:
    """Generate the workflow module for the step and control-flow nodes of a project."""

    def build_chain(self, nodes: Sequence[Node], edges: Sequence[Edge],
                    available_steps: set[str] | None = None) -> list[str]:
        """Chain call lines, one group per node, in walk order.

        The walk starts at the first workflow node without an incoming edge
        from a non-agent node (or the first workflow node when every one has
        one) and follows the first outgoing edge of each node. Agent and tool
        nodes on the path are passed through without emitting a call.

        Args:
            nodes: Every node on the canvas
            edges: Every edge on the canvas
            available_steps: Declared ids of the step modules that will exist;
                derived from the step nodes when omitted
        """
        walk = _ChainWalk(nodes, edges, available_steps)
        walk.run()
        return walk.lines

    def generate(self, nodes: Sequence[Node], edges: Sequence[Edge], workflow_id: str,
                 available_steps: set[str] | None = None) -> str:
        """Render ``workflows/<workflow_id>.ts``."""
        walk = _ChainWalk(nodes, edges, available_steps)
        walk.run()
        steps = unique(walk.used_steps)

        lines = [
            "import { createWorkflow } from '@mastra/core/workflows';",
            "import { z } from 'zod';",
        ]
        if steps:
            names = ", ".join(entity_var_name(step_id, "Step") for step_id in steps)
            lines.append(f"import {{ {names} }} from '../steps';")
        lines.append("")

        lines.append(f"export const {entity_var_name(workflow_id, 'Workflow')} = createWorkflow({{")
        lines.append(f"  id: {quote(workflow_id)},")
        lines.append("  inputSchema: z.object({}),")
        lines.append("  outputSchema: z.object({}),")
        lines.append("})")
        if walk.lines:
            lines.extend(walk.lines)
        else:
            lines.append(f"{INDENT}// No workflow steps connected")
        lines.append(f"{INDENT}.commit();")

        return "\n".join(lines) + "\n"
