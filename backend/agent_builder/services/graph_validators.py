"""Structural checks over the whole canvas graph.

Every check returns advisory ValidationIssue entries; none of them blocks code
generation.
"""

from typing import Sequence

from ..models.codegen import ValidationIssue
from ..models.graph import Edge, Node
from .codegen_utils import ENTITY_ROLES, clashing_ids


def _adjacency(nodes: Sequence[Node], edges: Sequence[Edge]) -> dict[str, list[str]]:
    adjacency: dict[str, list[str]] = {node.id: [] for node in nodes}
    for edge in edges:
        adjacency.setdefault(edge.source, []).append(edge.target)
    return adjacency


def detect_cycles(nodes: Sequence[Node], edges: Sequence[Edge]) -> list[ValidationIssue]:
    """Depth-first search with a recursion stack.

    A back edge to a node still on the stack is reported once, on the node the
    edge leaves, with the path that closes the cycle. The branch is not
    deepened further after that. Iterative, so deep graphs cannot exhaust the
    interpreter stack.
    """
    issues: list[ValidationIssue] = []
    adjacency = _adjacency(nodes, edges)
    visited: set[str] = set()

    for root in adjacency:
        if root in visited:
            continue

        path = [root]
        on_stack = {root}
        visited.add(root)
        frames = [(root, iter(adjacency.get(root, [])))]

        while frames:
            node_id, neighbors = frames[-1]
            advanced = False

            for neighbor in neighbors:
                if neighbor in on_stack:
                    cycle = path[path.index(neighbor):] + [neighbor]
                    issues.append(
                        ValidationIssue(
                            node_id=node_id,
                            message=f"Cycle detected in workflow: {' → '.join(cycle)}",
                            severity="error",
                        )
                    )
                    break
                if neighbor not in visited:
                    visited.add(neighbor)
                    on_stack.add(neighbor)
                    path.append(neighbor)
                    frames.append((neighbor, iter(adjacency.get(neighbor, []))))
                    advanced = True
                    break

            if not advanced:
                frames.pop()
                on_stack.discard(node_id)
                path.pop()

    return issues


def detect_isolated_nodes(nodes: Sequence[Node], edges: Sequence[Edge]) -> list[ValidationIssue]:
    """Flag nodes that touch no edge. Agents may stand alone as entry points."""
    connected: set[str] = set()
    for edge in edges:
        connected.add(edge.source)
        connected.add(edge.target)

    return [
        ValidationIssue(
            node_id=node.id,
            message="Node is not connected to any other nodes",
            severity="info",
        )
        for node in nodes
        if node.id not in connected and node.kind != "agent"
    ]


def detect_duplicate_ids(nodes: Sequence[Node]) -> list[ValidationIssue]:
    """Flag every node whose declared id is shared with another node."""
    groups: dict[str, list[str]] = {}
    for node in nodes:
        declared = node.declared_id
        if declared:
            groups.setdefault(declared, []).append(node.id)

    issues = []
    for declared, node_ids in groups.items():
        if len(node_ids) < 2:
            continue
        for node_id in node_ids:
            issues.append(
                ValidationIssue(
                    node_id=node_id,
                    field="id",
                    message=f'Duplicate ID "{declared}" found in {len(node_ids)} nodes',
                    severity="error",
                )
            )
    return issues


def detect_identifier_clashes(nodes: Sequence[Node]) -> list[ValidationIssue]:
    """Flag entity nodes whose distinct declared id maps to a variable or file an earlier node already uses."""
    issues = []
    for kind, role in ENTITY_ROLES.items():
        declared = [node for node in nodes if node.kind == kind and node.declared_id]
        clashes = clashing_ids((node.declared_id for node in declared), role)
        for node in declared:
            owner = clashes.get(node.declared_id)
            if owner is None:
                continue
            issues.append(
                ValidationIssue(
                    node_id=node.id,
                    field="id",
                    message=(
                        f'ID "{node.declared_id}" clashes with "{owner}" once converted to a '
                        f"{role.lower()} name or file; this node is left out of the generated code"
                    ),
                    severity="error",
                )
            )
    return issues


def validate_workflow_graph(nodes: Sequence[Node], edges: Sequence[Edge]) -> list[ValidationIssue]:
    """Run cycle, isolated-node, duplicate-id and identifier-clash detection and concatenate the results."""
    return [
        *detect_cycles(nodes, edges),
        *detect_isolated_nodes(nodes, edges),
        *detect_duplicate_ids(nodes),
        *detect_identifier_clashes(nodes),
    ]
