from __future__ import annotations

from formflow.workflow.models import WorkflowGraph
from formflow.workflow.validator.models import ValidationIssue


def run_reachability_pass(graph: WorkflowGraph) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []

    starts = graph.nodes_of_type("trigger")
    if not starts:
        issues.append(
            ValidationIssue(
                code="TRIGGER_MISSING",
                severity="warning",
                message="No trigger node; the workflow will not fire automatically.",
                hint="Add a trigger node to specify when it should run.",
            )
        )
        starts = graph.fallback_start_nodes()

    adjacency = build_adjacency(graph)
    reachable: set[str] = set()
    stack = [node.id for node in starts]
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        stack.extend(target for target in adjacency.get(node_id, []) if target not in reachable)

    for node in graph.nodes:
        if node.id not in reachable:
            issues.append(
                ValidationIssue(
                    code="NODE_UNREACHABLE",
                    severity="warning",
                    message=f'"{node.display_name}" is not reachable from any trigger.',
                    node_id=node.id,
                    hint="Remove it or connect it with a valid edge.",
                )
            )

    return issues


def build_adjacency(graph: WorkflowGraph) -> dict[str, list[str]]:
    """Forward adjacency over edges whose endpoints both exist."""

    adjacency: dict[str, list[str]] = {node.id: [] for node in graph.nodes}
    for edge in graph.edges:
        if edge.source_node_id in adjacency and graph.has_node(edge.target_node_id):
            adjacency[edge.source_node_id].append(edge.target_node_id)
    return adjacency
