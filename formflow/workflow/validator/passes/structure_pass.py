from __future__ import annotations

from formflow.workflow.models import WorkflowGraph
from formflow.workflow.validator.models import ValidationIssue


def run_structure_pass(graph: WorkflowGraph) -> list[ValidationIssue]:
    """Dangling edge endpoints and port-shape violations."""

    issues: list[ValidationIssue] = []

    for edge in graph.edges:
        missing = [
            node_id
            for node_id in (edge.source_node_id, edge.target_node_id)
            if not graph.has_node(node_id)
        ]
        for node_id in missing:
            issues.append(
                ValidationIssue(
                    code="EDGE_DANGLING",
                    severity="error",
                    message=f"Edge '{edge.id}' references missing node '{node_id}'.",
                    edge_id=edge.id,
                    hint="Remove the edge or reconnect it to an existing node.",
                )
            )

    seen_ports: set[tuple[str, str]] = set()
    for edge in graph.edges:
        source = graph.node(edge.source_node_id)
        if source is None:
            continue

        if source.type == "condition" and edge.source_port == "out":
            issues.append(
                ValidationIssue(
                    code="EDGE_PORT_INVALID",
                    severity="error",
                    message=f'Condition "{source.display_name}" cannot use the "out" port; connect "true" or "false".',
                    node_id=source.id,
                    edge_id=edge.id,
                )
            )
            continue
        if source.type != "condition" and edge.source_port != "out":
            issues.append(
                ValidationIssue(
                    code="EDGE_PORT_INVALID",
                    severity="error",
                    message=f'"{source.display_name}" only has an "out" port but edge uses "{edge.source_port}".',
                    node_id=source.id,
                    edge_id=edge.id,
                )
            )
            continue

        key = (source.id, edge.source_port)
        if key in seen_ports:
            issues.append(
                ValidationIssue(
                    code="EDGE_PORT_DUPLICATE",
                    severity="error",
                    message=f'"{source.display_name}" has more than one edge on port "{edge.source_port}".',
                    node_id=source.id,
                    edge_id=edge.id,
                    hint="Only the first edge on a port is followed during execution.",
                )
            )
        seen_ports.add(key)

    for node in graph.nodes_of_type("trigger"):
        for edge in graph.incoming_edges(node.id):
            issues.append(
                ValidationIssue(
                    code="TRIGGER_HAS_INCOMING",
                    severity="error",
                    message=f'Trigger "{node.display_name}" cannot have incoming edges.',
                    node_id=node.id,
                    edge_id=edge.id,
                )
            )

    return issues
