from __future__ import annotations

from formflow.workflow.models import WorkflowGraph
from formflow.workflow.validator.models import ValidationIssue


def run_branch_pass(graph: WorkflowGraph) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for node in graph.nodes_of_type("condition"):
        for port in ("true", "false"):
            if graph.outgoing_edges(node.id, port):
                continue
            issues.append(
                ValidationIssue(
                    code="BRANCH_INCOMPLETE",
                    severity="warning",
                    message=f'"{node.display_name}" has no "{port}" branch; the run stops there when it is taken.',
                    node_id=node.id,
                )
            )
    return issues
