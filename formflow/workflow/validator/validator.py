from __future__ import annotations

from typing import Any, Mapping

from formflow.workflow.loader import load_graph
from formflow.workflow.models import WorkflowGraph
from formflow.workflow.validator.models import ValidationIssue, ValidationResult
from formflow.workflow.validator.passes import (
    run_branch_pass,
    run_config_pass,
    run_cycle_pass,
    run_reachability_pass,
    run_structure_pass,
)


class WorkflowValidator:
    """Static, side-effect free analysis of a workflow graph.

    Passes run in priority order: dangling edges and port shape, reachability,
    per-type configuration, incomplete condition branches, cycles.
    """

    def validate(self, graph: WorkflowGraph) -> ValidationResult:
        if not graph.nodes:
            return ValidationResult(
                valid=True,
                issues=[
                    ValidationIssue(
                        code="GRAPH_EMPTY",
                        severity="warning",
                        message="Workflow has no nodes.",
                    )
                ],
            )

        issues: list[ValidationIssue] = []
        issues.extend(run_structure_pass(graph))
        issues.extend(run_reachability_pass(graph))
        issues.extend(run_config_pass(graph))
        issues.extend(run_branch_pass(graph))
        issues.extend(run_cycle_pass(graph))

        return ValidationResult(
            valid=not any(item.severity == "error" for item in issues),
            issues=issues,
        )


def validate_workflow(graph: WorkflowGraph | Mapping[str, Any] | str) -> ValidationResult:
    if not isinstance(graph, WorkflowGraph):
        graph = load_graph(graph)
    return WorkflowValidator().validate(graph)
