from __future__ import annotations

from formflow.workflow.models import WorkflowGraph
from formflow.workflow.validator.models import ValidationIssue
from formflow.workflow.validator.passes.reachability_pass import build_adjacency


def run_cycle_pass(graph: WorkflowGraph) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for cycle in find_cycles(graph):
        rendered = " -> ".join([*cycle, cycle[0]])
        issues.append(
            ValidationIssue(
                code="GRAPH_CYCLE",
                severity="error",
                message=f"Workflow contains a cycle ({rendered}); execution would loop until the step budget aborts it.",
                node_id=cycle[0],
                hint="Break the loop or route it through a condition that exits.",
            )
        )
    return issues


def find_cycles(graph: WorkflowGraph) -> list[list[str]]:
    """Each distinct cycle found by a depth-first walk, as a node id path.

    The walk keeps its own stack of successor iterators, so chain length is
    not bounded by the interpreter's recursion limit.
    """

    adjacency = build_adjacency(graph)
    visited: set[str] = set()
    cycles: list[list[str]] = []
    seen_members: set[frozenset[str]] = set()

    for root in graph.nodes:
        if root.id in visited:
            continue

        visited.add(root.id)
        active: list[str] = [root.id]
        active_set: set[str] = {root.id}
        pending = [iter(adjacency.get(root.id, []))]

        while pending:
            target = next(pending[-1], None)
            if target is None:
                pending.pop()
                active_set.discard(active.pop())
                continue

            if target in active_set:
                cycle = active[active.index(target):]
                members = frozenset(cycle)
                if members not in seen_members:
                    seen_members.add(members)
                    cycles.append(cycle)
            elif target not in visited:
                visited.add(target)
                active.append(target)
                active_set.add(target)
                pending.append(iter(adjacency.get(target, [])))

    return cycles
