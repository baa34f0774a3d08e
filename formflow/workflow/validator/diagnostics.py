from __future__ import annotations

from formflow.workflow.validator.models import ValidationIssue


def render_issue(issue: ValidationIssue) -> str:
    location_bits: list[str] = []
    if issue.node_id:
        location_bits.append(f"node={issue.node_id}")
    if issue.edge_id:
        location_bits.append(f"edge={issue.edge_id}")

    location = f" ({', '.join(location_bits)})" if location_bits else ""
    hint = f" Hint: {issue.hint}" if issue.hint else ""
    message = issue.message.rstrip(".")
    return f"[{issue.severity.upper()}] {issue.code}: {message}{location}.{hint}".rstrip()


def render_issues(issues: list[ValidationIssue]) -> str:
    if not issues:
        return ""

    order = {"error": 0, "warning": 1}
    sorted_items = sorted(
        issues,
        key=lambda item: (order.get(item.severity, 9), item.code, item.node_id or "", item.edge_id or ""),
    )
    return "\n".join(f"- {render_issue(item)}" for item in sorted_items)
