from __future__ import annotations

from formflow.workflow.models import WorkflowGraph, WorkflowNode
from formflow.workflow.validator.models import ValidationIssue


def run_config_pass(graph: WorkflowGraph) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    for node in graph.nodes:
        for message in _missing_config(node):
            issues.append(
                ValidationIssue(
                    code="CONFIG_MISSING",
                    severity="error",
                    message=message,
                    node_id=node.id,
                )
            )
    return issues


def _missing_config(node: WorkflowNode) -> list[str]:
    name = node.display_name
    config = node.config

    if node.type == "trigger":
        if not config.trigger_type:
            return [f'Trigger "{name}" has no event type set.']
        if config.trigger_type == "fieldChange" and not config.trigger_field_id:
            return [f'Field-change trigger "{name}" needs a field to watch.']
        return []

    if node.type == "callApi":
        return [] if config.url else [f'"{name}" is missing an API URL.']

    if node.type == "fetchOptions":
        missing: list[str] = []
        if not config.url:
            missing.append(f'"{name}" is missing an API URL.')
        if not config.target_field_id:
            missing.append(f'"{name}" is missing a target select field.')
        return missing

    if node.type == "condition":
        missing = []
        if not config.field:
            missing.append(f'"{name}" is missing a condition field.')
        if not config.operator:
            missing.append(f'"{name}" is missing a condition operator.')
        return missing

    if node.type == "redirect":
        return [] if config.url else [f'"{name}" is missing a redirect URL.']

    if node.type == "setData":
        return [] if config.mapping else [f'"{name}" has no data mapping entries.']

    return []
