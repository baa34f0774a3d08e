"""Matching external form events to the workflows they should start.

The engine only decides how a workflow runs. Deciding which workflows a page
load, field change, or submit should run is done here by the host.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from formflow.workflow.interpolation import template_refs
from formflow.workflow.models import FormWorkflow, TriggerNode, TriggerType


@dataclass(slots=True, frozen=True)
class TriggerEvent:
    type: TriggerType
    field_id: str | None = None

    def matches(self, node: TriggerNode) -> bool:
        config = node.config
        if config.trigger_type != self.type:
            return False
        if self.type == "fieldChange" and config.trigger_field_id:
            return config.trigger_field_id == self.field_id
        return True


def workflow_trigger_type(workflow: FormWorkflow) -> TriggerType | None:
    """Trigger type of the first trigger node, or one inferred for older workflows."""

    triggers = workflow.nodes_of_type("trigger")
    if triggers and triggers[0].config.trigger_type:
        return triggers[0].config.trigger_type

    # Workflows authored before trigger nodes existed.
    if workflow.nodes_of_type("fetchOptions"):
        return "pageLoad"
    return None


def workflow_trigger_field_ids(workflow: FormWorkflow) -> list[str]:
    explicit = [
        node.config.trigger_field_id
        for node in workflow.nodes_of_type("trigger")
        if node.config.trigger_type == "fieldChange" and node.config.trigger_field_id
    ]
    if explicit:
        return _dedupe(explicit)

    implicit: list[str] = []
    for node in workflow.nodes:
        if node.type == "condition" and node.config.field:
            implicit.append(node.config.field)
        if node.type == "fetchOptions" and node.config.target_field_id:
            implicit.append(node.config.target_field_id)
        if node.type in {"callApi", "fetchOptions"}:
            for template in (node.config.url, node.config.body_template):
                if template:
                    implicit.extend(template_refs(template))
    return _dedupe(implicit)


def find_workflows_for_field(workflows: Iterable[FormWorkflow], field_id: str) -> list[FormWorkflow]:
    matched: list[FormWorkflow] = []
    for workflow in workflows:
        if not workflow.enabled:
            continue
        trigger_type = workflow_trigger_type(workflow)
        field_ids = workflow_trigger_field_ids(workflow)
        if trigger_type == "fieldChange" and field_id in field_ids:
            matched.append(workflow)
        elif trigger_type is None and field_id in field_ids:
            matched.append(workflow)
    return matched


def find_page_load_workflows(workflows: Iterable[FormWorkflow]) -> list[FormWorkflow]:
    return [wf for wf in workflows if wf.enabled and workflow_trigger_type(wf) == "pageLoad"]


def find_submit_workflows(workflows: Iterable[FormWorkflow]) -> list[FormWorkflow]:
    return [wf for wf in workflows if wf.enabled and workflow_trigger_type(wf) == "formSubmit"]


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
