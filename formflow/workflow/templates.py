from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from formflow.workflow.loader import load_workflow
from formflow.workflow.models import FormWorkflow


@dataclass(slots=True, frozen=True)
class WorkflowTemplate:
    id: str
    name: str
    description: str
    payload: dict[str, Any]


WORKFLOW_TEMPLATES: tuple[WorkflowTemplate, ...] = (
    WorkflowTemplate(
        id="api-success-dialog",
        name="API Call + Result Dialog",
        description="Submits the form to an API and shows a success or error dialog based on the result.",
        payload={
            "name": "API Call + Result Dialog",
            "enabled": True,
            "nodes": [
                {
                    "id": "tpl-trigger-submit",
                    "type": "trigger",
                    "label": "On Submit",
                    "config": {"triggerType": "formSubmit"},
                },
                {
                    "id": "tpl-api",
                    "type": "callApi",
                    "label": "Submit Data",
                    "config": {
                        "url": "https://api.example.com/submit",
                        "method": "POST",
                        "headers": {"Content-Type": "application/json"},
                        "bodyTemplate": '{"email": "{{email}}"}',
                    },
                },
                {
                    "id": "tpl-condition",
                    "type": "condition",
                    "label": "Check Result",
                    "config": {"field": "tpl-api.status", "operator": "equals", "value": "success"},
                },
                {
                    "id": "tpl-dialog-success",
                    "type": "showDialog",
                    "label": "Success Dialog",
                    "config": {"title": "Success!", "message": "Your data was submitted successfully."},
                },
                {
                    "id": "tpl-dialog-error",
                    "type": "showDialog",
                    "label": "Error Dialog",
                    "config": {"title": "Error", "message": "Failed to submit data."},
                },
            ],
            "edges": [
                {"id": "e1", "sourceNodeId": "tpl-trigger-submit", "sourcePort": "out", "targetNodeId": "tpl-api"},
                {"id": "e2", "sourceNodeId": "tpl-api", "sourcePort": "out", "targetNodeId": "tpl-condition"},
                {"id": "e3", "sourceNodeId": "tpl-condition", "sourcePort": "true", "targetNodeId": "tpl-dialog-success"},
                {"id": "e4", "sourceNodeId": "tpl-condition", "sourcePort": "false", "targetNodeId": "tpl-dialog-error"},
            ],
        },
    ),
    WorkflowTemplate(
        id="fetch-and-map",
        name="Fetch Data & Pre-fill Options",
        description="Fetches remote options on page load and hydrates a select field.",
        payload={
            "name": "Fetch Data & Pre-fill Options",
            "enabled": True,
            "nodes": [
                {
                    "id": "tpl-trigger-load",
                    "type": "trigger",
                    "label": "Page Load",
                    "config": {"triggerType": "pageLoad"},
                },
                {
                    "id": "tpl-fetch-opts",
                    "type": "fetchOptions",
                    "label": "Hydrate Field",
                    "config": {
                        "url": "https://api.example.com/options",
                        "method": "GET",
                        "responsePath": "data",
                        "labelKey": "name",
                        "valueKey": "id",
                        "targetFieldId": "country",
                    },
                },
            ],
            "edges": [
                {"id": "e1", "sourceNodeId": "tpl-trigger-load", "sourcePort": "out", "targetNodeId": "tpl-fetch-opts"},
            ],
        },
    ),
)


def get_template(template_id: str) -> WorkflowTemplate:
    for template in WORKFLOW_TEMPLATES:
        if template.id == template_id:
            return template
    raise KeyError(f"Unknown workflow template '{template_id}'.")


def instantiate_template(template_id: str, workflow_id: str | None = None) -> FormWorkflow:
    template = get_template(template_id)
    payload = copy.deepcopy(template.payload)
    payload["id"] = workflow_id or template.id
    return load_workflow(payload)
