from __future__ import annotations

import copy
import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from formflow.workflow.models import FormWorkflow, WorkflowGraph


LOGGER = logging.getLogger(__name__)

API_NODE_TYPES = {"callApi", "fetchOptions"}
API_KEYS = ("url", "method", "headers", "bodyTemplate")

# Flat editor keys -> canonical per-type keys.
LEGACY_CONFIG_ALIASES: dict[str, dict[str, str]] = {
    "setData": {"dataMapping": "mapping"},
    "showDialog": {"dialogTitle": "title", "dialogMessage": "message"},
    "redirect": {"redirectUrl": "url", "redirectNewTab": "newTab"},
    "condition": {
        "conditionField": "field",
        "conditionOperator": "operator",
        "conditionValue": "value",
    },
}


class GraphValidationError(ValueError):
    """Raised when a workflow payload cannot be loaded into a graph."""


def load_graph(payload: Mapping[str, Any] | str) -> WorkflowGraph:
    return _load(payload, WorkflowGraph)


def load_workflow(payload: Mapping[str, Any] | str) -> FormWorkflow:
    return _load(payload, FormWorkflow)


def canonicalize_payload(payload: Mapping[str, Any]) -> tuple[dict[str, Any], list[str]]:
    """Rewrite legacy editor shapes into canonical per-type configuration.

    Returns the rewritten copy and a list of notes describing each rewrite.
    The input mapping is never modified.
    """

    cloned = copy.deepcopy(dict(payload))
    notes: list[str] = []

    nodes = cloned.get("nodes")
    if not isinstance(nodes, list):
        return cloned, notes

    normalized_nodes: list[Any] = []
    for node in nodes:
        if not isinstance(node, dict):
            normalized_nodes.append(node)
            continue

        normalized = dict(node)
        node_id = str(normalized.get("id") or "?")
        node_type = normalized.get("type")

        config = normalized.get("config")
        if not isinstance(config, dict):
            config = {}
        else:
            config = dict(config)

        if node_type in API_NODE_TYPES and isinstance(config.get("api"), dict):
            api = config.pop("api")
            for key in API_KEYS:
                if key in api and key not in config:
                    config[key] = api[key]
            notes.append(f"Node '{node_id}': flattened legacy 'api' block.")

        for legacy_key, canonical_key in LEGACY_CONFIG_ALIASES.get(str(node_type), {}).items():
            if legacy_key not in config:
                continue
            value = config.pop(legacy_key)
            if canonical_key not in config:
                config[canonical_key] = value
                notes.append(f"Node '{node_id}': canonicalized '{legacy_key}' to '{canonical_key}'.")

        if isinstance(config.get("method"), str):
            config["method"] = config["method"].upper()

        normalized["config"] = config
        normalized_nodes.append(normalized)

    cloned["nodes"] = normalized_nodes
    cloned.setdefault("edges", [])
    return cloned, notes


def _load(payload: Mapping[str, Any] | str, model: type[WorkflowGraph]) -> Any:
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise GraphValidationError(f"Workflow payload is not valid JSON: {exc}") from exc

    if not isinstance(payload, Mapping):
        raise GraphValidationError("Workflow payload must be a JSON object with 'nodes' and 'edges'.")

    canonical, notes = canonicalize_payload(payload)
    for note in notes:
        LOGGER.debug(note)

    try:
        return model.model_validate(canonical)
    except ValidationError as exc:
        rendered = "\n".join(f"- {_render_error(error)}" for error in exc.errors())
        raise GraphValidationError(f"Workflow payload failed validation:\n{rendered}") from exc


def _render_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = str(error.get("msg", "invalid value"))
    return f"{location}: {message}" if location else message
