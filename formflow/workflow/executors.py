from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Mapping

from formflow.workflow.calls import ApiCaller, ApiRequest
from formflow.workflow.interpolation import (
    extract_path,
    interpolate,
    resolve_reference,
    stringify,
)
from formflow.workflow.models import (
    ApiConfig,
    CallApiNode,
    ConditionNode,
    ConditionValue,
    FetchOptionsConfig,
    FetchOptionsNode,
    PageNode,
    RedirectNode,
    SetDataNode,
    ShowDialogNode,
    TriggerNode,
    WorkflowNode,
)


LOGGER = logging.getLogger(__name__)

# Context key holding the most recent network response of the run.
RESPONSE_KEY = "response"
DEFAULT_DIALOG_TITLE = "Info"


class NodeExecutionError(RuntimeError):
    """Raised by an executor when a node cannot complete."""


@dataclass(slots=True)
class SelectOption:
    label: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass(slots=True)
class DialogSpec:
    title: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "message": self.message}


@dataclass(slots=True)
class RedirectSpec:
    url: str
    new_tab: bool = False


@dataclass(slots=True)
class NodeOutcome:
    status: Literal["success", "error"] = "success"
    data: Any = None
    error: str | None = None
    branch: Literal["true", "false"] | None = None
    context_patch: dict[str, Any] = field(default_factory=dict)
    field_updates: dict[str, Any] = field(default_factory=dict)
    option_updates: dict[str, list[SelectOption]] = field(default_factory=dict)
    redirect: RedirectSpec | None = None
    dialog: DialogSpec | None = None

    @classmethod
    def failure(cls, message: str) -> NodeOutcome:
        return cls(status="error", error=message)


NodeExecutor = Callable[[Any, Mapping[str, Any], "ApiCaller | None"], Awaitable[NodeOutcome]]


async def execute_node(
    node: WorkflowNode,
    context: Mapping[str, Any],
    api_caller: ApiCaller | None,
) -> NodeOutcome:
    """Run the executor registered for ``node.type``.

    Failures are returned as an ``error`` outcome; nothing is raised.
    """

    executor = EXECUTORS.get(node.type)
    if executor is None:
        return NodeOutcome.failure(f"Unsupported node type '{node.type}'.")

    try:
        return await executor(node, context, api_caller)
    except NodeExecutionError as exc:
        return NodeOutcome.failure(str(exc))
    except Exception as exc:  # noqa: BLE001
        LOGGER.warning("Node '%s' (%s) raised an unexpected error.", node.id, node.type, exc_info=True)
        return NodeOutcome.failure(f"{type(exc).__name__}: {exc}")


async def execute_trigger(node: TriggerNode, context: Mapping[str, Any], api_caller: ApiCaller | None) -> NodeOutcome:
    return NodeOutcome(data={"triggerType": node.config.trigger_type} if node.config.trigger_type else None)


async def execute_page(node: PageNode, context: Mapping[str, Any], api_caller: ApiCaller | None) -> NodeOutcome:
    return NodeOutcome(data={"pageId": node.config.page_id} if node.config.page_id else None)


async def execute_call_api(node: CallApiNode, context: Mapping[str, Any], api_caller: ApiCaller | None) -> NodeOutcome:
    response = await _call(node.id, node.config, context, api_caller)
    return NodeOutcome(data=response, context_patch=_response_patch(node.id, response))


async def execute_fetch_options(
    node: FetchOptionsNode,
    context: Mapping[str, Any],
    api_caller: ApiCaller | None,
) -> NodeOutcome:
    response = await _call(node.id, node.config, context, api_caller)
    options = extract_options(response, node.config)
    option_updates: dict[str, list[SelectOption]] = {}
    if node.config.target_field_id:
        option_updates[node.config.target_field_id] = options
    return NodeOutcome(
        data=[option.to_dict() for option in options],
        context_patch=_response_patch(node.id, response),
        option_updates=option_updates,
    )


async def execute_set_data(node: SetDataNode, context: Mapping[str, Any], api_caller: ApiCaller | None) -> NodeOutcome:
    updates: dict[str, Any] = {}
    for entry in node.config.mapping:
        if not entry.to:
            continue
        updates[entry.to] = resolve_mapping_source(context, entry.source)
    return NodeOutcome(data=dict(updates), field_updates=updates, context_patch=dict(updates))


async def execute_show_dialog(
    node: ShowDialogNode,
    context: Mapping[str, Any],
    api_caller: ApiCaller | None,
) -> NodeOutcome:
    title = interpolate(node.config.title, context) if node.config.title else DEFAULT_DIALOG_TITLE
    message = interpolate(node.config.message, context) if node.config.message else ""
    dialog = DialogSpec(title=title, message=message)
    return NodeOutcome(data=dialog.to_dict(), dialog=dialog)


async def execute_redirect(node: RedirectNode, context: Mapping[str, Any], api_caller: ApiCaller | None) -> NodeOutcome:
    if not node.config.url:
        raise NodeExecutionError(f"Redirect node '{node.id}' has no URL.")
    redirect = RedirectSpec(url=interpolate(node.config.url, context), new_tab=node.config.new_tab)
    return NodeOutcome(data={"url": redirect.url, "newTab": redirect.new_tab}, redirect=redirect)


async def execute_condition(node: ConditionNode, context: Mapping[str, Any], api_caller: ApiCaller | None) -> NodeOutcome:
    config = node.config
    if not config.field or not config.operator:
        raise NodeExecutionError(f"Condition node '{node.id}' requires both a field and an operator.")

    actual = resolve_reference(context, config.field)
    result = evaluate_condition(config.operator, actual, config.value)
    return NodeOutcome(
        branch="true" if result else "false",
        data={
            "field": config.field,
            "operator": config.operator,
            "actual": actual,
            "expected": config.value,
            "result": result,
        },
    )


def evaluate_condition(operator: str, actual: Any, expected: ConditionValue) -> bool:
    if expected is None:
        expected = ""

    if operator == "equals":
        return stringify(actual) == stringify(expected)
    if operator == "notEquals":
        return stringify(actual) != stringify(expected)
    if operator == "contains":
        return stringify(expected).lower() in stringify(actual).lower()
    if operator == "isEmpty":
        return actual is None or actual == ""
    if operator == "isNotEmpty":
        return not (actual is None or actual == "")

    if operator in {"greaterThan", "greaterThanOrEqual", "lessThan", "lessThanOrEqual"}:
        left = to_number(actual)
        right = to_number(expected)
        if left is None or right is None:
            return False
        if operator == "greaterThan":
            return left > right
        if operator == "greaterThanOrEqual":
            return left >= right
        if operator == "lessThan":
            return left < right
        return left <= right

    raise NodeExecutionError(f"Unsupported condition operator '{operator}'.")


def to_number(value: Any) -> float | None:
    """Loose numeric coercion; ``None`` stands for "not a number"."""

    if value is None:
        return None
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if number != number:
        return None
    return number


def resolve_mapping_source(context: Mapping[str, Any], source: str) -> Any:
    """Resolve a setData ``from`` path.

    Paths rooted at a context key (a field id, a node id, or ``response``)
    resolve against the context. Anything else is read from the most recent
    response, which is how editor-authored mappings address response data.
    """

    if not source:
        return None
    if source in context:
        return context[source]

    root = source.split(".", 1)[0].split("[", 1)[0]
    if root in context:
        return extract_path(context, source)

    last_response = context.get(RESPONSE_KEY)
    if last_response is None:
        return None
    return extract_path(last_response, source)


def extract_options(response: Any, config: FetchOptionsConfig) -> list[SelectOption]:
    items = extract_path(response, config.response_path) if config.response_path else response

    if isinstance(items, Mapping):
        items = [items]
    if not isinstance(items, (list, tuple)):
        return []

    options: list[SelectOption] = []
    for item in items:
        if isinstance(item, Mapping):
            options.append(
                SelectOption(
                    label=stringify(item.get(config.label_key)),
                    value=stringify(item.get(config.value_key)),
                )
            )
        else:
            text = stringify(item)
            options.append(SelectOption(label=text, value=text))
    return options


def build_api_request(node_id: str, config: ApiConfig, context: Mapping[str, Any]) -> ApiRequest:
    if not config.url:
        raise NodeExecutionError(f"Node '{node_id}' has no API URL.")

    body: str | None = None
    if config.method != "GET" and config.body_template:
        body = interpolate(config.body_template, context)

    return ApiRequest(
        url=interpolate(config.url, context),
        method=config.method,
        headers=dict(config.headers),
        body=body,
    )


async def _call(
    node_id: str,
    config: ApiConfig,
    context: Mapping[str, Any],
    api_caller: ApiCaller | None,
) -> Any:
    if api_caller is None:
        raise NodeExecutionError(f"Node '{node_id}' needs a call capability but none was provided.")

    request = build_api_request(node_id, config, context)
    LOGGER.debug("Node '%s' calling %s %s", node_id, request.method, request.url)
    try:
        return await api_caller(request, context)
    except NodeExecutionError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise NodeExecutionError(f"API call {request.method} {request.url} failed: {exc}") from exc


def _response_patch(node_id: str, response: Any) -> dict[str, Any]:
    return {node_id: response, RESPONSE_KEY: response}


EXECUTORS: dict[str, NodeExecutor] = {
    "trigger": execute_trigger,
    "page": execute_page,
    "callApi": execute_call_api,
    "fetchOptions": execute_fetch_options,
    "setData": execute_set_data,
    "showDialog": execute_show_dialog,
    "redirect": execute_redirect,
    "condition": execute_condition,
}
