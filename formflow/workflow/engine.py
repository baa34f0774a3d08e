from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from formflow.settings import DEFAULT_CALL_TIMEOUT_SECONDS, DEFAULT_MAX_STEPS, AppSettings
from formflow.workflow.calls import ApiCaller
from formflow.workflow.executors import (
    DialogSpec,
    NodeOutcome,
    SelectOption,
    execute_node,
)
from formflow.workflow.hooks import WorkflowHookRegistry
from formflow.workflow.loader import load_workflow
from formflow.workflow.models import FormWorkflow, WorkflowGraph, WorkflowNode
from formflow.workflow.triggers import TriggerEvent
from formflow.workflow.validator import ValidationIssue, WorkflowValidator


LOGGER = logging.getLogger(__name__)


class WorkflowExecutionError(RuntimeError):
    """Raised when the engine is used incorrectly; run failures are returned as data."""


@dataclass(slots=True)
class ExecutionEvent:
    node_id: str
    type: str | None
    status: Literal["success", "error"]
    branch: Literal["true", "false"] | None = None
    data: Any = None
    error: str | None = None
    fatal: bool = False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "nodeId": self.node_id,
            "type": self.type,
            "status": self.status,
        }
        if self.branch is not None:
            payload["branch"] = self.branch
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        if self.fatal:
            payload["fatal"] = True
        return payload


@dataclass(slots=True)
class ExecutionResult:
    workflow_id: str
    events: list[ExecutionEvent] = field(default_factory=list)
    field_updates: dict[str, Any] = field(default_factory=dict)
    option_updates: dict[str, list[SelectOption]] = field(default_factory=dict)
    redirect_url: str | None = None
    redirect_new_tab: bool | None = None
    dialog: DialogSpec | None = None
    rejected_issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.rejected_issues and all(event.status == "success" for event in self.events)

    @property
    def aborted(self) -> bool:
        return any(event.fatal for event in self.events)

    @property
    def visited_nodes(self) -> list[str]:
        return [event.node_id for event in self.events]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "workflowId": self.workflow_id,
            "events": [event.to_dict() for event in self.events],
            "fieldUpdates": dict(self.field_updates),
            "optionUpdates": {
                field_id: [option.to_dict() for option in options]
                for field_id, options in self.option_updates.items()
            },
        }
        if self.redirect_url is not None:
            payload["redirectUrl"] = self.redirect_url
            payload["redirectNewTab"] = bool(self.redirect_new_tab)
        if self.dialog is not None:
            payload["dialog"] = self.dialog.to_dict()
        if self.rejected_issues:
            payload["rejectedIssues"] = [issue.to_dict() for issue in self.rejected_issues]
        return payload


@dataclass(slots=True)
class _RunState:
    graph: WorkflowGraph
    context: dict[str, Any]
    api_caller: ApiCaller | None
    result: ExecutionResult
    steps: int = 0


class WorkflowEngine:
    """Sequential workflow interpreter with a step budget, lifecycle hooks, and a replayable trace.

    Each run works on a private copy of the caller's values. Exactly one node
    executes at a time, and only the branch selected by a condition is followed.
    Node failures and step-budget aborts end the run and are reported in the
    returned ``ExecutionResult``; they are never raised.
    """

    def __init__(
        self,
        *,
        max_steps: int = DEFAULT_MAX_STEPS,
        call_timeout_seconds: float = DEFAULT_CALL_TIMEOUT_SECONDS,
        hook_registry: WorkflowHookRegistry | None = None,
        gate_on_validation: bool = False,
        validator: WorkflowValidator | None = None,
    ) -> None:
        self._max_steps = max(1, int(max_steps))
        self._call_timeout_seconds = max(0.1, float(call_timeout_seconds))
        self._hooks = hook_registry or WorkflowHookRegistry()
        self._gate_on_validation = gate_on_validation
        self._validator = validator or WorkflowValidator()

    @classmethod
    def from_settings(cls, settings: AppSettings, **kwargs: Any) -> WorkflowEngine:
        options: dict[str, Any] = {
            "max_steps": settings.max_steps,
            "call_timeout_seconds": settings.call_timeout_seconds,
            "gate_on_validation": settings.gate_on_validation,
        }
        options.update(kwargs)
        return cls(**options)

    @property
    def hooks(self) -> WorkflowHookRegistry:
        return self._hooks

    @property
    def max_steps(self) -> int:
        return self._max_steps

    async def arun(
        self,
        *,
        graph: WorkflowGraph,
        values: Mapping[str, Any] | None = None,
        api_caller: ApiCaller | None = None,
        event: TriggerEvent | None = None,
    ) -> ExecutionResult:
        result = ExecutionResult(workflow_id=graph.id)

        if isinstance(graph, FormWorkflow) and not graph.enabled:
            LOGGER.debug("Workflow '%s' is disabled; skipping run.", graph.id)
            return result

        if self._gate_on_validation:
            validation = self._validator.validate(graph)
            if not validation.valid:
                LOGGER.info(
                    "Workflow '%s' rejected with %d validation error(s).",
                    graph.id,
                    len(validation.errors),
                )
                result.rejected_issues = list(validation.issues)
                return result

        state = _RunState(
            graph=graph,
            context=dict(values or {}),
            api_caller=api_caller,
            result=result,
        )
        start_nodes = select_start_nodes(graph, event)

        await self._emit_hook(
            "before_run",
            {
                "workflow_id": graph.id,
                "start_nodes": [node.id for node in start_nodes],
                "values": dict(state.context),
            },
        )

        for start in start_nodes:
            if not await self._run_chain(state, start):
                break

        status = "succeeded" if result.succeeded else ("aborted" if result.aborted else "failed")
        LOGGER.debug("Workflow '%s' %s after %d step(s).", graph.id, status, state.steps)
        await self._emit_hook(
            "after_run",
            {
                "workflow_id": graph.id,
                "status": status,
                "visited_nodes": result.visited_nodes,
                "result": result.to_dict(),
            },
        )
        return result

    def run(self, **kwargs: Any) -> ExecutionResult:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            raise WorkflowExecutionError(
                "WorkflowEngine.run() cannot be called inside an active event loop. Use await arun()."
            )
        return asyncio.run(self.arun(**kwargs))

    async def _run_chain(self, state: _RunState, start: WorkflowNode) -> bool:
        """Follow edges from ``start`` until the chain ends; False halts the whole run."""

        current: WorkflowNode | None = start
        while current is not None:
            if state.steps >= self._max_steps:
                await self._record_fatal(
                    state,
                    node_id=current.id,
                    node_type=current.type,
                    message=f"Execution exceeded max_steps={self._max_steps}; possible cycle in workflow graph.",
                )
                return False
            state.steps += 1

            await self._emit_hook(
                "before_node",
                {
                    "workflow_id": state.graph.id,
                    "node_id": current.id,
                    "node_type": current.type,
                    "step": state.steps,
                },
            )

            outcome = await self._execute(current, state)
            event = ExecutionEvent(
                node_id=current.id,
                type=current.type,
                status=outcome.status,
                branch=outcome.branch,
                data=outcome.data,
                error=outcome.error,
            )
            state.result.events.append(event)

            await self._emit_hook(
                "after_node",
                {
                    "workflow_id": state.graph.id,
                    "node_id": current.id,
                    "node_type": current.type,
                    "step": state.steps,
                    "event": event.to_dict(),
                },
            )

            if outcome.status == "error":
                LOGGER.info("Workflow '%s' halted at node '%s': %s", state.graph.id, current.id, outcome.error)
                await self._emit_hook(
                    "on_error",
                    {
                        "workflow_id": state.graph.id,
                        "node_id": current.id,
                        "node_type": current.type,
                        "step": state.steps,
                        "error": outcome.error,
                        "fatal": False,
                    },
                )
                return False

            self._apply_outcome(state, outcome)

            next_id = self._next_node_id(state.graph, current, outcome)
            if next_id is None:
                return True

            current = state.graph.node(next_id)
            if current is None:
                await self._record_fatal(
                    state,
                    node_id=next_id,
                    node_type=None,
                    message=f"Edge leads to node '{next_id}', which does not exist.",
                )
                return False

        return True

    async def _execute(self, node: WorkflowNode, state: _RunState) -> NodeOutcome:
        try:
            return await asyncio.wait_for(
                execute_node(node, state.context, state.api_caller),
                timeout=self._call_timeout_seconds,
            )
        except TimeoutError:
            return NodeOutcome.failure(
                f"Node '{node.id}' timed out after {self._call_timeout_seconds:.1f}s."
            )

    def _apply_outcome(self, state: _RunState, outcome: NodeOutcome) -> None:
        result = state.result
        result.field_updates.update(outcome.field_updates)
        result.option_updates.update(outcome.option_updates)
        if outcome.redirect is not None:
            result.redirect_url = outcome.redirect.url
            result.redirect_new_tab = outcome.redirect.new_tab
        if outcome.dialog is not None:
            result.dialog = outcome.dialog
        state.context.update(outcome.context_patch)

    def _next_node_id(self, graph: WorkflowGraph, node: WorkflowNode, outcome: NodeOutcome) -> str | None:
        port = outcome.branch if node.type == "condition" else "out"
        if port is None:
            return None

        edges = graph.outgoing_edges(node.id, port)
        if not edges:
            return None
        if len(edges) > 1:
            LOGGER.warning(
                "Node '%s' has %d edges on port '%s'; following '%s'.",
                node.id,
                len(edges),
                port,
                edges[0].id,
            )
        return edges[0].target_node_id

    async def _record_fatal(
        self,
        state: _RunState,
        *,
        node_id: str,
        node_type: str | None,
        message: str,
    ) -> None:
        LOGGER.warning("Workflow '%s' aborted: %s", state.graph.id, message)
        state.result.events.append(
            ExecutionEvent(
                node_id=node_id,
                type=node_type,
                status="error",
                error=message,
                fatal=True,
            )
        )
        await self._emit_hook(
            "on_error",
            {
                "workflow_id": state.graph.id,
                "node_id": node_id,
                "node_type": node_type,
                "step": state.steps,
                "error": message,
                "fatal": True,
            },
        )

    async def _emit_hook(self, event: str, payload: dict[str, Any]) -> None:
        invocations = await self._hooks.emit(event, payload)
        failed = [item.callback_name for item in invocations if item.error is not None]
        if failed:
            LOGGER.debug(
                "Workflow '%s' continued after hook failure(s) on '%s': %s",
                payload.get("workflow_id"),
                event,
                ", ".join(failed),
            )


def select_start_nodes(graph: WorkflowGraph, event: TriggerEvent | None = None) -> list[WorkflowNode]:
    """Trigger nodes in authoring order, filtered by ``event`` when given.

    A graph without trigger nodes starts from every node that has no incoming
    edge, or from its first node when it has none.
    """

    triggers = graph.nodes_of_type("trigger")
    if triggers:
        if event is None:
            return triggers
        return [node for node in triggers if event.matches(node)]
    return graph.fallback_start_nodes()


async def execute_workflow(
    graph: WorkflowGraph | Mapping[str, Any] | str,
    values: Mapping[str, Any] | None = None,
    api_caller: ApiCaller | None = None,
    *,
    event: TriggerEvent | None = None,
    **engine_options: Any,
) -> ExecutionResult:
    if not isinstance(graph, WorkflowGraph):
        graph = load_workflow(graph)
    engine = WorkflowEngine(**engine_options)
    return await engine.arun(graph=graph, values=values, api_caller=api_caller, event=event)
