from formflow.workflow.calls import ApiCallError, ApiCaller, ApiRequest
from formflow.workflow.engine import (
    ExecutionEvent,
    ExecutionResult,
    WorkflowEngine,
    WorkflowExecutionError,
    execute_workflow,
    select_start_nodes,
)
from formflow.workflow.executors import DialogSpec, NodeOutcome, SelectOption, execute_node
from formflow.workflow.hooks import DEFAULT_HOOK_EVENTS, HookInvocation, WorkflowHookRegistry
from formflow.workflow.interpolation import extract_path, interpolate
from formflow.workflow.loader import GraphValidationError, load_graph, load_workflow
from formflow.workflow.models import FormWorkflow, WorkflowEdge, WorkflowGraph, WorkflowNode
from formflow.workflow.templates import WORKFLOW_TEMPLATES, instantiate_template
from formflow.workflow.triggers import (
    TriggerEvent,
    find_page_load_workflows,
    find_submit_workflows,
    find_workflows_for_field,
)
from formflow.workflow.validator import (
    ValidationIssue,
    ValidationResult,
    WorkflowValidator,
    render_issues,
    validate_workflow,
)

__all__ = [
    "DEFAULT_HOOK_EVENTS",
    "ApiCallError",
    "ApiCaller",
    "ApiRequest",
    "DialogSpec",
    "ExecutionEvent",
    "ExecutionResult",
    "FormWorkflow",
    "GraphValidationError",
    "HookInvocation",
    "NodeOutcome",
    "SelectOption",
    "TriggerEvent",
    "ValidationIssue",
    "ValidationResult",
    "WORKFLOW_TEMPLATES",
    "WorkflowEdge",
    "WorkflowEngine",
    "WorkflowExecutionError",
    "WorkflowGraph",
    "WorkflowHookRegistry",
    "WorkflowNode",
    "WorkflowValidator",
    "execute_node",
    "execute_workflow",
    "extract_path",
    "find_page_load_workflows",
    "find_submit_workflows",
    "find_workflows_for_field",
    "instantiate_template",
    "interpolate",
    "load_graph",
    "load_workflow",
    "render_issues",
    "select_start_nodes",
    "validate_workflow",
]
