from formflow.workflow.validator.diagnostics import render_issue, render_issues
from formflow.workflow.validator.models import IssueSeverity, ValidationIssue, ValidationResult
from formflow.workflow.validator.validator import WorkflowValidator, validate_workflow

__all__ = [
    "IssueSeverity",
    "ValidationIssue",
    "ValidationResult",
    "WorkflowValidator",
    "render_issue",
    "render_issues",
    "validate_workflow",
]
