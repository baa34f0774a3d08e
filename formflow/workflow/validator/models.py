from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


IssueSeverity = Literal["error", "warning"]


@dataclass(slots=True)
class ValidationIssue:
    code: str
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None
    hint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "severity": self.severity,
            "message": self.message,
        }
        if self.node_id:
            payload["nodeId"] = self.node_id
        if self.edge_id:
            payload["edgeId"] = self.edge_id
        if self.hint:
            payload["hint"] = self.hint
        return payload


@dataclass(slots=True)
class ValidationResult:
    valid: bool
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[ValidationIssue]:
        return [item for item in self.issues if item.severity == "error"]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [item for item in self.issues if item.severity == "warning"]

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "issues": [item.to_dict() for item in self.issues]}
