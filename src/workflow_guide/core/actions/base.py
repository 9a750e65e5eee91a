"""Base interface for step action handlers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ..errors import NotFoundError
from ..models import ActionKind, ExecutionContext, QualityCheckResult, QualityRule, Step, Template
from ..roles.base import Role
from ..storage import WorkflowStorage
from ..templates import render_for_role


@dataclass
class StepResult:
    """Output of dispatching one step.

    ``artifact`` is the text the step produced or inspected; quality rules
    are evaluated against it.
    """

    step_id: str
    role_id: str
    success: bool
    result: str = ""
    metrics_delta: dict[str, Any] = field(default_factory=dict)
    quality_checks: list[QualityCheckResult] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    artifact: str | None = None
    artifact_path: str | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def failure(cls, step: Step, role: Role, error: str) -> "StepResult":
        return cls(
            step_id=step.id,
            role_id=role.id,
            success=False,
            result=f"Step execution failed: {error}",
            error=error,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "step_id": self.step_id,
            "role_id": self.role_id,
            "success": self.success,
            "result": self.result,
            "metrics_delta": self.metrics_delta,
            "quality_checks": [q.to_dict() for q in self.quality_checks],
            "suggestions": self.suggestions,
            "artifact_path": self.artifact_path,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class ActionRequest:
    """Everything a handler needs to perform one step."""

    step: Step
    role: Role
    context: ExecutionContext
    variables: dict[str, str] = field(default_factory=dict)
    rules: list[QualityRule] = field(default_factory=list)

    @property
    def project_path(self) -> Path:
        return Path(self.context.project_path)

    @property
    def target_path(self) -> Path:
        """File the step works on, relative to the project."""
        return self.project_path / self.step.name

    def render_variables(self) -> dict[str, str]:
        """Execution variables overlaid with call variables and step facts."""
        merged = {
            "projectPath": str(self.project_path),
            "agentType": self.context.agent_type,
            "stepId": self.step.id,
            "stepName": self.step.name,
        }
        merged.update(self.context.variables)
        merged.update(self.variables)
        return merged


class ActionHandler(ABC):
    """Base class for action handlers.

    Handlers raise on failure; the dispatcher turns exceptions into failed
    step results.
    """

    kind: ActionKind

    def __init__(self, storage: WorkflowStorage):
        self.storage = storage

    @abstractmethod
    def execute(self, request: ActionRequest) -> StepResult:
        """Perform the step and describe what was done."""

    def load_template(self, template_id: str) -> Template:
        template = self.storage.get_template(template_id)
        if template is None:
            raise NotFoundError("Template", template_id)
        return template

    def render(self, template: Template, request: ActionRequest) -> str:
        return render_for_role(template.content, request.role, request.render_variables())

    @staticmethod
    def write_file(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    @staticmethod
    def read_file(path: Path) -> str:
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return path.read_text(encoding="utf-8")

    def success(self, request: ActionRequest, result: str, **fields: Any) -> StepResult:
        return StepResult(
            step_id=request.step.id,
            role_id=request.role.id,
            success=True,
            result=result,
            **fields,
        )
