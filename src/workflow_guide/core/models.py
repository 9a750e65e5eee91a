"""Data model for workflows, executions and role transitions.

Workflows are static definitions (ordered steps plus quality checks).
Executions are the mutable runs of a workflow; they are only ever changed
through the ExecutionTracker. Every record serializes to a plain dictionary
with ISO timestamps so it can be persisted as JSON.
"""

import copy
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .errors import UnknownActionError


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class ActionKind(str, Enum):
    """Kinds of work a workflow step can perform."""

    CREATE = "create"  # Render a template into a new file
    MODIFY = "modify"  # Change an existing file
    VALIDATE = "validate"  # Check a file against quality rules
    TEST = "test"  # Write a test file
    DOCUMENT = "document"  # Write documentation
    ANALYZE = "analyze"  # Inspect the project and report

    @classmethod
    def parse(cls, value: "str | ActionKind") -> "ActionKind":
        """Parse a declared action, raising UnknownActionError if unsupported."""
        try:
            return cls(value)
        except ValueError:
            raise UnknownActionError(str(value)) from None


class ExecutionStatus(str, Enum):
    """Status of a workflow execution."""

    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


class StepStatus(str, Enum):
    """Status of a single step attempt."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class CheckStatus(str, Enum):
    """Outcome of a quality rule."""

    PASS = "pass"
    FAIL = "fail"


@dataclass
class Step:
    """A unit of work within a workflow.

    ``action`` keeps the value as declared by the workflow so that an
    unsupported kind can be reported when the step is dispatched.
    """

    id: str
    name: str
    action: str
    order: int = 0
    description: str = ""
    template: str | None = None
    rules: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.action, ActionKind):
            self.action = self.action.value

    @property
    def action_kind(self) -> ActionKind:
        """Parsed action kind (raises UnknownActionError)."""
        return ActionKind.parse(self.action)

    @property
    def is_routable(self) -> bool:
        """Whether the declared action is one of the supported kinds."""
        try:
            self.action_kind
        except UnknownActionError:
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        """Serialize step to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "action": self.action,
            "order": self.order,
            "description": self.description,
            "template": self.template,
            "rules": self.rules,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        """Deserialize step from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            action=data["action"],
            order=int(data.get("order", 0)),
            description=data.get("description", ""),
            template=data.get("template"),
            rules=list(data.get("rules", [])),
        )


@dataclass
class WorkflowDefinition:
    """An ordered set of steps plus workflow-level quality checks."""

    id: str
    name: str = ""
    description: str = ""
    steps: list[Step] = field(default_factory=list)
    quality_checks: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def ordered_steps(self) -> list[Step]:
        """Steps sorted by their order index (declaration order breaks ties)."""
        return sorted(self.steps, key=lambda step: step.order)

    def get_step(self, step_id: str) -> Step | None:
        """Get step by ID."""
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize workflow to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [s.to_dict() for s in self.steps],
            "quality_checks": self.quality_checks,
            "tags": self.tags,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowDefinition":
        """Deserialize workflow from dictionary."""
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            steps=[Step.from_dict(s) for s in data.get("steps", [])],
            quality_checks=list(data.get("quality_checks", data.get("qualityChecks", []))),
            tags=list(data.get("tags", [])),
        )


@dataclass
class Template:
    """Template content rendered by create/test/document steps."""

    id: str
    name: str
    content: str
    type: str = "component"
    description: str = ""
    variables: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "type": self.type,
            "description": self.description,
            "variables": self.variables,
            "tags": self.tags,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Template":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            content=data.get("content", ""),
            type=data.get("type", "component"),
            description=data.get("description", ""),
            variables=list(data.get("variables", [])),
            tags=list(data.get("tags", [])),
        )


@dataclass
class QualityRule:
    """A pattern-based quality rule.

    For lint-style rules a match of ``pattern`` in the checked content
    means the rule fails.
    """

    id: str
    name: str
    pattern: str | None = None
    severity: str = "error"  # error, warning, info
    type: str = "lint"  # lint, test, security, performance, accessibility
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "pattern": self.pattern,
            "severity": self.severity,
            "type": self.type,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QualityRule":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            pattern=data.get("pattern"),
            severity=data.get("severity", "error"),
            type=data.get("type", "lint"),
            description=data.get("description", ""),
        )


_COUNTERS = ("files_created", "files_modified", "tests_written")
_SCORES = ("coverage", "quality_score")


@dataclass
class ExecutionMetrics:
    """Aggregated metrics of an execution.

    Counters only grow and scores keep their running maximum; ``merge`` is
    the one way to overwrite values and is reserved for completion.
    """

    files_created: int = 0
    files_modified: int = 0
    tests_written: int = 0
    coverage: float = 0.0
    quality_score: float = 0.0

    def apply(self, delta: dict[str, Any]) -> None:
        """Add a metrics delta produced by a step."""
        for name in _COUNTERS:
            increment = int(delta.get(name, 0) or 0)
            if increment > 0:
                setattr(self, name, getattr(self, name) + increment)
        for name in _SCORES:
            if name in delta and delta[name] is not None:
                setattr(self, name, max(getattr(self, name), float(delta[name])))

    def merge(self, final: dict[str, Any]) -> None:
        """Overwrite metrics with explicitly supplied final values."""
        for name in _COUNTERS:
            if final.get(name) is not None:
                setattr(self, name, int(final[name]))
        for name in _SCORES:
            if final.get(name) is not None:
                setattr(self, name, float(final[name]))

    def to_dict(self) -> dict[str, Any]:
        return {
            "files_created": self.files_created,
            "files_modified": self.files_modified,
            "tests_written": self.tests_written,
            "coverage": self.coverage,
            "quality_score": self.quality_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionMetrics":
        metrics = cls()
        metrics.merge(data)
        return metrics


@dataclass
class ExecutionContext:
    """Typed state carried by an execution.

    ``quality_gates`` is the append-only set of satisfied gate identifiers
    that role transitions are validated against.
    ``failed_checks`` maps a step id to the rule ids its latest run failed;
    a role cannot hand off while any of its steps has an entry.
    """

    project_path: str = "."
    agent_type: str = "general"
    variables: dict[str, str] = field(default_factory=dict)
    quality_gates: set[str] = field(default_factory=set)
    failed_checks: dict[str, list[str]] = field(default_factory=dict)
    decisions: list[str] = field(default_factory=list)
    pause_reason: str | None = None
    paused_at: datetime | None = None
    resumed_at: datetime | None = None
    failure_reason: str | None = None
    error: str | None = None
    failed_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_path": self.project_path,
            "agent_type": self.agent_type,
            "variables": dict(self.variables),
            "quality_gates": sorted(self.quality_gates),
            "failed_checks": {k: list(v) for k, v in self.failed_checks.items()},
            "decisions": list(self.decisions),
            "pause_reason": self.pause_reason,
            "paused_at": _iso(self.paused_at),
            "resumed_at": _iso(self.resumed_at),
            "failure_reason": self.failure_reason,
            "error": self.error,
            "failed_at": _iso(self.failed_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExecutionContext":
        return cls(
            project_path=data.get("project_path", "."),
            agent_type=data.get("agent_type", "general"),
            variables={str(k): str(v) for k, v in data.get("variables", {}).items()},
            quality_gates=set(data.get("quality_gates", [])),
            failed_checks={k: list(v) for k, v in data.get("failed_checks", {}).items()},
            decisions=list(data.get("decisions", [])),
            pause_reason=data.get("pause_reason"),
            paused_at=_from_iso(data.get("paused_at")),
            resumed_at=_from_iso(data.get("resumed_at")),
            failure_reason=data.get("failure_reason"),
            error=data.get("error"),
            failed_at=_from_iso(data.get("failed_at")),
        )


@dataclass(frozen=True)
class RoleTransition:
    """Immutable record of a handoff between two roles."""

    from_role: str
    to_role: str
    handoff_notes: str = ""
    decisions: tuple[str, ...] = ()
    rationale: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_role": self.from_role,
            "to_role": self.to_role,
            "handoff_notes": self.handoff_notes,
            "decisions": list(self.decisions),
            "rationale": self.rationale,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RoleTransition":
        return cls(
            from_role=data["from_role"],
            to_role=data["to_role"],
            handoff_notes=data.get("handoff_notes", ""),
            decisions=tuple(data.get("decisions", [])),
            rationale=data.get("rationale", ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass(frozen=True)
class QualityCheckResult:
    """Result of evaluating one quality rule against a step artifact."""

    rule_id: str
    rule_name: str
    status: CheckStatus
    message: str = ""
    suggestions: tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.PASS

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "status": self.status.value,
            "message": self.message,
            "suggestions": list(self.suggestions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QualityCheckResult":
        return cls(
            rule_id=data["rule_id"],
            rule_name=data.get("rule_name", data["rule_id"]),
            status=CheckStatus(data["status"]),
            message=data.get("message", ""),
            suggestions=tuple(data.get("suggestions", [])),
        )


@dataclass
class StepExecution:
    """One attempt at running a step within an execution."""

    id: str
    execution_id: str
    step_id: str
    role_id: str
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result: str = ""
    error: str | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    quality_checks: list[QualityCheckResult] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        execution_id: str,
        step_id: str,
        role_id: str,
        context: dict[str, Any] | None = None,
    ) -> "StepExecution":
        """Create a pending step execution with a generated ID."""
        return cls(
            id=f"step_{uuid.uuid4().hex[:12]}",
            execution_id=execution_id,
            step_id=step_id,
            role_id=role_id,
            context=dict(context or {}),
        )

    @property
    def duration(self) -> float | None:
        """Seconds between start and completion, if both are known."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "execution_id": self.execution_id,
            "step_id": self.step_id,
            "role_id": self.role_id,
            "status": self.status.value,
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "result": self.result,
            "error": self.error,
            "metrics": dict(self.metrics),
            "quality_checks": [q.to_dict() for q in self.quality_checks],
            "suggestions": list(self.suggestions),
            "context": dict(self.context),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StepExecution":
        return cls(
            id=data["id"],
            execution_id=data["execution_id"],
            step_id=data["step_id"],
            role_id=data["role_id"],
            status=StepStatus(data.get("status", "pending")),
            started_at=_from_iso(data.get("started_at")),
            completed_at=_from_iso(data.get("completed_at")),
            result=data.get("result", ""),
            error=data.get("error"),
            metrics=dict(data.get("metrics", {})),
            quality_checks=[QualityCheckResult.from_dict(q) for q in data.get("quality_checks", [])],
            suggestions=list(data.get("suggestions", [])),
            context=dict(data.get("context", {})),
        )


@dataclass
class Execution:
    """One stateful run of a workflow, from creation to a terminal status."""

    id: str
    workflow_id: str
    current_role: str
    status: ExecutionStatus = ExecutionStatus.RUNNING
    completed_steps: list[str] = field(default_factory=list)
    current_step: str = ""
    context: ExecutionContext = field(default_factory=ExecutionContext)
    metrics: ExecutionMetrics = field(default_factory=ExecutionMetrics)
    role_history: list[RoleTransition] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    logs: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        workflow_id: str,
        initial_role: str,
        context: ExecutionContext | None = None,
    ) -> "Execution":
        """Create a running execution with a generated ID."""
        now = datetime.now()
        short_id = uuid.uuid4().hex[:8]
        execution_id = f"exec_{now.strftime('%Y%m%d_%H%M%S')}_{short_id}"

        return cls(
            id=execution_id,
            workflow_id=workflow_id,
            current_role=initial_role,
            context=context or ExecutionContext(),
            created_at=now,
            updated_at=now,
            started_at=now,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def log(self, level: str, message: str, data: dict[str, Any] | None = None) -> None:
        """Add a log entry."""
        entry: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "message": message,
        }
        if data:
            entry["data"] = data
        self.logs.append(entry)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "workflow_id": self.workflow_id,
            "current_role": self.current_role,
            "status": self.status.value,
            "completed_steps": list(self.completed_steps),
            "current_step": self.current_step,
            "context": self.context.to_dict(),
            "metrics": self.metrics.to_dict(),
            "role_history": [t.to_dict() for t in self.role_history],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "logs": copy.deepcopy(self.logs),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Execution":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            workflow_id=data["workflow_id"],
            current_role=data["current_role"],
            status=ExecutionStatus(data["status"]),
            completed_steps=list(data.get("completed_steps", [])),
            current_step=data.get("current_step", ""),
            context=ExecutionContext.from_dict(data.get("context", {})),
            metrics=ExecutionMetrics.from_dict(data.get("metrics", {})),
            role_history=[RoleTransition.from_dict(t) for t in data.get("role_history", [])],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            started_at=_from_iso(data.get("started_at")),
            completed_at=_from_iso(data.get("completed_at")),
            logs=copy.deepcopy(data.get("logs", [])),
        )


@dataclass
class ValidationResult:
    """Outcome of validating a role transition."""

    valid: bool
    reason: str | None = None
    requirements: list[str] = field(default_factory=list)
    missing_gates: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid
