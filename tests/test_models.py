"""Tests for the data model."""

from datetime import datetime

import pytest

from workflow_guide.core.errors import UnknownActionError
from workflow_guide.core.models import (
    ActionKind,
    CheckStatus,
    Execution,
    ExecutionContext,
    ExecutionMetrics,
    ExecutionStatus,
    QualityCheckResult,
    RoleTransition,
    Step,
    StepExecution,
    ValidationResult,
    WorkflowDefinition,
)


class TestActionKind:
    """Tests for ActionKind parsing."""

    def test_parse_known_action(self):
        """Test that declared strings parse to their kind."""
        assert ActionKind.parse("create") == ActionKind.CREATE
        assert ActionKind.parse(ActionKind.ANALYZE) == ActionKind.ANALYZE

    def test_parse_unknown_action(self):
        """Test that unsupported actions raise UnknownActionError."""
        with pytest.raises(UnknownActionError, match="Unknown action: deploy"):
            ActionKind.parse("deploy")


class TestStep:
    """Tests for Step."""

    def test_action_kept_as_declared(self):
        """Test that an unsupported action survives construction."""
        step = Step(id="s1", name="x", action="deploy")

        assert step.action == "deploy"
        assert not step.is_routable

    def test_enum_action_is_normalized(self):
        """Test that passing an ActionKind stores its value."""
        step = Step(id="s1", name="x", action=ActionKind.TEST)

        assert step.action == "test"
        assert step.action_kind == ActionKind.TEST
        assert step.is_routable


class TestWorkflowDefinition:
    """Tests for WorkflowDefinition."""

    def test_ordered_steps(self):
        """Test that steps sort by order and keep declaration order on ties."""
        workflow = WorkflowDefinition(
            id="wf",
            steps=[
                Step(id="c", name="c", action="create", order=3),
                Step(id="a", name="a", action="create", order=1),
                Step(id="b1", name="b1", action="create", order=2),
                Step(id="b2", name="b2", action="create", order=2),
            ],
        )

        assert [s.id for s in workflow.ordered_steps()] == ["a", "b1", "b2", "c"]

    def test_get_step(self):
        """Test step lookup by id."""
        workflow = WorkflowDefinition(id="wf", steps=[Step(id="a", name="a", action="create")])

        assert workflow.get_step("a").name == "a"
        assert workflow.get_step("missing") is None

    def test_from_dict_accepts_camel_case_checks(self):
        """Test that qualityChecks is read as quality_checks."""
        workflow = WorkflowDefinition.from_dict({
            "id": "wf",
            "steps": [{"id": "a", "name": "a.py", "action": "create", "order": "2"}],
            "qualityChecks": ["no-todo"],
        })

        assert workflow.name == "wf"
        assert workflow.quality_checks == ["no-todo"]
        assert workflow.steps[0].order == 2


class TestExecutionMetrics:
    """Tests for metric accumulation."""

    def test_apply_adds_counters(self):
        """Test that counters accumulate across deltas."""
        metrics = ExecutionMetrics()
        metrics.apply({"files_created": 1})
        metrics.apply({"files_created": 2, "tests_written": 1})

        assert metrics.files_created == 3
        assert metrics.tests_written == 1

    def test_apply_never_decreases(self):
        """Test that negative deltas and lower scores are ignored."""
        metrics = ExecutionMetrics(files_created=2, coverage=80.0)
        metrics.apply({"files_created": -5, "coverage": 50.0})

        assert metrics.files_created == 2
        assert metrics.coverage == 80.0

    def test_merge_overwrites(self):
        """Test that merge replaces supplied values only."""
        metrics = ExecutionMetrics(files_created=2, quality_score=0.5)
        metrics.merge({"files_created": 1, "quality_score": None})

        assert metrics.files_created == 1
        assert metrics.quality_score == 0.5


class TestExecution:
    """Tests for Execution."""

    def test_create(self):
        """Test creating a running execution."""
        execution = Execution.create("wf", "architect")
        today = datetime.now().strftime("%Y%m%d")

        assert execution.id.startswith(f"exec_{today}_")
        assert execution.status == ExecutionStatus.RUNNING
        assert execution.current_role == "architect"
        assert execution.started_at is not None
        assert execution.completed_steps == []

    def test_ids_are_unique(self):
        """Test that execution IDs are unique."""
        assert Execution.create("wf", "r").id != Execution.create("wf", "r").id

    def test_log_entries(self):
        """Test logging entries."""
        execution = Execution.create("wf", "r")
        execution.log("WARNING", "Careful", {"key": "value"})

        assert execution.logs[0]["level"] == "WARNING"
        assert execution.logs[0]["message"] == "Careful"
        assert execution.logs[0]["data"] == {"key": "value"}

    def test_dict_preserves_history_and_gates(self):
        """Test that serialization keeps transitions, gates and timestamps."""
        execution = Execution.create(
            "wf",
            "architect",
            ExecutionContext(project_path="/tmp/p", quality_gates={"b", "a"}),
        )
        execution.role_history.append(
            RoleTransition(from_role="product-manager", to_role="architect", decisions=("use sqlite",))
        )
        execution.status = ExecutionStatus.PAUSED

        data = execution.to_dict()
        restored = Execution.from_dict(data)

        assert data["context"]["quality_gates"] == ["a", "b"]
        assert restored.context.quality_gates == {"a", "b"}
        assert restored.status == ExecutionStatus.PAUSED
        assert restored.role_history[0].decisions == ("use sqlite",)
        assert restored.created_at == execution.created_at

    def test_terminal_status(self):
        """Test which statuses are terminal."""
        assert ExecutionStatus.COMPLETED.is_terminal
        assert ExecutionStatus.FAILED.is_terminal
        assert not ExecutionStatus.RUNNING.is_terminal
        assert not ExecutionStatus.PAUSED.is_terminal


class TestStepExecution:
    """Tests for StepExecution."""

    def test_duration(self):
        """Test duration is derived from start and completion."""
        record = StepExecution.create("exec_1", "s1", "builder")
        assert record.duration is None

        record.started_at = datetime(2024, 1, 1, 12, 0, 0)
        record.completed_at = datetime(2024, 1, 1, 12, 0, 3)

        assert record.duration == 3.0

    def test_from_dict_restores_checks(self):
        """Test that quality checks are restored as typed results."""
        record = StepExecution.create("exec_1", "s1", "builder")
        record.quality_checks.append(
            QualityCheckResult(rule_id="r", rule_name="R", status=CheckStatus.FAIL, suggestions=("fix",))
        )

        restored = StepExecution.from_dict(record.to_dict())

        assert not restored.quality_checks[0].passed
        assert restored.quality_checks[0].suggestions == ("fix",)


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_truthiness(self):
        """Test that the result is truthy only when valid."""
        assert ValidationResult(valid=True)
        assert not ValidationResult(valid=False, reason="invalid role")
