"""Workflow orchestrator - drives executions through their roles.

One ``advance`` call runs the current role's pending steps, records every
outcome through the tracker, and then decides whether the execution hands
off to the next role, completes, fails or stays put:

1. Terminal and paused executions are not advanced.
2. The batch is the role's steps not yet completed, plus any step whose
   action is not supported (these fail and make the execution fail).
3. Each step is dispatched, recorded and quality checked in order. A failed
   step does not stop the batch.
4. A role without next roles completes the execution once all its steps are
   completed. Otherwise, once all its steps are completed and the batch's
   checks passed, the handoff to the first next role is validated against
   the role's quality gates and recorded.
"""

from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from .actions import StepDispatcher, StepResult
from .errors import NotFoundError, TerminalExecutionError
from .guidance import GuidanceEngine
from .models import (
    Execution,
    ExecutionContext,
    ExecutionStatus,
    QualityCheckResult,
    QualityRule,
    RoleTransition,
    Step,
    StepStatus,
    ValidationResult,
    WorkflowDefinition,
)
from .quality import QualityGateEvaluator, select_rules
from .roles.base import Role
from .roles.defaults import PRODUCT_MANAGER
from .roles.registry import RoleRegistry
from .storage import WorkflowStorage
from .tracker import ExecutionTracker

if TYPE_CHECKING:
    from ..agents.advisor import StepAdvisor

DEFAULT_MAX_ROUNDS = 20


@dataclass
class StepOutcome:
    """Summary of one step attempt within an advance."""

    step_id: str
    step_name: str
    action: str
    role_id: str
    status: StepStatus
    step_execution_id: str | None = None
    result: str = ""
    error: str | None = None
    quality_checks: list[QualityCheckResult] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == StepStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "step_name": self.step_name,
            "action": self.action,
            "role_id": self.role_id,
            "status": self.status.value,
            "step_execution_id": self.step_execution_id,
            "result": self.result,
            "error": self.error,
            "quality_checks": [q.to_dict() for q in self.quality_checks],
            "suggestions": self.suggestions,
        }


@dataclass
class WorkflowRunResult:
    """Aggregate result of one or more advance calls."""

    success: bool
    execution_id: str | None
    status: ExecutionStatus | None = None
    current_role: str | None = None
    next_role: str | None = None
    completed_steps: list[StepOutcome] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    transitions: list[RoleTransition] = field(default_factory=list)
    rounds: int = 1

    @property
    def transition(self) -> RoleTransition | None:
        """The most recent handoff recorded by this result, if any."""
        return self.transitions[-1] if self.transitions else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "execution_id": self.execution_id,
            "status": self.status.value if self.status else None,
            "current_role": self.current_role,
            "next_role": self.next_role,
            "completed_steps": [s.to_dict() for s in self.completed_steps],
            "metrics": self.metrics,
            "errors": self.errors,
            "suggestions": self.suggestions,
            "transitions": [t.to_dict() for t in self.transitions],
            "rounds": self.rounds,
        }


class WorkflowOrchestrator:
    """Main engine that coordinates roles, steps and quality gates."""

    def __init__(
        self,
        storage: WorkflowStorage,
        registry: RoleRegistry | None = None,
        tracker: ExecutionTracker | None = None,
        dispatcher: StepDispatcher | None = None,
        evaluator: QualityGateEvaluator | None = None,
        guidance: GuidanceEngine | None = None,
        advisor: "StepAdvisor | None" = None,
    ):
        """Initialize the orchestrator.

        Args:
            storage: Source of workflows, templates and quality rules
            registry: Role table (built-in roles if None)
            tracker: Execution tracker (in-memory if None)
            dispatcher: Step dispatcher (built from storage if None)
            evaluator: Quality gate evaluator
            guidance: Guidance engine for handoff notes and step insights
            advisor: Optional LLM advisor adding suggestions to step results
        """
        self.storage = storage
        self.registry = registry or RoleRegistry.default()
        self.tracker = tracker or ExecutionTracker()
        self.evaluator = evaluator or QualityGateEvaluator()
        self.guidance = guidance or GuidanceEngine(self.registry)
        self.dispatcher = dispatcher or StepDispatcher(storage, self.evaluator, self.guidance)
        self.advisor = advisor

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def determine_initial_role(self, agent_type: str) -> str:
        """First role the agent supports, else product-manager."""
        roles = self.registry.get_roles_for_agent(agent_type)
        return roles[0].id if roles else PRODUCT_MANAGER

    def create_execution(
        self,
        workflow_id: str,
        initial_role: str | None = None,
        context: ExecutionContext | None = None,
        agent_type: str | None = None,
    ) -> Execution | None:
        """Start an execution of ``workflow_id``.

        Returns None if the workflow or an explicit ``initial_role`` is unknown.
        """
        if self.storage.get_workflow(workflow_id) is None:
            return None
        if initial_role is not None and self.registry.get_role(initial_role) is None:
            return None

        context = context or ExecutionContext()
        if agent_type:
            context.agent_type = agent_type

        role_id = initial_role or self.determine_initial_role(context.agent_type)
        return self.tracker.create_execution(workflow_id, role_id, context)

    # ------------------------------------------------------------------
    # Advancing
    # ------------------------------------------------------------------

    def select_batch(
        self,
        workflow: WorkflowDefinition,
        role_steps: list[Step],
        execution: Execution,
        retry_completed: bool = False,
    ) -> list[Step]:
        """Steps to attempt in this advance, in ascending order."""
        wanted = {
            step.id
            for step in role_steps
            if retry_completed or step.id not in execution.completed_steps
        }
        wanted.update(step.id for step in workflow.steps if not step.is_routable)
        return [step for step in workflow.ordered_steps() if step.id in wanted]

    def advance(
        self,
        execution_id: str,
        variables: dict[str, str] | None = None,
        retry_completed: bool = False,
    ) -> WorkflowRunResult:
        """Run the current role's pending steps and decide the next state.

        Args:
            execution_id: Execution to advance
            variables: Template variables for this call
            retry_completed: Re-run steps that already completed

        Returns:
            WorkflowRunResult; ``success`` is False if any step or the
            handoff failed
        """
        result = WorkflowRunResult(success=False, execution_id=execution_id)

        execution = self.tracker.get_execution(execution_id)
        if execution is None:
            result.errors.append(f"Execution not found: {execution_id}")
            return result

        if execution.is_terminal:
            result.errors.append(f"execution is terminal ({execution.status.value})")
            return self._finish(result, execution_id)
        if execution.status == ExecutionStatus.PAUSED:
            result.errors.append("execution is paused")
            return self._finish(result, execution_id)

        workflow = self.storage.get_workflow(execution.workflow_id)
        if workflow is None:
            self.tracker.fail_execution(execution_id, "workflow not found", error=execution.workflow_id)
            result.errors.append(f"Workflow not found: {execution.workflow_id}")
            return self._finish(result, execution_id)

        role = self.registry.get_role(execution.current_role)
        if role is None:
            self.tracker.fail_execution(execution_id, "invalid role", error=f"Unknown role: {execution.current_role}")
            result.errors.append(f"invalid role: {execution.current_role}")
            return self._finish(result, execution_id)

        role_steps = self.registry.get_steps_for_role(workflow, role)
        batch = self.select_batch(workflow, role_steps, execution, retry_completed)
        rules = self.storage.list_quality_rules()

        self.tracker.log(
            execution_id,
            "INFO",
            f"Advancing as {role.id} with {len(batch)} step(s)",
            {"steps": [s.id for s in batch]},
        )

        batch_checks: list[QualityCheckResult] = []
        unsupported: list[str] = []

        for step in batch:
            outcome = self._run_step(execution, workflow, step, role, variables, rules)
            result.completed_steps.append(outcome)
            result.suggestions.extend(outcome.suggestions)
            batch_checks.extend(outcome.quality_checks)

            if not outcome.success:
                result.errors.append(f"Step {step.id} failed: {outcome.error}")
                if not step.is_routable:
                    unsupported.append(step.action)

        if unsupported:
            self.tracker.fail_execution(
                execution_id,
                "unsupported action",
                error=f"Unknown action(s): {', '.join(dict.fromkeys(unsupported))}",
            )
            return self._finish(result, execution_id)

        self._decide(execution_id, role, role_steps, batch_checks, result)
        return self._finish(result, execution_id)

    def _run_step(
        self,
        execution: Execution,
        workflow: WorkflowDefinition,
        step: Step,
        role: Role,
        variables: dict[str, str] | None,
        rules: list[QualityRule],
    ) -> StepOutcome:
        """Dispatch one step and record everything about it."""
        self.tracker.set_current_step(execution.id, step.id)
        step_execution = self.tracker.add_step_execution(
            execution.id, step.id, role.id, {"action": step.action}
        )
        self.tracker.update_step_execution(step_execution.id, status=StepStatus.RUNNING)

        step_result = self.dispatcher.execute_step(
            step,
            role,
            execution.context,
            variables,
            select_rules(step, rules, workflow),
        )

        if not step_result.success:
            self.tracker.update_step_execution(
                step_execution.id,
                status=StepStatus.FAILED,
                result=step_result.result,
                error=step_result.error,
            )
            self.tracker.log(execution.id, "ERROR", f"Step {step.id} failed: {step_result.error}")
            return StepOutcome(
                step_id=step.id,
                step_name=step.name,
                action=step.action,
                role_id=role.id,
                status=StepStatus.FAILED,
                step_execution_id=step_execution.id,
                result=step_result.result,
                error=step_result.error,
            )

        suggestions = list(step_result.suggestions)
        suggestions.extend(self._advise(execution.id, step, role, step_result))

        self.tracker.update_step_execution(
            step_execution.id,
            status=StepStatus.COMPLETED,
            result=step_result.result,
            metrics=dict(step_result.metrics_delta),
            suggestions=suggestions,
        )
        self.tracker.complete_step(execution.id, step.id, step_result.metrics_delta)

        for check in step_result.quality_checks:
            self.tracker.add_quality_check(step_execution.id, check)
        gates = self.evaluator.satisfied_gates(step_result.quality_checks)
        if gates:
            self.tracker.record_quality_gates(execution.id, gates)

        failed_checks = self.evaluator.failed_rules(step_result.quality_checks)
        self.tracker.record_failed_checks(execution.id, step.id, failed_checks)
        self.tracker.log(
            execution.id,
            "WARNING" if failed_checks else "INFO",
            f"Step {step.id} completed: {step_result.result}",
            {"failed_checks": failed_checks} if failed_checks else None,
        )

        return StepOutcome(
            step_id=step.id,
            step_name=step.name,
            action=step.action,
            role_id=role.id,
            status=StepStatus.COMPLETED,
            step_execution_id=step_execution.id,
            result=step_result.result,
            quality_checks=list(step_result.quality_checks),
            suggestions=suggestions,
        )

    def _advise(self, execution_id: str, step: Step, role: Role, step_result: StepResult) -> list[str]:
        if self.advisor is None:
            return []
        output = self.advisor.advise(step, role, step_result)
        if not output.success:
            self.tracker.log(execution_id, "WARNING", output.summary)
            return []
        return list(output.suggestions)

    def _decide(
        self,
        execution_id: str,
        role: Role,
        role_steps: list[Step],
        batch_checks: list[QualityCheckResult],
        result: WorkflowRunResult,
    ) -> None:
        """Complete, hand off or stay after a batch."""
        execution = self.tracker.get_execution(execution_id)
        pending = [s.id for s in role_steps if s.id not in execution.completed_steps]
        next_roles = self.registry.get_next_roles(role.id)

        if pending:
            self.tracker.log(execution_id, "INFO", f"Waiting on steps: {', '.join(pending)}")
            return

        if not next_roles:
            self.tracker.complete_execution(execution_id)
            return

        failed = [
            rule_id
            for step in role_steps
            for rule_id in execution.context.failed_checks.get(step.id, [])
        ]
        if failed:
            result.errors.append(f"Quality checks failed: {', '.join(dict.fromkeys(failed))}")
            return

        target = next_roles[0]
        validation = self.registry.validate_role_transition(execution, target.id)
        if not validation:
            result.errors.append(self._describe_invalid(target.id, validation))
            self.tracker.log(
                execution_id,
                "WARNING",
                f"Transition to {target.id} blocked: {validation.reason}",
                {"missing_gates": validation.missing_gates} if validation.missing_gates else None,
            )
            return

        updated = self.tracker.transition_role(
            execution_id,
            target.id,
            self.guidance.handoff_notes(role, batch_checks),
            decisions=execution.context.decisions,
            rationale=f"All {role.display_name} steps completed and quality gates satisfied",
        )
        result.transitions.append(updated.role_history[-1])

    @staticmethod
    def _describe_invalid(target: str, validation: ValidationResult) -> str:
        message = f"Cannot transition to {target}: {validation.reason}"
        if validation.missing_gates:
            message += f" (missing: {', '.join(validation.missing_gates)})"
        elif validation.requirements:
            message += f" (allowed: {', '.join(validation.requirements)})"
        return message

    def _finish(self, result: WorkflowRunResult, execution_id: str) -> WorkflowRunResult:
        """Fill the result from the execution's current state."""
        execution = self.tracker.get_execution(execution_id)
        if execution is not None:
            result.status = execution.status
            result.current_role = execution.current_role
            next_roles = self.registry.get_next_roles(execution.current_role)
            result.next_role = next_roles[0].id if next_roles else None
            result.metrics = execution.metrics.to_dict()
        result.success = not result.errors
        return result

    def run(
        self,
        execution_id: str,
        variables: dict[str, str] | None = None,
        max_rounds: int | None = None,
    ) -> WorkflowRunResult:
        """Advance repeatedly until terminal, paused or no longer progressing."""
        rounds = max_rounds or DEFAULT_MAX_ROUNDS
        aggregate = WorkflowRunResult(success=True, execution_id=execution_id, rounds=0)

        for _ in range(rounds):
            before = self.tracker.get_execution(execution_id)
            step_result = self.advance(execution_id, variables)
            after = self.tracker.get_execution(execution_id)

            aggregate.rounds += 1
            aggregate.completed_steps.extend(step_result.completed_steps)
            aggregate.errors.extend(step_result.errors)
            aggregate.suggestions.extend(step_result.suggestions)
            aggregate.transitions.extend(step_result.transitions)

            if before is None or after is None or after.status != ExecutionStatus.RUNNING:
                break
            progressed = (
                len(after.completed_steps) > len(before.completed_steps)
                or after.current_role != before.current_role
            )
            if not progressed:
                break

        self._finish(aggregate, execution_id)
        if aggregate.status is not None and aggregate.status.is_terminal:
            self.save_report(execution_id)
        return aggregate

    def execute_workflow(
        self,
        workflow_id: str,
        context: ExecutionContext | None = None,
        variables: dict[str, str] | None = None,
        agent_type: str | None = None,
        initial_role: str | None = None,
        max_rounds: int | None = None,
    ) -> WorkflowRunResult:
        """Create an execution and run it as far as it goes."""
        execution = self.create_execution(workflow_id, initial_role, context, agent_type)
        if execution is None:
            if self.storage.get_workflow(workflow_id) is None:
                error = f"Workflow not found: {workflow_id}"
            else:
                error = f"Role not found: {initial_role}"
            return WorkflowRunResult(
                success=False,
                execution_id=None,
                errors=[error],
                rounds=0,
            )
        return self.run(execution.id, variables, max_rounds)

    # ------------------------------------------------------------------
    # Lifecycle controls
    # ------------------------------------------------------------------

    def pause(self, execution_id: str, reason: str) -> Execution | None:
        return self.tracker.pause_execution(execution_id, reason)

    def resume(self, execution_id: str) -> Execution | None:
        return self.tracker.resume_execution(execution_id)

    def fail(self, execution_id: str, reason: str, error: str | None = None) -> Execution | None:
        return self.tracker.fail_execution(execution_id, reason, error)

    def approve_gates(self, execution_id: str, gates: list[str], approver: str = "manual") -> Execution | None:
        """Record gates satisfied outside of automated quality checks.

        Approving a gate also waives outstanding failures of the rule with
        the same id.
        """
        execution = self.tracker.record_quality_gates(execution_id, gates)
        if execution is not None:
            execution = self.tracker.waive_failed_checks(execution_id, gates)
            self.tracker.log(execution_id, "INFO", f"Gates approved by {approver}", {"gates": list(gates)})
        return execution

    def record_decisions(self, execution_id: str, decisions: list[str]) -> Execution | None:
        """Add decisions that the next role handoff carries."""
        execution = self.tracker.add_decisions(execution_id, decisions)
        if execution is not None:
            self.tracker.log(execution_id, "INFO", "Decisions recorded", {"decisions": list(decisions)})
        return execution

    def transition(
        self,
        execution_id: str,
        to_role: str,
        handoff_notes: str | None = None,
        rationale: str = "Manual transition",
        decisions: list[str] | None = None,
    ) -> ValidationResult | None:
        """Validate and record a caller-requested handoff.

        Returns None for an unknown execution.

        Raises:
            TerminalExecutionError: If the execution is completed or failed
        """
        execution = self.tracker.get_execution(execution_id)
        if execution is None:
            return None
        if execution.is_terminal:
            raise TerminalExecutionError(execution.id, execution.status.value)

        validation = self.registry.validate_role_transition(execution, to_role)
        if not validation:
            return validation

        if decisions:
            execution = self.tracker.add_decisions(execution_id, decisions)
        if handoff_notes is None:
            role = self.registry.get_role(execution.current_role)
            handoff_notes = self.guidance.handoff_notes(role, [])

        self.tracker.transition_role(
            execution_id,
            to_role,
            handoff_notes,
            decisions=execution.context.decisions,
            rationale=rationale,
        )
        return validation

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def generate_report(self, execution_id: str) -> str:
        """Render a Markdown report of an execution.

        Raises:
            NotFoundError: If the execution is unknown
        """
        history = self.tracker.get_execution_history(execution_id)
        if history is None:
            raise NotFoundError("Execution", execution_id)

        execution = history.execution
        summary = self.tracker.get_execution_metrics(execution_id)

        step_lines = ["| # | Step | Role | Status | Duration |", "|---|------|------|--------|----------|"]
        for i, step in enumerate(history.steps, 1):
            duration = f"{step.duration:.2f}s" if step.duration is not None else "-"
            step_lines.append(f"| {i} | {step.step_id} | {step.role_id} | {step.status.value} | {duration} |")

        transition_lines = [
            f"- {t.timestamp.isoformat()} `{t.from_role}` -> `{t.to_role}`: {t.rationale or 'no rationale'}"
            for t in history.transitions
        ]

        errors = [
            f"- `{step.step_id}`: {step.error}" for step in history.steps if step.error
        ]
        if execution.context.failure_reason:
            errors.insert(0, f"- Execution failed: {execution.context.failure_reason} ({execution.context.error or 'no detail'})")

        metrics = execution.metrics
        return f"""# Workflow Execution Report

## Execution Information

| Property | Value |
|----------|-------|
| Execution ID | `{execution.id}` |
| Workflow | `{execution.workflow_id}` |
| Agent | {execution.context.agent_type} |
| Current Role | {execution.current_role} |
| Status | {execution.status.value} |
| Created | {execution.created_at.isoformat()} |
| Completed | {execution.completed_at.isoformat() if execution.completed_at else "N/A"} |

## Steps

{chr(10).join(step_lines) if history.steps else "No steps executed."}

## Role Transitions

{chr(10).join(transition_lines) if transition_lines else "No role transitions."}

## Metrics

- Files created: {metrics.files_created}
- Files modified: {metrics.files_modified}
- Tests written: {metrics.tests_written}
- Success rate: {summary.success_rate:.0%}
- Average step time: {summary.average_step_time:.2f}s
- Satisfied gates: {", ".join(sorted(execution.context.quality_gates)) or "none"}

## Errors

{chr(10).join(errors) if errors else "No errors recorded."}

---
*Generated by workflow-guide*
"""

    def save_report(self, execution_id: str) -> str | None:
        """Write the report through the tracker's store; returns its path if any."""
        if self.tracker.store is None:
            return None
        return self.tracker.store.save_report(execution_id, self.generate_report(execution_id))
