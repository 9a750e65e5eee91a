"""Execution tracker - the single writer of execution state.

Every change to an execution goes through this class. Changes to one
execution id are serialized by a lock scoped to that id, then written to the
backing store (if any) before the call returns. Callers get copies, so the
tracker's records can only change through its methods.

Unknown execution ids return None. Mutating a completed or failed execution
raises TerminalExecutionError; logging to it is still allowed.
"""

import copy
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .errors import InvalidStateError, TerminalExecutionError
from .models import (
    Execution,
    ExecutionContext,
    ExecutionStatus,
    QualityCheckResult,
    RoleTransition,
    StepExecution,
    StepStatus,
)
from .persistence import ExecutionStore

_STEP_FIELDS = ("result", "error", "metrics", "suggestions", "context")


@dataclass
class ExecutionHistory:
    """An execution together with its step records and role handoffs."""

    execution: Execution
    steps: list[StepExecution] = field(default_factory=list)
    transitions: list[RoleTransition] = field(default_factory=list)


@dataclass
class ExecutionMetricsSummary:
    """Derived statistics over an execution's step records."""

    total_steps: int
    completed_steps: int
    success_rate: float
    average_step_time: float
    quality_score: float
    role_transitions: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_steps": self.total_steps,
            "completed_steps": self.completed_steps,
            "success_rate": self.success_rate,
            "average_step_time": self.average_step_time,
            "quality_score": self.quality_score,
            "role_transitions": self.role_transitions,
        }


class ExecutionTracker:
    """Owns executions and step executions."""

    def __init__(self, store: ExecutionStore | None = None):
        """Initialize the tracker.

        Args:
            store: Optional backing store written after every change
        """
        self.store = store
        self._executions: dict[str, Execution] = {}
        self._steps: dict[str, StepExecution] = {}
        self._step_ids: dict[str, list[str]] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _lock_for(self, execution_id: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(execution_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[execution_id] = lock
            return lock

    def _load(self, execution_id: str) -> Execution | None:
        execution = self._executions.get(execution_id)
        if execution is not None or self.store is None:
            return execution

        loaded = self.store.load(execution_id)
        if loaded is None:
            return None

        execution, steps = loaded
        self._executions[execution.id] = execution
        self._step_ids[execution.id] = [s.id for s in steps]
        for step in steps:
            self._steps[step.id] = step
        return execution

    def _steps_of(self, execution_id: str) -> list[StepExecution]:
        return [self._steps[sid] for sid in self._step_ids.get(execution_id, [])]

    def _persist(self, execution: Execution) -> None:
        if self.store is not None:
            self.store.save(execution, self._steps_of(execution.id))

    def _snapshot(self, execution_id: str) -> tuple[Execution, list[str], dict[str, StepExecution]]:
        step_ids = list(self._step_ids.get(execution_id, []))
        return (
            copy.deepcopy(self._executions[execution_id]),
            step_ids,
            {sid: copy.deepcopy(self._steps[sid]) for sid in step_ids},
        )

    def _restore(self, execution_id: str, snapshot: tuple[Execution, list[str], dict[str, StepExecution]]) -> None:
        execution, step_ids, steps = snapshot
        for sid in self._step_ids.get(execution_id, []):
            if sid not in steps:
                self._steps.pop(sid, None)
        self._executions[execution_id] = execution
        self._step_ids[execution_id] = step_ids
        self._steps.update(steps)

    @contextmanager
    def _mutating(self, execution_id: str, allow_terminal: bool = False) -> Iterator[Execution | None]:
        """Lock, load and check an execution, then persist it after the change.

        If the change or the write fails, the in-memory records are rolled
        back so they keep matching the store.
        """
        with self._lock_for(execution_id):
            execution = self._load(execution_id)
            if execution is None:
                yield None
                return
            if execution.is_terminal and not allow_terminal:
                raise TerminalExecutionError(execution.id, execution.status.value)

            snapshot = self._snapshot(execution_id)
            try:
                yield execution
                execution.touch()
                self._persist(execution)
            except Exception:
                self._restore(execution_id, snapshot)
                raise

    # ------------------------------------------------------------------
    # Executions
    # ------------------------------------------------------------------

    def create_execution(
        self,
        workflow_id: str,
        initial_role: str,
        context: ExecutionContext | None = None,
    ) -> Execution:
        """Create a running execution.

        The supplied context seeds variables, project path, agent type and
        decisions only. Gates and lifecycle fields always start empty.
        """
        seed = ExecutionContext()
        if context is not None:
            seed.project_path = context.project_path
            seed.agent_type = context.agent_type
            seed.variables = dict(context.variables)
            seed.decisions = list(context.decisions)

        execution = Execution.create(workflow_id, initial_role, seed)
        execution.log("INFO", f"Execution created for workflow {workflow_id}", {"role": initial_role})

        with self._lock_for(execution.id):
            if self.store is not None:
                self.store.save(execution, [])
            self._executions[execution.id] = execution
            self._step_ids[execution.id] = []
            return copy.deepcopy(execution)

    def get_execution(self, execution_id: str) -> Execution | None:
        with self._lock_for(execution_id):
            execution = self._load(execution_id)
            return copy.deepcopy(execution) if execution else None

    def list_executions(
        self,
        status: ExecutionStatus | None = None,
        role: str | None = None,
    ) -> list[Execution]:
        """List known executions, optionally filtered by status and current role."""
        ids = list(self._executions)
        if self.store is not None:
            ids.extend(i for i in self.store.list_ids() if i not in self._executions)

        result = []
        for execution_id in ids:
            execution = self.get_execution(execution_id)
            if execution is None:
                continue
            if status is not None and execution.status != status:
                continue
            if role is not None and execution.current_role != role:
                continue
            result.append(execution)
        return sorted(result, key=lambda e: e.created_at)

    # ------------------------------------------------------------------
    # Step executions
    # ------------------------------------------------------------------

    def add_step_execution(
        self,
        execution_id: str,
        step_id: str,
        role_id: str,
        context: dict[str, Any] | None = None,
    ) -> StepExecution | None:
        """Record a pending attempt of ``step_id``."""
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            step_execution = StepExecution.create(execution_id, step_id, role_id, context)
            self._steps[step_execution.id] = step_execution
            self._step_ids.setdefault(execution_id, []).append(step_execution.id)
            return copy.deepcopy(step_execution)

    def get_step_execution(self, step_execution_id: str) -> StepExecution | None:
        step_execution = self._steps.get(step_execution_id)
        return copy.deepcopy(step_execution) if step_execution else None

    def update_step_execution(self, step_execution_id: str, **changes: Any) -> StepExecution | None:
        """Update a step record.

        Moving to running stamps ``started_at`` and moving to completed or
        failed stamps ``completed_at``; each timestamp is set at most once.
        """
        unknown = [name for name in changes if name != "status" and name not in _STEP_FIELDS]
        if unknown:
            raise ValueError(f"Cannot update step execution fields: {', '.join(unknown)}")

        step_execution = self._steps.get(step_execution_id)
        if step_execution is None:
            return None

        with self._mutating(step_execution.execution_id) as execution:
            if execution is None:
                return None

            if "status" in changes:
                status = StepStatus(changes.pop("status"))
                step_execution.status = status
                now = datetime.now()
                if status == StepStatus.RUNNING and step_execution.started_at is None:
                    step_execution.started_at = now
                if status in (StepStatus.COMPLETED, StepStatus.FAILED):
                    if step_execution.started_at is None:
                        step_execution.started_at = now
                    if step_execution.completed_at is None:
                        step_execution.completed_at = now

            for name, value in changes.items():
                setattr(step_execution, name, value)

            return copy.deepcopy(step_execution)

    def add_quality_check(self, step_execution_id: str, result: QualityCheckResult) -> StepExecution | None:
        step_execution = self._steps.get(step_execution_id)
        if step_execution is None:
            return None

        with self._mutating(step_execution.execution_id) as execution:
            if execution is None:
                return None
            step_execution.quality_checks.append(result)
            return copy.deepcopy(step_execution)

    # ------------------------------------------------------------------
    # Execution state
    # ------------------------------------------------------------------

    def complete_step(
        self,
        execution_id: str,
        step_id: str,
        metrics_delta: dict[str, Any] | None = None,
    ) -> Execution | None:
        """Mark ``step_id`` completed (once) and apply its metrics delta."""
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            if step_id not in execution.completed_steps:
                execution.completed_steps.append(step_id)
            execution.metrics.apply(metrics_delta or {})
            return copy.deepcopy(execution)

    def record_metrics(self, execution_id: str, delta: dict[str, Any]) -> Execution | None:
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            execution.metrics.apply(delta)
            return copy.deepcopy(execution)

    def record_quality_gates(self, execution_id: str, gates: Iterable[str]) -> Execution | None:
        """Add gate ids to the satisfied set. Gates are never removed."""
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            execution.context.quality_gates.update(gates)
            return copy.deepcopy(execution)

    def record_failed_checks(self, execution_id: str, step_id: str, rule_ids: Iterable[str]) -> Execution | None:
        """Replace the failed rule ids of ``step_id``'s latest run; none clears it."""
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            failed = list(dict.fromkeys(rule_ids))
            if failed:
                execution.context.failed_checks[step_id] = failed
            else:
                execution.context.failed_checks.pop(step_id, None)
            return copy.deepcopy(execution)

    def waive_failed_checks(self, execution_id: str, rule_ids: Iterable[str]) -> Execution | None:
        """Drop ``rule_ids`` from every step's outstanding failures."""
        waived = set(rule_ids)
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            outstanding = {}
            for step_id, failed in execution.context.failed_checks.items():
                remaining = [rule_id for rule_id in failed if rule_id not in waived]
                if remaining:
                    outstanding[step_id] = remaining
            execution.context.failed_checks = outstanding
            return copy.deepcopy(execution)

    def add_decisions(self, execution_id: str, decisions: Iterable[str]) -> Execution | None:
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            execution.context.decisions.extend(decisions)
            return copy.deepcopy(execution)

    def set_current_step(self, execution_id: str, step_id: str) -> Execution | None:
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            execution.current_step = step_id
            return copy.deepcopy(execution)

    def transition_role(
        self,
        execution_id: str,
        to_role: str,
        handoff_notes: str,
        decisions: Iterable[str] = (),
        rationale: str = "",
    ) -> Execution | None:
        """Record a handoff to ``to_role``.

        Callers validate the transition first; this only records it.
        """
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            transition = RoleTransition(
                from_role=execution.current_role,
                to_role=to_role,
                handoff_notes=handoff_notes,
                decisions=tuple(decisions),
                rationale=rationale,
            )
            execution.role_history.append(transition)
            execution.current_role = to_role
            execution.log(
                "INFO",
                f"Role transition: {transition.from_role} -> {to_role}",
                {"rationale": rationale} if rationale else None,
            )
            return copy.deepcopy(execution)

    def pause_execution(self, execution_id: str, reason: str) -> Execution | None:
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            if execution.status != ExecutionStatus.RUNNING:
                raise InvalidStateError(
                    f"Cannot pause execution {execution_id} with status {execution.status.value}"
                )
            execution.status = ExecutionStatus.PAUSED
            execution.context.pause_reason = reason
            execution.context.paused_at = datetime.now()
            execution.log("INFO", f"Execution paused: {reason}")
            return copy.deepcopy(execution)

    def resume_execution(self, execution_id: str) -> Execution | None:
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            if execution.status != ExecutionStatus.PAUSED:
                raise InvalidStateError(
                    f"Cannot resume execution {execution_id} with status {execution.status.value}"
                )
            execution.status = ExecutionStatus.RUNNING
            execution.context.pause_reason = None
            execution.context.resumed_at = datetime.now()
            execution.log("INFO", "Execution resumed")
            return copy.deepcopy(execution)

    def complete_execution(
        self,
        execution_id: str,
        final_metrics: dict[str, Any] | None = None,
    ) -> Execution | None:
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            execution.status = ExecutionStatus.COMPLETED
            execution.completed_at = datetime.now()
            if final_metrics:
                execution.metrics.merge(final_metrics)
            execution.log("INFO", "Execution completed")
            return copy.deepcopy(execution)

    def fail_execution(self, execution_id: str, reason: str, error: str | None = None) -> Execution | None:
        with self._mutating(execution_id) as execution:
            if execution is None:
                return None
            execution.status = ExecutionStatus.FAILED
            execution.context.failure_reason = reason
            execution.context.error = error
            execution.context.failed_at = datetime.now()
            execution.log("ERROR", f"Execution failed: {reason}", {"error": error} if error else None)
            return copy.deepcopy(execution)

    def log(
        self,
        execution_id: str,
        level: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Execution | None:
        """Append a structured log entry to the execution."""
        with self._mutating(execution_id, allow_terminal=True) as execution:
            if execution is None:
                return None
            execution.log(level, message, data)
            return copy.deepcopy(execution)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_step_executions(self, execution_id: str) -> list[StepExecution]:
        with self._lock_for(execution_id):
            if self._load(execution_id) is None:
                return []
            return copy.deepcopy(self._steps_of(execution_id))

    def get_execution_history(self, execution_id: str) -> ExecutionHistory | None:
        with self._lock_for(execution_id):
            execution = self._load(execution_id)
            if execution is None:
                return None
            snapshot = copy.deepcopy(execution)
            return ExecutionHistory(
                execution=snapshot,
                steps=copy.deepcopy(self._steps_of(execution_id)),
                transitions=list(snapshot.role_history),
            )

    def get_execution_metrics(self, execution_id: str) -> ExecutionMetricsSummary | None:
        """Summarize step outcomes.

        ``success_rate`` is completed attempts over all attempts (0 with no
        attempts). ``average_step_time`` averages only completed attempts.
        """
        with self._lock_for(execution_id):
            execution = self._load(execution_id)
            if execution is None:
                return None

            steps = self._steps_of(execution_id)
            completed = [s for s in steps if s.status == StepStatus.COMPLETED]
            durations = [s.duration for s in completed if s.duration is not None]

            return ExecutionMetricsSummary(
                total_steps=len(steps),
                completed_steps=len(completed),
                success_rate=len(completed) / len(steps) if steps else 0.0,
                average_step_time=sum(durations) / len(durations) if durations else 0.0,
                quality_score=execution.metrics.quality_score,
                role_transitions=len(execution.role_history),
            )
