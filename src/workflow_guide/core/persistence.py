"""Execution persistence.

Each execution gets its own run directory:

    <runs_dir>/<execution_id>/state.json   execution record
    <runs_dir>/<execution_id>/steps.json   step execution records
    <runs_dir>/<execution_id>/report.md    optional run report
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

from .errors import StorageError
from .models import Execution, StepExecution


class ExecutionStore(ABC):
    """Where the tracker writes executions after every change."""

    @abstractmethod
    def save(self, execution: Execution, steps: list[StepExecution]) -> None:
        ...

    @abstractmethod
    def load(self, execution_id: str) -> tuple[Execution, list[StepExecution]] | None:
        ...

    @abstractmethod
    def list_ids(self) -> list[str]:
        ...

    def save_report(self, execution_id: str, report: str) -> str | None:
        """Store a rendered report; returns its location if the store has one."""
        return None


class MemoryExecutionStore(ExecutionStore):
    """Keeps serialized copies in memory (tests, embedded use)."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[dict, list[dict]]] = {}
        self.reports: dict[str, str] = {}

    def save(self, execution: Execution, steps: list[StepExecution]) -> None:
        self._data[execution.id] = (execution.to_dict(), [s.to_dict() for s in steps])

    def load(self, execution_id: str) -> tuple[Execution, list[StepExecution]] | None:
        if execution_id not in self._data:
            return None
        state, steps = self._data[execution_id]
        return Execution.from_dict(state), [StepExecution.from_dict(s) for s in steps]

    def list_ids(self) -> list[str]:
        return list(self._data)

    def save_report(self, execution_id: str, report: str) -> str | None:
        self.reports[execution_id] = report
        return None


class JsonExecutionStore(ExecutionStore):
    """JSON run directories under ``runs_dir``."""

    def __init__(self, runs_dir: str | Path):
        self.runs_dir = Path(runs_dir)

    def run_dir(self, execution_id: str) -> Path:
        """Get the directory for an execution's artifacts."""
        return self.runs_dir / execution_id

    def state_file(self, execution_id: str) -> Path:
        return self.run_dir(execution_id) / "state.json"

    def steps_file(self, execution_id: str) -> Path:
        return self.run_dir(execution_id) / "steps.json"

    def report_file(self, execution_id: str) -> Path:
        return self.run_dir(execution_id) / "report.md"

    def save(self, execution: Execution, steps: list[StepExecution]) -> None:
        """Persist state to filesystem."""
        try:
            self.run_dir(execution.id).mkdir(parents=True, exist_ok=True)
            with open(self.state_file(execution.id), "w", encoding="utf-8") as f:
                json.dump(execution.to_dict(), f, indent=2, ensure_ascii=False)
            with open(self.steps_file(execution.id), "w", encoding="utf-8") as f:
                json.dump([s.to_dict() for s in steps], f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StorageError(f"Failed to save execution {execution.id}: {e}") from e

    def load(self, execution_id: str) -> tuple[Execution, list[StepExecution]] | None:
        """Load an execution and its step records; None if it was never saved."""
        state_file = self.state_file(execution_id)
        if not state_file.exists():
            return None

        try:
            with open(state_file, encoding="utf-8") as f:
                execution = Execution.from_dict(json.load(f))

            steps: list[StepExecution] = []
            steps_file = self.steps_file(execution_id)
            if steps_file.exists():
                with open(steps_file, encoding="utf-8") as f:
                    steps = [StepExecution.from_dict(s) for s in json.load(f)]
        except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
            raise StorageError(f"Failed to load execution {execution_id}: {e}") from e

        return execution, steps

    def list_ids(self) -> list[str]:
        """List all persisted execution IDs."""
        if not self.runs_dir.exists():
            return []
        return sorted(
            d.name
            for d in self.runs_dir.iterdir()
            if d.is_dir() and (d / "state.json").exists()
        )

    def save_report(self, execution_id: str, report: str) -> str | None:
        path = self.report_file(execution_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(report, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write report for {execution_id}: {e}") from e
        return str(path)
