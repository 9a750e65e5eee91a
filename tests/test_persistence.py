"""Tests for execution stores."""

import json

import pytest

from workflow_guide.core.errors import StorageError
from workflow_guide.core.models import Execution, StepExecution, StepStatus
from workflow_guide.core.persistence import JsonExecutionStore, MemoryExecutionStore


@pytest.fixture
def store(tmp_path):
    return JsonExecutionStore(tmp_path / "runs")


class TestJsonExecutionStore:
    """Tests for the JSON run-directory store."""

    def test_save_writes_run_directory(self, store):
        """Test that state and steps land in the execution's run directory."""
        execution = Execution.create("wf", "builder")
        step = StepExecution.create(execution.id, "s1", "builder")
        step.status = StepStatus.COMPLETED

        store.save(execution, [step])

        state = json.loads(store.state_file(execution.id).read_text())
        steps = json.loads(store.steps_file(execution.id).read_text())
        assert state["id"] == execution.id
        assert state["status"] == "running"
        assert steps[0]["status"] == "completed"

    def test_load(self, store):
        """Test loading a saved execution."""
        execution = Execution.create("wf", "builder")
        execution.completed_steps.append("s1")
        store.save(execution, [StepExecution.create(execution.id, "s1", "builder")])

        loaded, steps = store.load(execution.id)

        assert loaded.completed_steps == ["s1"]
        assert steps[0].step_id == "s1"

    def test_load_missing(self, store):
        """Test that an unknown id loads as None."""
        assert store.load("exec_missing") is None

    def test_load_corrupt(self, store):
        """Test that unreadable state raises StorageError."""
        run_dir = store.run_dir("exec_bad")
        run_dir.mkdir(parents=True)
        (run_dir / "state.json").write_text("{not json")

        with pytest.raises(StorageError, match="exec_bad"):
            store.load("exec_bad")

    def test_list_ids(self, store):
        """Test that only directories with state are listed, sorted."""
        for execution_id in ("exec_b", "exec_a"):
            store.save(Execution(id=execution_id, workflow_id="wf", current_role="r"), [])
        (store.runs_dir / "stray").mkdir()

        assert store.list_ids() == ["exec_a", "exec_b"]

    def test_list_ids_without_directory(self, tmp_path):
        """Test listing before anything was saved."""
        assert JsonExecutionStore(tmp_path / "nowhere").list_ids() == []

    def test_save_report(self, store):
        """Test writing a report next to the state."""
        path = store.save_report("exec_1", "# Report")

        assert path == str(store.report_file("exec_1"))
        assert store.report_file("exec_1").read_text() == "# Report"


class TestMemoryExecutionStore:
    """Tests for the in-memory store."""

    def test_load_returns_fresh_objects(self):
        """Test that loads are detached from saved objects."""
        store = MemoryExecutionStore()
        execution = Execution.create("wf", "builder")
        store.save(execution, [])
        execution.completed_steps.append("late")
        execution.context.variables["module"] = "late"
        execution.context.decisions.append("late")
        execution.log("INFO", "late")

        loaded, steps = store.load(execution.id)

        assert loaded.completed_steps == []
        assert loaded.context.variables == {}
        assert loaded.context.decisions == []
        assert loaded.logs == []
        assert steps == []
        assert store.list_ids() == [execution.id]

    def test_reports_kept_in_memory(self):
        """Test that reports are kept but have no location."""
        store = MemoryExecutionStore()

        assert store.save_report("exec_1", "# Report") is None
        assert store.reports == {"exec_1": "# Report"}
