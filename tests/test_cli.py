"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from workflow_guide import __version__
from workflow_guide.cli import app

# Wide enough that Rich tables never wrap identifiers
runner = CliRunner(env={"COLUMNS": "200"})


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point the CLI at a fresh home directory."""
    home = tmp_path / "home"
    monkeypatch.setenv("WORKFLOW_GUIDE_HOME", str(home))
    return home


@pytest.fixture
def project(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    return project


def _execution_ids(home) -> list[str]:
    runs = home / "runs"
    return sorted(d.name for d in runs.iterdir()) if runs.exists() else []


class TestBasics:
    """Tests for top-level commands."""

    def test_version(self):
        """Test the version flag."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_roles(self):
        """Test the role table."""
        result = runner.invoke(app, ["roles"])

        assert result.exit_code == 0
        assert "product-manager" in result.stdout
        assert "integration-engineer" in result.stdout

    def test_guidance(self):
        """Test role guidance output."""
        result = runner.invoke(app, ["guidance", "senior-developer", "--agent", "cursor"])

        assert result.exit_code == 0
        assert "Senior Developer" in result.stdout
        assert "Checklist" in result.stdout

    def test_guidance_unknown_role(self):
        """Test that an unknown role exits with an error."""
        result = runner.invoke(app, ["guidance", "designer"])

        assert result.exit_code == 1
        assert "Role not found" in result.stdout

    def test_config(self, home):
        """Test the configuration table."""
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "default_agent" in result.stdout


class TestWorkflowCommands:
    """Tests for commands that use stored workflows."""

    def test_init_and_list(self, home):
        """Test that init writes samples and workflows lists them."""
        init = runner.invoke(app, ["init"])
        listing = runner.invoke(app, ["workflows"])
        again = runner.invoke(app, ["init"])

        assert init.exit_code == 0
        assert (home / "data" / "workflows" / "python-feature.json").exists()
        assert "python-feature" in listing.stdout
        assert "--force" in again.stdout

    def test_run_sample_workflow(self, home, project):
        """Test running the sample workflow end to end."""
        runner.invoke(app, ["init"])

        result = runner.invoke(
            app,
            ["run", "python-feature", "--project", str(project), "--var", "module=feature", "--var", "function=greet"],
        )

        assert result.exit_code == 0, result.stdout
        assert "completed" in result.stdout
        assert (project / "src" / "feature.py").exists()
        [execution_id] = _execution_ids(home)
        assert (home / "runs" / execution_id / "report.md").exists()

    def test_run_unknown_workflow(self, home):
        """Test running a workflow that does not exist."""
        result = runner.invoke(app, ["run", "nope"])

        assert result.exit_code == 1
        assert "Workflow not found" in result.stdout

    def test_invalid_variable(self, home):
        """Test that malformed --var values are rejected."""
        runner.invoke(app, ["init"])

        result = runner.invoke(app, ["run", "python-feature", "--var", "novalue"])

        assert result.exit_code == 1
        assert "expected key=value" in result.stdout


class TestExecutionCommands:
    """Tests for managing a started execution."""

    def test_lifecycle(self, home, project):
        """Test start, pause, resume, approve, advance and status."""
        runner.invoke(app, ["init"])
        start = runner.invoke(app, ["start", "python-feature", "--project", str(project)])
        assert start.exit_code == 0
        [execution_id] = _execution_ids(home)

        assert runner.invoke(app, ["pause", execution_id, "--reason", "lunch"]).exit_code == 0
        paused = runner.invoke(app, ["pause", execution_id])
        assert paused.exit_code == 1
        assert runner.invoke(app, ["resume", execution_id]).exit_code == 0

        approve = runner.invoke(app, ["approve", execution_id, "scope-defined"])
        assert approve.exit_code == 0
        assert "scope-defined" in approve.stdout

        advance = runner.invoke(app, ["advance", execution_id])
        assert advance.exit_code == 0
        assert "architect" in advance.stdout

        status = runner.invoke(app, ["status", execution_id])
        assert status.exit_code == 0
        assert "running" in status.stdout
        assert "Execution created" not in status.stdout

        with_logs = runner.invoke(app, ["status", execution_id, "--logs"])
        assert "Execution created" in with_logs.stdout
        assert "Role transition: product-manager -> architect" in with_logs.stdout

        listing = runner.invoke(app, ["status"])
        assert "python-feature" in listing.stdout

        history = runner.invoke(app, ["history", execution_id])
        assert history.exit_code == 0
        assert "Role Transitions" in history.stdout

        report = runner.invoke(app, ["report", execution_id])
        assert report.exit_code == 0
        assert "Workflow Execution Report" in report.stdout

    def test_unknown_execution(self, home):
        """Test commands against an unknown execution id."""
        for command in (["status", "exec_missing"], ["advance", "exec_missing"], ["history", "exec_missing"]):
            result = runner.invoke(app, command)
            assert result.exit_code == 1
            assert "not found" in result.stdout

    def test_status_without_executions(self, home):
        """Test listing when nothing has run yet."""
        result = runner.invoke(app, ["status"])

        assert result.exit_code == 0
        assert "No executions found" in result.stdout

    def test_start_unknown_role(self, home, project):
        """Test that an unknown initial role is rejected before anything is stored."""
        runner.invoke(app, ["init"])

        result = runner.invoke(app, ["start", "python-feature", "--project", str(project), "--role", "bogus"])

        assert result.exit_code == 1
        assert "Role not found: bogus" in result.stdout
        assert _execution_ids(home) == []

    def test_advance_records_decisions(self, home, project):
        """Test that --decision values reach the next handoff."""
        runner.invoke(app, ["init"])
        runner.invoke(app, ["start", "python-feature", "--project", str(project)])
        [execution_id] = _execution_ids(home)
        runner.invoke(app, ["approve", execution_id, "scope-defined"])

        result = runner.invoke(app, ["advance", execution_id, "--decision", "Ship behind a flag"])
        history = runner.invoke(app, ["status", execution_id, "--logs"])

        assert result.exit_code == 0
        assert "Decisions recorded" in history.stdout
