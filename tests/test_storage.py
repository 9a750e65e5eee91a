"""Tests for workflow storage backends."""

import pytest

from workflow_guide.core.errors import StorageError
from workflow_guide.core.models import QualityRule, Step, Template, WorkflowDefinition
from workflow_guide.core.storage import InMemoryStorage, JsonFileStorage


@pytest.fixture
def storage(tmp_path):
    return JsonFileStorage(tmp_path / "data")


class TestJsonFileStorage:
    """Tests for JSON file storage."""

    def test_workflow_persisted(self, storage):
        """Test saving and reading back a workflow."""
        workflow = WorkflowDefinition(
            id="wf",
            name="Workflow",
            steps=[Step(id="s1", name="a.py", action="create", template="t")],
            quality_checks=["no-todo"],
        )

        storage.save_workflow(workflow)

        assert (storage.workflows_dir / "wf.json").exists()
        loaded = storage.get_workflow("wf")
        assert loaded.steps[0].template == "t"
        assert loaded.quality_checks == ["no-todo"]
        assert [w.id for w in storage.list_workflows()] == ["wf"]

    def test_missing_entries(self, storage):
        """Test that a fresh data directory is empty rather than an error."""
        assert storage.get_workflow("nope") is None
        assert storage.get_template("nope") is None
        assert storage.list_workflows() == []
        assert storage.list_templates() == []
        assert storage.list_quality_rules() == []

    def test_template(self, storage):
        """Test saving and reading templates."""
        storage.save_template(Template(id="t", name="T", content="{{x}}"))

        assert storage.get_template("t").content == "{{x}}"
        assert [t.id for t in storage.list_templates()] == ["t"]

    def test_quality_rules_upsert(self, storage):
        """Test that saving a rule with the same id replaces it."""
        storage.save_quality_rule(QualityRule(id="a", name="A", pattern="x"))
        storage.save_quality_rule(QualityRule(id="b", name="B"))
        storage.save_quality_rule(QualityRule(id="a", name="A2", pattern="y"))

        rules = {r.id: r for r in storage.list_quality_rules()}
        assert sorted(rules) == ["a", "b"]
        assert rules["a"].pattern == "y"

    def test_corrupt_file(self, storage):
        """Test that invalid JSON raises StorageError."""
        storage.workflows_dir.mkdir(parents=True)
        (storage.workflows_dir / "broken.json").write_text("[")

        with pytest.raises(StorageError, match="broken.json"):
            storage.get_workflow("broken")


class TestInMemoryStorage:
    """Tests for in-memory storage."""

    def test_save_and_get(self):
        """Test the dictionary-backed implementation."""
        storage = InMemoryStorage(templates=[Template(id="t", name="T", content="")])
        storage.save_workflow(WorkflowDefinition(id="wf"))

        assert storage.get_workflow("wf").id == "wf"
        assert storage.get_template("t") is not None
        assert storage.list_quality_rules() == []
