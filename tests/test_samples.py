"""Tests for sample data."""

from workflow_guide.core.errors import StorageError
from workflow_guide.core.models import QualityRule, Template, WorkflowDefinition
from workflow_guide.core.roles import RoleRegistry
from workflow_guide.core.samples import (
    are_samples_initialized,
    initialize_samples,
    sample_quality_rules,
    sample_templates,
    sample_workflows,
)
from workflow_guide.core.storage import InMemoryStorage, JsonFileStorage


class FailingTemplateStorage(InMemoryStorage):
    def save_template(self, template: Template) -> None:
        raise StorageError("disk full")


class TestSampleData:
    """Tests for the bundled samples."""

    def test_referenced_templates_exist(self):
        """Test that every step template is shipped."""
        template_ids = {t.id for t in sample_templates()}
        for workflow in sample_workflows():
            for step in workflow.steps:
                if step.template:
                    assert step.template in template_ids, step.id

    def test_referenced_rules_exist(self):
        """Test that every rule id used by a workflow is shipped."""
        rule_ids = {r.id for r in sample_quality_rules()}
        for workflow in sample_workflows():
            assert set(workflow.quality_checks) <= rule_ids
            for step in workflow.steps:
                assert set(step.rules) <= rule_ids, step.id

    def test_gate_rules_cover_role_gates(self):
        """Test that the gates of every non-terminal role have a rule."""
        rule_ids = {r.id for r in sample_quality_rules()}
        for role in RoleRegistry.default().list_roles():
            if not role.is_terminal:
                assert set(role.quality_gates) <= rule_ids, role.id

    def test_all_steps_routable(self):
        """Test that sample steps use supported actions."""
        assert all(step.is_routable for w in sample_workflows() for step in w.steps)


class TestInitializeSamples:
    """Tests for writing samples to storage."""

    def test_json_storage(self, tmp_path):
        """Test initializing a JSON data directory."""
        storage = JsonFileStorage(tmp_path)
        assert not are_samples_initialized(storage)

        result = initialize_samples(storage)

        assert result.errors == []
        assert result.workflows == len(sample_workflows())
        assert result.templates == len(sample_templates())
        assert result.quality_rules == len(sample_quality_rules())
        assert are_samples_initialized(storage)
        assert isinstance(storage.get_workflow("python-feature"), WorkflowDefinition)
        assert all(isinstance(r, QualityRule) for r in storage.list_quality_rules())

    def test_errors_are_collected(self):
        """Test that storage failures are reported, not raised."""
        result = initialize_samples(FailingTemplateStorage())

        assert result.templates == 0
        assert result.workflows == len(sample_workflows())
        assert len(result.errors) == len(sample_templates())
        assert result.errors[0].endswith("disk full")
