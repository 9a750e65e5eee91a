"""Tests for quality rule selection and evaluation."""

import pytest

from workflow_guide.core.models import CheckStatus, QualityRule, Step, WorkflowDefinition
from workflow_guide.core.quality import QualityGateEvaluator, select_rules

RULES = [
    QualityRule(id="no-todo", name="No TODO", pattern=r"\bTODO\b", severity="warning", description="Resolve TODOs"),
    QualityRule(id="no-print", name="No print", pattern=r"^\s*print\("),
    QualityRule(id="manual", name="Manual sign-off"),
]


@pytest.fixture
def evaluator():
    return QualityGateEvaluator()


class TestSelectRules:
    """Tests for picking the rules that apply to a step."""

    def test_step_rules_first(self):
        """Test that step rules win over workflow checks."""
        step = Step(id="s", name="a.py", action="create", rules=["no-print", "no-print", "unknown"])
        workflow = WorkflowDefinition(id="wf", quality_checks=["no-todo"])

        assert [r.id for r in select_rules(step, RULES, workflow)] == ["no-print"]

    def test_workflow_checks(self):
        """Test that workflow checks apply to steps without rules."""
        step = Step(id="s", name="a.py", action="create")
        workflow = WorkflowDefinition(id="wf", quality_checks=["manual", "no-todo"])

        assert [r.id for r in select_rules(step, RULES, workflow)] == ["manual", "no-todo"]

    def test_all_rules_by_default(self):
        """Test that every rule applies when nothing narrows the selection."""
        step = Step(id="s", name="a.py", action="create")

        assert [r.id for r in select_rules(step, RULES)] == ["no-todo", "no-print", "manual"]


class TestQualityGateEvaluator:
    """Tests for rule evaluation."""

    def test_violation(self, evaluator, builder_role):
        """Test that a match fails with a count and role suggestion."""
        step = Step(id="s", name="a.py", action="create")
        results = evaluator.run_quality_checks(step, builder_role, "x = 1  # TODO\n# TODO again\n", RULES[:1])

        assert results[0].status == CheckStatus.FAIL
        assert results[0].message == "Found 2 violation(s) of No TODO (warning)"
        assert results[0].suggestions == ("Resolve TODOs", "Builder: resolve No TODO before handoff")

    def test_clean_artifact(self, evaluator, builder_role):
        """Test that one result per rule is produced, in order."""
        step = Step(id="s", name="a.py", action="create")
        results = evaluator.run_quality_checks(step, builder_role, "def f():\n    return 1\n", RULES)

        assert [r.rule_id for r in results] == ["no-todo", "no-print", "manual"]
        assert all(r.passed for r in results)
        assert results[2].message == "No pattern to check"

    def test_multiline_anchor(self, evaluator, builder_role):
        """Test that line anchors match on every line."""
        result = evaluator.check_rule(RULES[1], builder_role, "x = 1\n    print('hi')\n")

        assert not result.passed

    def test_no_artifact(self, evaluator, builder_role):
        """Test that a missing artifact passes."""
        assert evaluator.check_rule(RULES[0], builder_role, None).passed

    def test_invalid_pattern(self, evaluator, builder_role):
        """Test that a broken pattern fails the rule instead of raising."""
        rule = QualityRule(id="broken", name="Broken", pattern="(")

        result = evaluator.check_rule(rule, builder_role, "anything")

        assert not result.passed
        assert "Invalid pattern" in result.message

    def test_satisfied_gates(self, evaluator, builder_role):
        """Test that only passing rule ids become gates."""
        results = evaluator.run_quality_checks(
            Step(id="s", name="a.py", action="create"), builder_role, "print('x')\n", RULES
        )

        assert evaluator.satisfied_gates(results) == ["no-todo", "manual"]
        assert evaluator.failed_rules(results) == ["no-print"]
        assert evaluator.failed_rules([]) == []
