"""Tests for the LLM step advisor, using stand-in chat models."""

from workflow_guide.agents import AdvisorOutput, StepAdvisor
from workflow_guide.core.actions import StepResult
from workflow_guide.core.models import CheckStatus, QualityCheckResult, Step


class StructuredModel:
    """Chat model stand-in returning a fixed structured output."""

    def __init__(self, output: AdvisorOutput):
        self.output = output
        self.prompts = []
        self.schema = None

    def with_structured_output(self, schema, method=None):
        self.schema = schema

        def respond(prompt_value):
            self.prompts.append(prompt_value.to_messages())
            return self.output

        return respond


class BrokenModel:
    def with_structured_output(self, schema, method=None):
        raise RuntimeError("rate limited")


def _result(artifact: str = "def f():\n    return 1\n") -> StepResult:
    return StepResult(
        step_id="s1",
        role_id="builder",
        success=True,
        result="Created file: app.py",
        artifact=artifact,
        quality_checks=[
            QualityCheckResult(rule_id="no-todo", rule_name="No TODO", status=CheckStatus.FAIL, message="Found 1"),
        ],
    )


class TestStepAdvisor:
    """Tests for StepAdvisor."""

    def test_advise(self, builder_role):
        """Test that role facts and step details reach the prompt."""
        model = StructuredModel(AdvisorOutput(success=True, summary="Fine", suggestions=["Add a docstring"]))
        advisor = StepAdvisor(llm=model)

        output = advisor.advise(Step(id="s1", name="app.py", action="create"), builder_role, _result())

        assert output.suggestions == ["Add a docstring"]
        assert model.schema is AdvisorOutput
        system, human = model.prompts[0]
        assert "experienced Builder" in system.content
        assert "no-todo" in system.content
        assert "app.py (action: create)" in human.content
        assert "- No TODO: Found 1" in human.content

    def test_artifact_truncated(self, builder_role):
        """Test that long artifacts are cut to the configured size."""
        advisor = StepAdvisor(llm=StructuredModel(AdvisorOutput(success=True, summary="")), max_artifact_chars=10)

        text = advisor._format_input(Step(id="s1", name="app.py", action="create"), _result("x" * 50))

        assert "x" * 10 + "..." in text
        assert "x" * 11 not in text

    def test_failure_is_reported(self, builder_role):
        """Test that model errors become an unsuccessful output."""
        advisor = StepAdvisor(llm=BrokenModel())

        output = advisor.advise(Step(id="s1", name="app.py", action="create"), builder_role, _result())

        assert not output.success
        assert output.summary == "Advisor failed: rate limited"
        assert output.suggestions == []
        assert output.risks == ["rate limited"]

    def test_is_available_with_model(self):
        """Test that an injected model is always available."""
        assert StepAdvisor(llm=BrokenModel()).is_available()
