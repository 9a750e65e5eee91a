"""Step advisor - LangChain-powered suggestions for completed steps.

The advisor reviews a step result in the voice of the acting role and
returns follow-up suggestions. Its output is advisory: it is attached to the
step record and never feeds quality gates or role transitions.
"""

from typing import Any

from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from ..core.actions.base import StepResult
from ..core.llm_config import LLMConfig, check_llm_available, create_chat_model
from ..core.models import Step
from ..core.roles.base import Role


class AdvisorOutput(BaseModel):
    """Structured output from the advisor."""

    success: bool = Field(description="Whether the review completed")
    summary: str = Field(description="One-sentence assessment of the step result")
    suggestions: list[str] = Field(default_factory=list, description="Concrete follow-up suggestions")
    risks: list[str] = Field(default_factory=list, description="Risks the next role should know about")


SYSTEM_PROMPT = """You are an experienced {role_name} reviewing one step of a development workflow.

Role description: {role_description}
Role capabilities: {capabilities}
Quality gates this role must satisfy before handoff: {quality_gates}

Review the step result and give at most five short, concrete suggestions.
Do not restate the result. Flag risks the next role should know about."""


class StepAdvisor:
    """Produces advisory suggestions for a step result."""

    name = "advisor"

    def __init__(
        self,
        llm: ChatOpenAI | Any | None = None,
        config: LLMConfig | None = None,
        max_artifact_chars: int = 4000,
    ):
        """Initialize advisor.

        Args:
            llm: Pre-configured chat model (created lazily if None)
            config: LLM configuration used when creating the model
            max_artifact_chars: Artifact text beyond this is truncated
        """
        self._llm = llm
        self.config = config
        self.max_artifact_chars = max_artifact_chars

    @property
    def llm(self) -> ChatOpenAI:
        """Get or create LLM instance."""
        if self._llm is None:
            self._llm = create_chat_model(self.config)
        return self._llm

    def is_available(self) -> bool:
        if self._llm is not None:
            return True
        available, _ = check_llm_available(self.config)
        return available

    def _build_prompt(self) -> ChatPromptTemplate:
        return ChatPromptTemplate.from_messages([
            ("system", SYSTEM_PROMPT),
            ("human", "{input}"),
        ])

    def _format_input(self, step: Step, result: StepResult) -> str:
        artifact = result.artifact or ""
        if len(artifact) > self.max_artifact_chars:
            artifact = artifact[: self.max_artifact_chars] + "..."

        failed = [q for q in result.quality_checks if not q.passed]
        checks = "\n".join(f"- {q.rule_name}: {q.message}" for q in failed) or "All checks passed."

        return f"""## Step
{step.name} (action: {step.action})
{step.description}

## Result
{result.result}

## Failed Quality Checks
{checks}

## Artifact
```
{artifact or "No artifact produced."}
```"""

    def advise(self, step: Step, role: Role, result: StepResult) -> AdvisorOutput:
        """Review a step result.

        Never raises: a failed LLM call yields an unsuccessful output with
        no suggestions and the error as its only risk.
        """
        try:
            chain = self._build_prompt() | self.llm.with_structured_output(
                AdvisorOutput, method="function_calling"
            )
            return chain.invoke({
                "role_name": role.display_name,
                "role_description": role.description,
                "capabilities": ", ".join(role.capabilities),
                "quality_gates": ", ".join(role.quality_gates) or "none",
                "input": self._format_input(step, result),
            })
        except Exception as e:
            return AdvisorOutput(
                success=False,
                summary=f"Advisor failed: {e}",
                suggestions=[],
                risks=[str(e)],
            )
