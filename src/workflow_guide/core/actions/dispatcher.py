"""Step dispatcher - routes a step to the handler for its action kind.

Every ActionKind has exactly one handler; the table is checked when this
module is imported. A step declaring any other action fails with a
descriptive error instead of reaching a handler.
"""

from typing import TYPE_CHECKING

from ..errors import UnknownActionError
from ..models import ActionKind, ExecutionContext, QualityRule, Step
from ..quality import QualityGateEvaluator
from ..roles.base import Role
from ..storage import WorkflowStorage
from .analyze import AnalyzeHandler
from .base import ActionHandler, ActionRequest, StepResult
from .create import CreateHandler
from .document import DocumentHandler
from .modify import ModifyHandler
from .testing import TestHandler
from .validate import ValidateHandler

if TYPE_CHECKING:
    from ..guidance import GuidanceEngine

HANDLER_TYPES: dict[ActionKind, type[ActionHandler]] = {
    ActionKind.CREATE: CreateHandler,
    ActionKind.MODIFY: ModifyHandler,
    ActionKind.VALIDATE: ValidateHandler,
    ActionKind.TEST: TestHandler,
    ActionKind.DOCUMENT: DocumentHandler,
    ActionKind.ANALYZE: AnalyzeHandler,
}

_unhandled = set(ActionKind) - set(HANDLER_TYPES)
if _unhandled:
    raise ImportError(f"No handler for action kinds: {sorted(k.value for k in _unhandled)}")


class StepDispatcher:
    """Executes steps and evaluates their quality checks."""

    def __init__(
        self,
        storage: WorkflowStorage,
        evaluator: QualityGateEvaluator | None = None,
        guidance: "GuidanceEngine | None" = None,
    ):
        self.storage = storage
        self.evaluator = evaluator or QualityGateEvaluator()
        self.guidance = guidance
        self.handlers: dict[ActionKind, ActionHandler] = {
            kind: handler_type(storage) for kind, handler_type in HANDLER_TYPES.items()
        }

    def execute_step(
        self,
        step: Step,
        role: Role,
        context: ExecutionContext,
        variables: dict[str, str] | None = None,
        rules: list[QualityRule] | None = None,
    ) -> StepResult:
        """Run one step for ``role``.

        Quality checks run only when the step succeeded and ``rules`` is
        given. Handler exceptions never escape: they become a failed result.

        Args:
            step: Step to execute
            role: Role performing the step
            context: Execution context (project path, agent, variables)
            variables: Call-level template variables
            rules: Quality rules selected for this step

        Returns:
            StepResult describing the outcome
        """
        try:
            kind = ActionKind.parse(step.action)
        except UnknownActionError as e:
            return StepResult.failure(
                step,
                role,
                f"{e}. Supported actions: {', '.join(k.value for k in ActionKind)}",
            )

        request = ActionRequest(
            step=step,
            role=role,
            context=context,
            variables=dict(variables or {}),
            rules=list(rules or []),
        )

        try:
            result = self.handlers[kind].execute(request)
        except Exception as e:
            return StepResult.failure(step, role, str(e))

        if rules is not None:
            result.quality_checks = self.evaluator.run_quality_checks(step, role, result.artifact, rules)

        if self.guidance is not None:
            result.suggestions.extend(self.guidance.step_insights(step, role, context.agent_type))

        return result
