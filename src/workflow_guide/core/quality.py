"""Quality gate evaluation.

Rules are pattern based. For the lint-style rules this engine uses, a
pattern found in the checked artifact is a failure. The ids of passing rules
are the gate identifiers that role transitions are validated against.
"""

import re
from collections.abc import Iterable

from .models import CheckStatus, QualityCheckResult, QualityRule, Step, WorkflowDefinition
from .roles.base import Role


def select_rules(
    step: Step,
    rules: Iterable[QualityRule],
    workflow: WorkflowDefinition | None = None,
) -> list[QualityRule]:
    """Pick the rules that apply to ``step``.

    Precedence: the step's own rule ids, then the workflow-level quality
    checks, then every available rule. Ids with no matching rule are skipped.
    """
    available = {rule.id: rule for rule in rules}

    if step.rules:
        wanted = step.rules
    elif workflow is not None and workflow.quality_checks:
        wanted = workflow.quality_checks
    else:
        return list(available.values())

    return [available[rule_id] for rule_id in dict.fromkeys(wanted) if rule_id in available]


class QualityGateEvaluator:
    """Runs quality rules against the artifact produced by a step."""

    def run_quality_checks(
        self,
        step: Step,
        role: Role,
        artifact: str | None,
        rules: Iterable[QualityRule],
    ) -> list[QualityCheckResult]:
        """Evaluate each rule once against ``artifact``.

        Args:
            step: The step that produced the artifact
            role: Role that performed the step
            artifact: Text content produced or checked by the step
            rules: Rules already selected for this step

        Returns:
            One result per rule, in rule order
        """
        return [self.check_rule(rule, role, artifact) for rule in rules]

    def check_rule(self, rule: QualityRule, role: Role, artifact: str | None) -> QualityCheckResult:
        if not rule.pattern:
            return self._passed(rule, "No pattern to check")
        if artifact is None:
            return self._passed(rule, "No artifact to check")

        try:
            matches = re.findall(rule.pattern, artifact, flags=re.MULTILINE)
        except re.error as e:
            return QualityCheckResult(
                rule_id=rule.id,
                rule_name=rule.name,
                status=CheckStatus.FAIL,
                message=f"Invalid pattern for rule {rule.id}: {e}",
            )

        if not matches:
            return self._passed(rule, "Quality check passed")

        suggestions = [rule.description] if rule.description else []
        suggestions.append(f"{role.display_name}: resolve {rule.name} before handoff")
        return QualityCheckResult(
            rule_id=rule.id,
            rule_name=rule.name,
            status=CheckStatus.FAIL,
            message=f"Found {len(matches)} violation(s) of {rule.name} ({rule.severity})",
            suggestions=tuple(suggestions),
        )

    @staticmethod
    def _passed(rule: QualityRule, message: str) -> QualityCheckResult:
        return QualityCheckResult(
            rule_id=rule.id,
            rule_name=rule.name,
            status=CheckStatus.PASS,
            message=message,
        )

    @staticmethod
    def satisfied_gates(results: Iterable[QualityCheckResult]) -> list[str]:
        """Rule ids of passing results, in first-seen order."""
        return list(dict.fromkeys(r.rule_id for r in results if r.passed))

    @staticmethod
    def failed_rules(results: Iterable[QualityCheckResult]) -> list[str]:
        return list(dict.fromkeys(r.rule_id for r in results if not r.passed))
