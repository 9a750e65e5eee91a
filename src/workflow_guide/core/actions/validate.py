"""Validate action - check a project file against quality rules.

Validation never fails the step for rule violations; those surface as
failing quality checks, which block the role handoff instead.
"""

import re

from ..models import ActionKind
from .base import ActionHandler, ActionRequest, StepResult


class ValidateHandler(ActionHandler):
    kind = ActionKind.VALIDATE

    def execute(self, request: ActionRequest) -> StepResult:
        path = request.target_path
        content = self.read_file(path)
        role_name = request.role.display_name

        violations = []
        for rule in request.rules:
            if not rule.pattern:
                continue
            try:
                count = len(re.findall(rule.pattern, content, flags=re.MULTILINE))
            except re.error as e:
                violations.append(f"{rule.name}: invalid pattern ({e})")
                continue
            if count:
                violations.append(f"{rule.name}: Found {count} violations")

        if violations:
            result = f"Validation issues found ({role_name} standards):\n" + "\n".join(violations)
        else:
            result = f"Code validation passed ({role_name} standards)"

        return self.success(request, result, artifact=content, artifact_path=str(path))
