"""Test action - write a test file from a template."""

from ..models import ActionKind
from .base import ActionHandler, ActionRequest, StepResult

DEFAULT_TEST_TEMPLATE = "test-template"


class TestHandler(ActionHandler):
    """Renders ``step.template`` (or the shared test template) to ``step.name``."""

    __test__ = False  # not a pytest class

    kind = ActionKind.TEST

    def execute(self, request: ActionRequest) -> StepResult:
        template = self.load_template(request.step.template or DEFAULT_TEST_TEMPLATE)
        content = self.render(template, request)
        path = request.target_path
        self.write_file(path, content)

        return self.success(
            request,
            f"Created test file: {path} ({request.role.display_name} approach)",
            metrics_delta={"tests_written": 1},
            artifact=content,
            artifact_path=str(path),
        )
