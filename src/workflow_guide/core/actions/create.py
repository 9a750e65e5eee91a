"""Create action - render a template into a new project file."""

from ..models import ActionKind
from .base import ActionHandler, ActionRequest, StepResult


class CreateHandler(ActionHandler):
    """Writes ``step.template`` rendered for the role to ``step.name``."""

    kind = ActionKind.CREATE

    def execute(self, request: ActionRequest) -> StepResult:
        step = request.step
        if not step.template:
            raise ValueError(f"Step {step.id} has no template to create from")

        template = self.load_template(step.template)
        content = self.render(template, request)
        path = request.target_path
        self.write_file(path, content)

        return self.success(
            request,
            f"Created file: {path} ({request.role.display_name} approach)",
            metrics_delta={"files_created": 1},
            artifact=content,
            artifact_path=str(path),
        )
