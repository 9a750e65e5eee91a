"""Document action - write documentation from a template."""

from ..models import ActionKind
from .base import ActionHandler, ActionRequest, StepResult

DEFAULT_DOC_TEMPLATE = "doc-template"


class DocumentHandler(ActionHandler):
    kind = ActionKind.DOCUMENT

    def execute(self, request: ActionRequest) -> StepResult:
        template = self.load_template(request.step.template or DEFAULT_DOC_TEMPLATE)
        content = self.render(template, request)
        path = request.target_path
        self.write_file(path, content)

        # A document is a new file in the project
        return self.success(
            request,
            f"Created documentation: {path} ({request.role.display_name} approach)",
            metrics_delta={"files_created": 1},
            artifact=content,
            artifact_path=str(path),
        )
