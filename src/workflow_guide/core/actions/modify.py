"""Modify action - change an existing project file for the acting role.

The role leaves a header comment on the file. When the step names a
template, its rendering is appended to the current content.
"""

from pathlib import Path

from ..models import ActionKind
from ..roles.base import Role
from .base import ActionHandler, ActionRequest, StepResult

_COMMENT_STYLES = {
    ".py": ("# ", ""),
    ".sh": ("# ", ""),
    ".toml": ("# ", ""),
    ".yaml": ("# ", ""),
    ".yml": ("# ", ""),
    ".cfg": ("# ", ""),
    ".js": ("// ", ""),
    ".jsx": ("// ", ""),
    ".ts": ("// ", ""),
    ".tsx": ("// ", ""),
    ".go": ("// ", ""),
    ".java": ("// ", ""),
    ".css": ("/* ", " */"),
    ".md": ("<!-- ", " -->"),
    ".html": ("<!-- ", " -->"),
}


def role_header(path: Path, role: Role) -> str | None:
    """Header comment for ``path`` or None for file types without comments."""
    style = _COMMENT_STYLES.get(path.suffix.lower())
    if style is None:
        return None
    prefix, suffix = style
    return f"{prefix}Reviewed by {role.display_name}{suffix}"


class ModifyHandler(ActionHandler):
    kind = ActionKind.MODIFY

    def execute(self, request: ActionRequest) -> StepResult:
        path = request.target_path
        current = self.read_file(path)
        modified = current

        if request.step.template:
            template = self.load_template(request.step.template)
            addition = self.render(template, request)
            separator = "" if modified.endswith("\n") or not modified else "\n"
            modified = f"{modified}{separator}{addition}"

        header = role_header(path, request.role)
        if header and not modified.startswith(header):
            modified = f"{header}\n{modified}"

        self.write_file(path, modified)

        return self.success(
            request,
            f"Modified file: {path} ({request.role.display_name} approach)",
            metrics_delta={"files_modified": 1},
            artifact=modified,
            artifact_path=str(path),
        )
