"""Storage collaborators for workflows, templates and quality rules.

The engine only reads through ``WorkflowStorage``; the save methods exist so
that sample data and user-defined workflows can be loaded in.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .errors import StorageError
from .models import QualityRule, Template, WorkflowDefinition


class WorkflowStorage(ABC):
    """Read/write access to workflow definitions and their resources."""

    @abstractmethod
    def get_workflow(self, workflow_id: str) -> WorkflowDefinition | None:
        ...

    @abstractmethod
    def list_workflows(self) -> list[WorkflowDefinition]:
        ...

    @abstractmethod
    def get_template(self, template_id: str) -> Template | None:
        ...

    @abstractmethod
    def list_templates(self) -> list[Template]:
        ...

    @abstractmethod
    def list_quality_rules(self) -> list[QualityRule]:
        ...

    @abstractmethod
    def save_workflow(self, workflow: WorkflowDefinition) -> None:
        ...

    @abstractmethod
    def save_template(self, template: Template) -> None:
        ...

    @abstractmethod
    def save_quality_rule(self, rule: QualityRule) -> None:
        ...


class InMemoryStorage(WorkflowStorage):
    """Dictionary-backed storage, used by tests and embedded callers."""

    def __init__(
        self,
        workflows: list[WorkflowDefinition] | None = None,
        templates: list[Template] | None = None,
        quality_rules: list[QualityRule] | None = None,
    ):
        self._workflows = {w.id: w for w in workflows or []}
        self._templates = {t.id: t for t in templates or []}
        self._rules = {r.id: r for r in quality_rules or []}

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition | None:
        return self._workflows.get(workflow_id)

    def list_workflows(self) -> list[WorkflowDefinition]:
        return list(self._workflows.values())

    def get_template(self, template_id: str) -> Template | None:
        return self._templates.get(template_id)

    def list_templates(self) -> list[Template]:
        return list(self._templates.values())

    def list_quality_rules(self) -> list[QualityRule]:
        return list(self._rules.values())

    def save_workflow(self, workflow: WorkflowDefinition) -> None:
        self._workflows[workflow.id] = workflow

    def save_template(self, template: Template) -> None:
        self._templates[template.id] = template

    def save_quality_rule(self, rule: QualityRule) -> None:
        self._rules[rule.id] = rule


class JsonFileStorage(WorkflowStorage):
    """JSON files under a data directory.

    Layout::

        <data_dir>/workflows/<id>.json
        <data_dir>/templates/<id>.json
        <data_dir>/quality_rules.json
    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)

    @property
    def workflows_dir(self) -> Path:
        return self.data_dir / "workflows"

    @property
    def templates_dir(self) -> Path:
        return self.data_dir / "templates"

    @property
    def rules_file(self) -> Path:
        return self.data_dir / "quality_rules.json"

    def _read(self, path: Path) -> Any:
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def _write(self, path: Path, data: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def get_workflow(self, workflow_id: str) -> WorkflowDefinition | None:
        path = self.workflows_dir / f"{workflow_id}.json"
        if not path.exists():
            return None
        return WorkflowDefinition.from_dict(self._read(path))

    def list_workflows(self) -> list[WorkflowDefinition]:
        if not self.workflows_dir.exists():
            return []
        return [
            WorkflowDefinition.from_dict(self._read(path))
            for path in sorted(self.workflows_dir.glob("*.json"))
        ]

    def get_template(self, template_id: str) -> Template | None:
        path = self.templates_dir / f"{template_id}.json"
        if not path.exists():
            return None
        return Template.from_dict(self._read(path))

    def list_templates(self) -> list[Template]:
        if not self.templates_dir.exists():
            return []
        return [Template.from_dict(self._read(path)) for path in sorted(self.templates_dir.glob("*.json"))]

    def list_quality_rules(self) -> list[QualityRule]:
        if not self.rules_file.exists():
            return []
        return [QualityRule.from_dict(r) for r in self._read(self.rules_file)]

    def save_workflow(self, workflow: WorkflowDefinition) -> None:
        self._write(self.workflows_dir / f"{workflow.id}.json", workflow.to_dict())

    def save_template(self, template: Template) -> None:
        self._write(self.templates_dir / f"{template.id}.json", template.to_dict())

    def save_quality_rule(self, rule: QualityRule) -> None:
        rules = {r.id: r for r in self.list_quality_rules()}
        rules[rule.id] = rule
        self._write(self.rules_file, [r.to_dict() for r in rules.values()])
