"""Sample workflows, templates and quality rules.

Several rule ids match the quality gates of the built-in roles, so the
sample workflows can hand off from role to role when their artifacts are
clean. ``initialize_samples`` writes everything into a storage backend.
"""

from dataclasses import dataclass, field

from .errors import StorageError
from .models import QualityRule, Step, Template, WorkflowDefinition
from .storage import WorkflowStorage

PYTHON_MODULE_TEMPLATE = '''"""{{description}}

Maintained by the {{role}}.
"""


def {{function}}(value):
    """Return ``value`` unchanged."""
    return value
'''

TEST_TEMPLATE = '''"""Tests for {{module}} written by the {{role}}."""

from {{module}} import {{function}}


def test_{{function}}_returns_value():
    assert {{function}}(1) == 1
'''

DOC_TEMPLATE = """# {{title}}

{{description}}

## Usage

```python
from {{module}} import {{function}}
```

_Written by the {{role}} ({{capabilities}})._
"""

REQUIREMENTS_TEMPLATE = """# Requirements: {{title}}

## Goal
{{description}}

## Scope
- Implement `{{function}}` in `{{module}}`
- Cover it with unit tests
- Document its usage

## Sign-off
Reviewed by the {{role}}: {{roleDescription}}.
"""


def sample_templates() -> list[Template]:
    return [
        Template(
            id="python-module",
            name="Python module",
            content=PYTHON_MODULE_TEMPLATE,
            type="component",
            description="A small Python module with one function",
            variables=["description", "function"],
            tags=["python", "component"],
        ),
        Template(
            id="test-template",
            name="pytest module",
            content=TEST_TEMPLATE,
            type="test",
            description="Unit test module for a generated function",
            variables=["module", "function"],
            tags=["python", "pytest", "testing"],
        ),
        Template(
            id="doc-template",
            name="Feature documentation",
            content=DOC_TEMPLATE,
            type="documentation",
            description="Markdown page describing a feature",
            variables=["title", "description", "module", "function"],
            tags=["docs"],
        ),
        Template(
            id="requirements-template",
            name="Requirements document",
            content=REQUIREMENTS_TEMPLATE,
            type="documentation",
            description="Requirements and scope for a feature",
            variables=["title", "description", "module", "function"],
            tags=["docs", "requirements"],
        ),
    ]


def sample_quality_rules() -> list[QualityRule]:
    return [
        # General lint rules
        QualityRule(
            id="no-todo-markers",
            name="No TODO markers",
            pattern=r"\b(TODO|FIXME|XXX)\b",
            severity="warning",
            description="Resolve or ticket TODO/FIXME markers before handoff",
        ),
        QualityRule(
            id="no-print-statements",
            name="No print statements",
            pattern=r"^\s*print\(",
            severity="warning",
            description="Use logging instead of print()",
        ),
        QualityRule(
            id="no-hardcoded-secrets",
            name="No hardcoded secrets",
            pattern=r"(?i)(api_key|password|secret)\s*=\s*['\"][^'\"]+['\"]",
            severity="error",
            type="security",
            description="Load credentials from the environment",
        ),
        # Gate rules: product-manager
        QualityRule(
            id="requirements-complete",
            name="Requirements complete",
            pattern=r"\bTBD\b",
            description="Replace every TBD in the requirements",
        ),
        QualityRule(
            id="stakeholder-approval",
            name="Stakeholder approval",
            pattern=r"(?i)\bapproval pending\b",
            description="Collect stakeholder approval",
        ),
        QualityRule(
            id="scope-defined",
            name="Scope defined",
            pattern=r"(?i)\bscope:\s*\?",
            description="State what is in and out of scope",
        ),
        # Gate rules: architect
        QualityRule(
            id="architecture-approved",
            name="Architecture approved",
            pattern=r"(?i)\barchitecture:\s*pending\b",
            description="Get the architecture signed off",
        ),
        QualityRule(
            id="technology-stack-selected",
            name="Technology stack selected",
            pattern=r"(?i)\bstack:\s*TBD\b",
            description="Pick the technology stack",
        ),
        QualityRule(
            id="integration-points-defined",
            name="Integration points defined",
            pattern=r"(?i)\bintegration points:\s*TBD\b",
            description="List the integration points",
        ),
        # Gate rules: senior-developer
        QualityRule(
            id="code-complete",
            name="Code complete",
            pattern=r"\b(TODO|FIXME)\b|raise NotImplementedError",
            description="Finish the implementation",
        ),
        QualityRule(
            id="tests-passing",
            name="Tests passing",
            pattern=r"assert False",
            type="test",
            description="Remove placeholder failing assertions",
        ),
        QualityRule(
            id="coverage-adequate",
            name="Coverage adequate",
            pattern=r"@pytest\.mark\.skip|pytest\.skip\(",
            type="test",
            description="Do not skip tests to reach coverage",
        ),
        QualityRule(
            id="performance-acceptable",
            name="Performance acceptable",
            pattern=r"time\.sleep\(",
            type="performance",
            description="Avoid blocking sleeps",
        ),
        # Gate rules: code-review
        QualityRule(
            id="security-validated",
            name="Security validated",
            pattern=r"\beval\(|\bexec\(|pickle\.loads\(",
            type="security",
            description="Avoid eval/exec and untrusted unpickling",
        ),
        QualityRule(
            id="standards-compliant",
            name="Standards compliant",
            pattern=r"^\s*print\(",
            description="Follow the project's logging standards",
        ),
        QualityRule(
            id="approved-for-deployment",
            name="Approved for deployment",
            pattern=r"(?i)do not merge",
            description="Remove do-not-merge markers",
        ),
    ]


def sample_workflows() -> list[WorkflowDefinition]:
    return [
        WorkflowDefinition(
            id="python-feature",
            name="Python feature",
            description="Plan, implement, test, review and document a Python feature",
            steps=[
                Step(
                    id="write-requirements",
                    name="docs/requirements.md",
                    action="document",
                    order=1,
                    description="Capture requirements and scope",
                    template="requirements-template",
                    rules=["requirements-complete", "stakeholder-approval", "scope-defined"],
                ),
                Step(
                    id="analyze-project",
                    name="Project analysis",
                    action="analyze",
                    order=2,
                    description="Survey the project layout",
                    rules=["architecture-approved", "technology-stack-selected", "integration-points-defined"],
                ),
                Step(
                    id="create-module",
                    name="src/feature.py",
                    action="create",
                    order=3,
                    description="Create the feature module",
                    template="python-module",
                    rules=["code-complete", "no-hardcoded-secrets"],
                ),
                Step(
                    id="write-tests",
                    name="tests/test_feature.py",
                    action="test",
                    order=4,
                    description="Unit tests for the feature",
                    rules=["tests-passing", "coverage-adequate"],
                ),
                Step(
                    id="refine-module",
                    name="src/feature.py",
                    action="modify",
                    order=5,
                    description="Refine the module after tests",
                    rules=["performance-acceptable", "code-complete"],
                ),
                Step(
                    id="review-module",
                    name="src/feature.py",
                    action="validate",
                    order=6,
                    description="Review the module",
                    rules=["security-validated", "standards-compliant", "approved-for-deployment"],
                ),
                Step(
                    id="document-feature",
                    name="docs/feature.md",
                    action="document",
                    order=7,
                    description="Document the feature",
                    template="doc-template",
                    rules=["no-todo-markers"],
                ),
            ],
            quality_checks=["no-todo-markers", "no-hardcoded-secrets"],
            tags=["python", "feature", "testing"],
        ),
        WorkflowDefinition(
            id="code-review",
            name="Code review",
            description="Analyze the project and validate a file against the lint rules",
            steps=[
                Step(id="analyze", name="Review analysis", action="analyze", order=1),
                Step(
                    id="validate",
                    name="src/feature.py",
                    action="validate",
                    order=2,
                    rules=["no-todo-markers", "no-print-statements", "no-hardcoded-secrets"],
                ),
            ],
            tags=["review", "quality"],
        ),
        WorkflowDefinition(
            id="documentation",
            name="Documentation",
            description="Write feature documentation",
            steps=[
                Step(
                    id="document-feature",
                    name="docs/feature.md",
                    action="document",
                    order=1,
                    template="doc-template",
                ),
            ],
            quality_checks=["no-todo-markers"],
            tags=["docs"],
        ),
    ]


@dataclass
class SampleInitResult:
    workflows: int = 0
    templates: int = 0
    quality_rules: int = 0
    errors: list[str] = field(default_factory=list)


def initialize_samples(storage: WorkflowStorage) -> SampleInitResult:
    """Save every sample into ``storage``; failures are collected, not raised."""
    result = SampleInitResult()

    for workflow in sample_workflows():
        try:
            storage.save_workflow(workflow)
            result.workflows += 1
        except StorageError as e:
            result.errors.append(f"Failed to save workflow {workflow.id}: {e}")

    for template in sample_templates():
        try:
            storage.save_template(template)
            result.templates += 1
        except StorageError as e:
            result.errors.append(f"Failed to save template {template.id}: {e}")

    for rule in sample_quality_rules():
        try:
            storage.save_quality_rule(rule)
            result.quality_rules += 1
        except StorageError as e:
            result.errors.append(f"Failed to save quality rule {rule.id}: {e}")

    return result


def are_samples_initialized(storage: WorkflowStorage) -> bool:
    sample_ids = {w.id for w in sample_workflows()}
    return sample_ids.issubset(w.id for w in storage.list_workflows())
