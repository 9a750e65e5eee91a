"""Shared fixtures for workflow-guide tests."""

import os

import pytest

from workflow_guide.core.config import reset_config
from workflow_guide.core.models import QualityRule, Step, Template, WorkflowDefinition
from workflow_guide.core.roles import Role, RoleRegistry
from workflow_guide.core.storage import InMemoryStorage


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch):
    """Reset global config and drop WORKFLOW_GUIDE_* overrides before each test."""
    for name in list(os.environ):
        if name.startswith("WORKFLOW_GUIDE_"):
            monkeypatch.delenv(name)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def builder_role():
    return Role(
        id="builder",
        display_name="Builder",
        description="Writes code",
        capabilities=("code-implementation",),
        quality_gates=("no-todo",),
        next_roles=("reviewer",),
    )


@pytest.fixture
def reviewer_role():
    return Role(
        id="reviewer",
        display_name="Reviewer",
        description="Reviews code",
        capabilities=("code-review",),
    )


@pytest.fixture
def two_role_registry(builder_role, reviewer_role):
    """Builder hands off to a terminal reviewer once ``no-todo`` passes."""
    return RoleRegistry([builder_role, reviewer_role])


@pytest.fixture
def no_todo_rule():
    return QualityRule(id="no-todo", name="No TODO", pattern="TODO", severity="warning")


@pytest.fixture
def build_and_review():
    """Create ``app.py`` from a template, then validate it."""
    return WorkflowDefinition(
        id="build-and-review",
        name="Build and review",
        steps=[
            Step(id="s1", name="app.py", action="create", order=1, template="app"),
            Step(id="s2", name="app.py", action="validate", order=2),
        ],
    )


@pytest.fixture
def make_storage(build_and_review, no_todo_rule):
    """Storage factory with the build-and-review workflow and one rule."""

    def _make(content="def main():\n    return 0\n", workflows=None):
        return InMemoryStorage(
            workflows=workflows or [build_and_review],
            templates=[Template(id="app", name="App", content=content)],
            quality_rules=[no_todo_rule],
        )

    return _make
