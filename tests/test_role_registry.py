"""Tests for the role table and registry."""

import pytest

from workflow_guide.core.models import Execution, ExecutionContext, Step, WorkflowDefinition
from workflow_guide.core.roles import Role, RoleRegistry, capabilities_for_action
from workflow_guide.core.roles.defaults import (
    ARCHITECT,
    CODE_REVIEW,
    INTEGRATION_ENGINEER,
    PRODUCT_MANAGER,
    SENIOR_DEVELOPER,
)


@pytest.fixture
def registry():
    return RoleRegistry.default()


class TestDefaultRoles:
    """Tests for the built-in role table."""

    def test_role_chain(self, registry):
        """Test that the built-in roles form a single chain."""
        assert [r.id for r in registry.list_roles()] == [
            PRODUCT_MANAGER,
            ARCHITECT,
            SENIOR_DEVELOPER,
            CODE_REVIEW,
            INTEGRATION_ENGINEER,
        ]
        assert [r.id for r in registry.get_next_roles(PRODUCT_MANAGER)] == [ARCHITECT]
        assert registry.get_role(INTEGRATION_ENGINEER).is_terminal

    def test_unknown_role(self, registry):
        """Test lookups of an unknown role."""
        assert registry.get_role("designer") is None
        assert registry.get_next_roles("designer") == []
        assert not registry.can_transition("designer", ARCHITECT)

    def test_roles_for_agent(self, registry):
        """Test agent profiles list their roles in declared order."""
        assert [r.id for r in registry.get_roles_for_agent("copilot")] == [SENIOR_DEVELOPER, CODE_REVIEW]
        assert registry.get_roles_for_agent("unknown-agent") == []

    def test_cursor_override(self, registry):
        """Test the cursor profile overrides senior-developer guidance only."""
        profile = registry.get_agent_profile("cursor")

        assert profile.override_for(SENIOR_DEVELOPER) is not None
        assert profile.override_for(ARCHITECT) is None


class TestRegistryConstruction:
    """Tests for building a registry."""

    def test_duplicate_role(self):
        """Test that duplicate role ids are rejected."""
        role = Role(id="r", display_name="R")
        with pytest.raises(ValueError, match="Duplicate role: r"):
            RoleRegistry([role, role])


class TestValidateRoleTransition:
    """Tests for transition validation."""

    def _execution(self, role: str, gates=()) -> Execution:
        return Execution.create("wf", role, ExecutionContext(quality_gates=set(gates)))

    def test_invalid_role(self, registry):
        """Test that unknown source or target roles are invalid."""
        result = registry.validate_role_transition(self._execution(PRODUCT_MANAGER), "designer")

        assert not result
        assert result.reason == "invalid role"

    def test_not_allowed(self, registry):
        """Test that skipping a role is not allowed."""
        result = registry.validate_role_transition(self._execution(PRODUCT_MANAGER), SENIOR_DEVELOPER)

        assert result.reason == "transition not allowed"
        assert result.requirements == [ARCHITECT]

    def test_missing_gates(self, registry):
        """Test that missing gates are reported in role order."""
        execution = self._execution(PRODUCT_MANAGER, gates=["stakeholder-approval"])
        result = registry.validate_role_transition(execution, ARCHITECT)

        assert result.reason == "quality gates not met"
        assert result.missing_gates == ["requirements-complete", "scope-defined"]

    def test_valid(self, registry):
        """Test that a transition with all gates satisfied is valid."""
        execution = self._execution(
            PRODUCT_MANAGER,
            gates=["requirements-complete", "stakeholder-approval", "scope-defined", "extra"],
        )

        assert registry.validate_role_transition(execution, ARCHITECT)


class TestStepOwnership:
    """Tests for mapping steps to roles."""

    def test_capabilities_for_action(self):
        """Test capability lookup for known and unknown actions."""
        assert "code-review" in capabilities_for_action("validate")
        assert capabilities_for_action("deploy") == ()

    def test_steps_for_role(self, registry):
        """Test that roles own the steps their capabilities allow."""
        workflow = WorkflowDefinition(
            id="wf",
            steps=[
                Step(id="review", name="a.py", action="validate", order=2),
                Step(id="build", name="a.py", action="create", order=1),
                Step(id="ship", name="a.py", action="deploy", order=3),
            ],
        )

        assert [s.id for s in registry.get_steps_for_role(workflow, registry.get_role(CODE_REVIEW))] == ["review"]
        assert [s.id for s in registry.get_steps_for_role(workflow, registry.get_role(SENIOR_DEVELOPER))] == ["build"]
        assert registry.get_steps_for_role(workflow, registry.get_role(ARCHITECT)) == []
