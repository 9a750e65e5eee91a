"""Role registry - role lookup and transition validation.

The registry is read-only after construction. It answers which role comes
next, whether a handoff is allowed, and which workflow steps a role owns.
"""

from collections.abc import Iterable
from types import MappingProxyType
from typing import Mapping

from ..errors import UnknownActionError
from ..models import ActionKind, Execution, Step, ValidationResult, WorkflowDefinition
from .base import AgentProfile, Role
from .defaults import AGENT_PROFILES, DEFAULT_ROLES

# Which role capabilities allow performing each action kind
ACTION_CAPABILITIES: Mapping[ActionKind, tuple[str, ...]] = MappingProxyType({
    ActionKind.CREATE: ("code-implementation", "project-setup"),
    ActionKind.MODIFY: ("code-implementation", "refactoring"),
    ActionKind.VALIDATE: ("code-review", "quality-assessment"),
    ActionKind.TEST: ("unit-testing", "integration-testing"),
    ActionKind.DOCUMENT: ("documentation", "project-setup"),
    ActionKind.ANALYZE: ("system-design", "architecture-planning", "requirement-gathering"),
})


def capabilities_for_action(action: str) -> tuple[str, ...]:
    """Capabilities that allow an action; empty for unsupported actions."""
    try:
        kind = ActionKind.parse(action)
    except UnknownActionError:
        return ()
    return ACTION_CAPABILITIES[kind]


class RoleRegistry:
    """Immutable lookup table of roles and agent profiles."""

    def __init__(
        self,
        roles: Iterable[Role],
        agent_profiles: Iterable[AgentProfile] = (),
    ):
        """Build the registry.

        Args:
            roles: Role definitions, in declaration order
            agent_profiles: Agent profiles used to pick initial roles

        Raises:
            ValueError: If a role or agent type is declared twice
        """
        role_map: dict[str, Role] = {}
        for role in roles:
            if role.id in role_map:
                raise ValueError(f"Duplicate role: {role.id}")
            role_map[role.id] = role

        profile_map: dict[str, AgentProfile] = {}
        for profile in agent_profiles:
            if profile.agent_type in profile_map:
                raise ValueError(f"Duplicate agent profile: {profile.agent_type}")
            profile_map[profile.agent_type] = profile

        self._roles = MappingProxyType(role_map)
        self._profiles = MappingProxyType(profile_map)

    @classmethod
    def default(cls) -> "RoleRegistry":
        """Registry with the built-in roles and agent profiles."""
        return cls(DEFAULT_ROLES, AGENT_PROFILES)

    def get_role(self, role_id: str) -> Role | None:
        return self._roles.get(role_id)

    def list_roles(self) -> list[Role]:
        return list(self._roles.values())

    def get_next_roles(self, role_id: str) -> list[Role]:
        """Roles reachable from ``role_id`` in declared order.

        An empty list means the role is terminal (or unknown).
        """
        role = self._roles.get(role_id)
        if not role:
            return []
        return [self._roles[r] for r in role.next_roles if r in self._roles]

    def can_transition(self, from_role_id: str, to_role_id: str) -> bool:
        role = self._roles.get(from_role_id)
        return role is not None and to_role_id in role.next_roles

    def validate_role_transition(self, execution: Execution, to_role_id: str) -> ValidationResult:
        """Check whether ``execution`` may hand off to ``to_role_id``.

        The current role's quality gates must all be present in the
        execution's satisfied gate set.
        """
        current = self._roles.get(execution.current_role)
        target = self._roles.get(to_role_id)

        if not current or not target:
            return ValidationResult(valid=False, reason="invalid role")

        if not self.can_transition(current.id, target.id):
            return ValidationResult(
                valid=False,
                reason="transition not allowed",
                requirements=list(current.next_roles),
            )

        satisfied = execution.context.quality_gates
        missing = [gate for gate in dict.fromkeys(current.quality_gates) if gate not in satisfied]
        if missing:
            return ValidationResult(
                valid=False,
                reason="quality gates not met",
                requirements=list(missing),
                missing_gates=missing,
            )

        return ValidationResult(valid=True)

    def get_agent_profile(self, agent_type: str) -> AgentProfile | None:
        return self._profiles.get(agent_type)

    def get_roles_for_agent(self, agent_type: str) -> list[Role]:
        """Roles an agent supports, in the profile's declared order."""
        profile = self._profiles.get(agent_type)
        if not profile:
            return []
        return [self._roles[r] for r in profile.supported_roles if r in self._roles]

    def get_steps_for_role(self, workflow: WorkflowDefinition, role: Role) -> list[Step]:
        """Steps whose action kind maps to one of the role's capabilities."""
        owned = set(role.capabilities)
        return [
            step
            for step in workflow.ordered_steps()
            if owned.intersection(capabilities_for_action(step.action))
        ]
