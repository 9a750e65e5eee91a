"""Role and agent profile definitions."""

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class Role:
    """A named stage of a workflow.

    Roles form a directed graph through ``next_roles``. A role with no next
    roles is terminal: finishing its steps completes the execution.
    """

    id: str
    display_name: str
    description: str = ""
    capabilities: tuple[str, ...] = ()
    responsibilities: tuple[str, ...] = ()
    quality_gates: tuple[str, ...] = ()
    next_roles: tuple[str, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return not self.next_roles

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "display_name": self.display_name,
            "description": self.description,
            "capabilities": list(self.capabilities),
            "responsibilities": list(self.responsibilities),
            "quality_gates": list(self.quality_gates),
            "next_roles": list(self.next_roles),
        }


@dataclass(frozen=True)
class RoleOverride:
    """Agent-specific enrichment of a role's guidance.

    Overrides change the advice handed to an agent, never the capabilities
    or gates the engine checks.
    """

    capabilities: tuple[str, ...] = ()
    checklist: tuple[str, ...] = ()
    templates: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()
    best_practices: tuple[str, ...] = ()


@dataclass(frozen=True)
class AgentProfile:
    """What a coding agent (cursor, copilot, ...) supports."""

    agent_type: str
    supported_roles: tuple[str, ...] = ()
    capabilities: tuple[str, ...] = ()
    limitations: tuple[str, ...] = ()
    templates: tuple[str, ...] = ()
    role_overrides: Mapping[str, RoleOverride] = field(default_factory=dict)

    def override_for(self, role_id: str) -> RoleOverride | None:
        return self.role_overrides.get(role_id)
