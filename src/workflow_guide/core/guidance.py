"""Role guidance for agents.

Advice only: nothing produced here is read by gate or transition logic.
Agent profiles can enrich the advice for a role (see RoleOverride).
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .errors import NotFoundError
from .models import QualityCheckResult, Step
from .roles.base import Role
from .roles.defaults import (
    ROLE_BEST_PRACTICES,
    ROLE_EXAMPLES,
    ROLE_GUIDANCE,
    ROLE_NEXT_STEPS,
    ROLE_TEMPLATES,
)
from .roles.registry import RoleRegistry


@dataclass
class RoleGuidance:
    """What an agent acting as a role should focus on."""

    role: Role
    guidance: list[str] = field(default_factory=list)
    quality_gates: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)
    templates: list[str] = field(default_factory=list)
    examples: list[str] = field(default_factory=list)
    best_practices: list[str] = field(default_factory=list)
    checklist: list[str] = field(default_factory=list)
    next_role: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.to_dict(),
            "guidance": self.guidance,
            "quality_gates": self.quality_gates,
            "next_steps": self.next_steps,
            "templates": self.templates,
            "examples": self.examples,
            "best_practices": self.best_practices,
            "checklist": self.checklist,
            "next_role": self.next_role,
        }


class GuidanceEngine:
    """Builds role guidance, handoff notes and per-step insights."""

    def __init__(self, registry: RoleRegistry):
        self.registry = registry

    def get_role_guidance(self, role_id: str, agent_type: str = "general") -> RoleGuidance:
        """Guidance for ``role_id``, enriched for ``agent_type`` when it has an override.

        Raises:
            NotFoundError: If the role is unknown
        """
        role = self.registry.get_role(role_id)
        if role is None:
            raise NotFoundError("Role", role_id)

        next_roles = self.registry.get_next_roles(role.id)
        guidance = RoleGuidance(
            role=role,
            guidance=list(ROLE_GUIDANCE.get(role.id, ())),
            quality_gates=list(role.quality_gates),
            next_steps=list(ROLE_NEXT_STEPS.get(role.id, ())),
            templates=list(ROLE_TEMPLATES.get(role.id, ())),
            examples=list(ROLE_EXAMPLES.get(role.id, ())),
            best_practices=list(ROLE_BEST_PRACTICES.get(role.id, ())),
            next_role=next_roles[0].id if next_roles else None,
        )
        if not guidance.guidance:
            guidance.guidance = [f"Follow {role.display_name} best practices"]

        profile = self.registry.get_agent_profile(agent_type)
        override = profile.override_for(role.id) if profile else None
        if override:
            guidance.guidance.extend(override.capabilities)
            guidance.checklist.extend(override.checklist)
            guidance.templates.extend(override.templates)
            guidance.examples.extend(override.examples)
            guidance.best_practices.extend(override.best_practices)

        return guidance

    def handoff_notes(self, role: Role, checks: Iterable[QualityCheckResult]) -> str:
        """Notes recorded on a role transition."""
        checks = list(checks)
        passed = sum(1 for c in checks if c.passed)
        lines = [
            f"Handoff from {role.display_name}",
            f"Quality checks: {passed}/{len(checks)} passed",
            f"Next role should focus on: {', '.join(role.next_roles)}",
        ]
        return "\n".join(lines)

    def step_insights(self, step: Step, role: Role, agent_type: str = "general") -> list[str]:
        """Advisory suggestions attached to a step result."""
        insights = list(ROLE_GUIDANCE.get(role.id, ()))
        insights.append(f"Executed {step.name} with {role.display_name} approach")
        insights.append(f"Role capabilities: {', '.join(role.capabilities)}")
        if role.responsibilities:
            insights.append(f"Next responsibilities: {', '.join(role.responsibilities)}")

        profile = self.registry.get_agent_profile(agent_type)
        override = profile.override_for(role.id) if profile else None
        if override:
            insights.extend(override.best_practices)
        return insights
