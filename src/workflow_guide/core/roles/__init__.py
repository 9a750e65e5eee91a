"""Role table, agent profiles and the role registry."""

from .base import AgentProfile, Role, RoleOverride
from .registry import ACTION_CAPABILITIES, RoleRegistry, capabilities_for_action

__all__ = [
    "Role",
    "RoleOverride",
    "AgentProfile",
    "RoleRegistry",
    "ACTION_CAPABILITIES",
    "capabilities_for_action",
]
