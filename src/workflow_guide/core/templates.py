"""Template rendering.

Templates use ``{{key}}`` placeholders. Keys without a value are left in
place so a partially rendered document still shows what is missing.
"""

import re
from collections.abc import Mapping

from .roles.base import Role

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_.-]+)\s*\}\}")


def render_template(content: str, variables: Mapping[str, object]) -> str:
    """Substitute ``{{key}}`` placeholders with values from ``variables``."""

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key in variables:
            return str(variables[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_replace, content)


def role_variables(role: Role) -> dict[str, str]:
    """Placeholders describing the role performing a step."""
    return {
        "role": role.display_name,
        "roleId": role.id,
        "roleDescription": role.description,
        "capabilities": ", ".join(role.capabilities),
    }


def render_for_role(content: str, role: Role, variables: Mapping[str, object] | None = None) -> str:
    """Render with caller variables plus the role placeholders.

    Caller variables win over role placeholders of the same name.
    """
    merged: dict[str, object] = dict(role_variables(role))
    merged.update(variables or {})
    return render_template(content, merged)

