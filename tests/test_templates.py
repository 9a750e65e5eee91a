"""Tests for template rendering."""

from workflow_guide.core.templates import (
    render_for_role,
    render_template,
    role_variables,
)


class TestRenderTemplate:
    """Tests for placeholder substitution."""

    def test_substitutes_known_keys(self):
        """Test that whitespace inside braces is tolerated."""
        assert render_template("def {{ name }}(): {{body}}", {"name": "run", "body": "pass"}) == "def run(): pass"

    def test_unknown_keys_stay(self):
        """Test that placeholders without values are left in place."""
        assert render_template("{{a}} and {{b}}", {"a": 1}) == "1 and {{b}}"


class TestRoleRendering:
    """Tests for role placeholders."""

    def test_role_variables(self, builder_role):
        """Test the placeholders describing a role."""
        assert role_variables(builder_role) == {
            "role": "Builder",
            "roleId": "builder",
            "roleDescription": "Writes code",
            "capabilities": "code-implementation",
        }

    def test_caller_variables_win(self, builder_role):
        """Test that caller variables override role placeholders."""
        content = "{{role}} via {{roleId}}"

        assert render_for_role(content, builder_role) == "Builder via builder"
        assert render_for_role(content, builder_role, {"role": "Someone"}) == "Someone via builder"
