"""workflow-guide - role-based workflow guidance for AI coding agents."""

__version__ = "0.1.0"
