"""Workflow execution and role-transition engine."""
