"""LLM-powered helpers for workflow-guide.

LangChain-powered advisor producing structured suggestions.
"""

from .advisor import AdvisorOutput, StepAdvisor

__all__ = [
    "AdvisorOutput",
    "StepAdvisor",
]
