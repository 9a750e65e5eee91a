"""Step actions and the dispatcher that routes steps to them."""

from .base import ActionHandler, ActionRequest, StepResult
from .dispatcher import HANDLER_TYPES, StepDispatcher

__all__ = [
    "ActionHandler",
    "ActionRequest",
    "StepResult",
    "StepDispatcher",
    "HANDLER_TYPES",
]
