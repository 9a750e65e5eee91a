"""Exception types raised by the workflow engine."""


class WorkflowGuideError(Exception):
    """Base exception for workflow-guide."""


class NotFoundError(WorkflowGuideError):
    """Raised when a workflow, template, role or execution id is unknown."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class UnknownActionError(WorkflowGuideError):
    """Raised for a step action kind outside the supported set."""

    def __init__(self, action: str):
        super().__init__(f"Unknown action: {action}")
        self.action = action


class TerminalExecutionError(WorkflowGuideError):
    """Raised when mutating an execution that is completed or failed."""

    def __init__(self, execution_id: str, status: str):
        super().__init__(f"execution is terminal: {execution_id} ({status})")
        self.execution_id = execution_id
        self.status = status


class InvalidStateError(WorkflowGuideError):
    """Raised when a lifecycle operation is not allowed from the current status."""


class StorageError(WorkflowGuideError):
    """Exception for persistence and collaborator I/O failures."""
