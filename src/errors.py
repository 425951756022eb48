"""
Shared exception hierarchy for the step-graph compiler.
"""

from typing import Optional


class WorkflowGraphError(Exception):
    """Base class for all step-graph errors."""


class UnknownConditionKindError(WorkflowGraphError):
    """Raised when a condition kind has no codec arm. Indicates a programming error."""


class WorkflowValidationError(WorkflowGraphError, ValueError):
    """Raised when a compiled workflow document fails structural checks."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.message = message
        self.path = path


class CompileError(WorkflowGraphError):
    """Raised when a graph cannot be turned into a step list."""


class AmbiguousTransitionError(CompileError):
    """Raised when a node has two default edges for the same transition."""


class DanglingEdgeError(CompileError):
    """Raised when an edge points at a node that is not part of the graph."""


class EmptyGraphError(CompileError):
    """Raised when there is nothing to compile."""


class UnreachableSubtreeEndError(WorkflowGraphError):
    """Raised when a subtree repeat's end node cannot be reached from its owner."""

    def __init__(self, start_id: str, end_id: Optional[str]):
        super().__init__(f"Subtree end '{end_id}' is not reachable from '{start_id}'")
        self.start_id = start_id
        self.end_id = end_id


class ConfigError(WorkflowGraphError):
    """Raised when a settings file cannot be loaded."""
