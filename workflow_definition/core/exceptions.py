"""Workflow definition exceptions."""

from typing import Optional


class WorkflowError(Exception):
    """Base exception for all workflow definition errors."""


class MarkupError(WorkflowError, ValueError):
    """Raised when markup can be read neither as JSON nor as YAML."""

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        self.errors = errors or []
        super().__init__(message)


class BootstrapError(WorkflowError, RuntimeError):
    """Raised when a workflow manager cannot resolve its collaborators."""


class ExpressionEvaluationError(WorkflowError):
    """Raised inside the expression sandbox. Evaluators never let it escape."""

    def __init__(self, message: str, expression: str):
        self.expression = expression
        super().__init__(message)


class PropertyResolutionError(WorkflowError):
    """Raised by a strict property resolver for an unknown property key."""

    def __init__(self, message: str, key: str):
        self.key = key
        super().__init__(message)
