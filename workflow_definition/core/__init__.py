"""Core domain models and business logic."""

from workflow_definition.core.exceptions import (
    BootstrapError,
    ExpressionEvaluationError,
    MarkupError,
    PropertyResolutionError,
    WorkflowError,
)
from workflow_definition.core.models import (
    Action,
    BaseState,
    Branch,
    DelayState,
    EndState,
    Event,
    EventState,
    Extension,
    Function,
    OperationState,
    ParallelState,
    State,
    StateType,
    SubflowState,
    SwitchState,
    TriggerEvent,
    Workflow,
)
from workflow_definition.core.validator import (
    ValidationError,
    ValidationErrorType,
    WorkflowValidator,
)

__all__ = [
    "Action",
    "BaseState",
    "BootstrapError",
    "Branch",
    "DelayState",
    "EndState",
    "Event",
    "EventState",
    "ExpressionEvaluationError",
    "Extension",
    "Function",
    "MarkupError",
    "OperationState",
    "ParallelState",
    "PropertyResolutionError",
    "State",
    "StateType",
    "SubflowState",
    "SwitchState",
    "TriggerEvent",
    "ValidationError",
    "ValidationErrorType",
    "Workflow",
    "WorkflowError",
    "WorkflowValidator",
]
