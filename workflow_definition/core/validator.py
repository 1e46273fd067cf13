"""
Workflow validation.

Runs two phases and accumulates every violation instead of failing fast:
a JSON schema phase over the canonical JSON form and a semantic phase over
the workflow model.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from importlib import resources
from typing import TYPE_CHECKING, Any, Optional

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError as SchemaError

from workflow_definition.config import Settings, get_settings
from workflow_definition.core.models import (
    DelayState,
    EndState,
    OperationState,
    ParallelState,
    SwitchState,
    Workflow,
)

if TYPE_CHECKING:
    from workflow_definition.manager.workflow_manager import WorkflowManager

logger = logging.getLogger(__name__)

SCHEMA_RESOURCE = "workflow-schema.json"


class ValidationErrorType(str, Enum):
    """Phase that produced a diagnostic."""

    SCHEMA_VALIDATION = "SCHEMA_VALIDATION"
    WORKFLOW_VALIDATION = "WORKFLOW_VALIDATION"


@dataclass(frozen=True)
class ValidationError:
    """Represents a single validation diagnostic."""

    type: ValidationErrorType
    message: str


@lru_cache()
def get_schema_validator() -> Draft7Validator:
    """
    Get the process-wide workflow schema validator.

    The schema is read from package data once and never mutated.
    """
    resource = resources.files("workflow_definition") / "resources" / SCHEMA_RESOURCE
    schema = json.loads(resource.read_text(encoding="utf-8"))
    Draft7Validator.check_schema(schema)
    return Draft7Validator(schema)


def _schema_message(error: SchemaError) -> str:
    """Format a schema error, preferring the schema's errorMessage annotation."""
    if isinstance(error.schema, dict) and error.schema.get("errorMessage"):
        return error.schema["errorMessage"]

    pointer = "#" + "".join(f"/{part}" for part in error.absolute_path)
    return f"{pointer}: {error.message}"


class WorkflowValidator:
    """
    Validates the current workflow of a workflow manager.

    Holds configuration flags and the diagnostics of the last run; nothing
    else survives between calls.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._manager: Optional["WorkflowManager"] = None
        self._diagnostics: list[ValidationError] = []
        self._apply_default_flags()

    def _apply_default_flags(self) -> None:
        self.enabled = self.settings.validation.enabled
        self.schema_validation_enabled = self.settings.validation.schema_enabled
        self.strict_validation_enabled = self.settings.validation.strict

    # ==================== Configuration ====================

    def set_workflow_manager(self, manager: "WorkflowManager") -> "WorkflowValidator":
        self._manager = manager
        return self

    def set_enabled(self, enabled: bool) -> "WorkflowValidator":
        self.enabled = enabled
        return self

    def set_schema_validation_enabled(self, enabled: bool) -> "WorkflowValidator":
        self.schema_validation_enabled = enabled
        return self

    def set_strict_validation_enabled(self, enabled: bool) -> "WorkflowValidator":
        self.strict_validation_enabled = enabled
        return self

    def reset(self) -> "WorkflowValidator":
        """Clear diagnostics and restore the configured flags."""
        self._diagnostics = []
        self._apply_default_flags()
        return self

    @property
    def diagnostics(self) -> list[ValidationError]:
        """Diagnostics of the last validate() call."""
        return list(self._diagnostics)

    # ==================== Validation ====================

    def validate(self) -> list[ValidationError]:
        """
        Validate the manager's current workflow.

        Returns:
            Every diagnostic found, empty when the workflow is valid
        """
        self._diagnostics = []

        if not self.enabled:
            return []

        if self.schema_validation_enabled:
            try:
                self._validate_schema()
            except Exception as e:
                logger.error(f"Schema validation failed unexpectedly: {e}", exc_info=True)

        workflow = self._manager.workflow if self._manager is not None else None
        if workflow is not None:
            try:
                self._validate_workflow(workflow)
            except Exception as e:
                logger.error(f"Workflow validation failed unexpectedly: {e}", exc_info=True)

        return list(self._diagnostics)

    def is_valid(self) -> bool:
        return not self.validate()

    def add_error(self, error_type: ValidationErrorType, message: str) -> None:
        """Add a diagnostic."""
        self._diagnostics.append(ValidationError(error_type, message))

    def _validate_schema(self) -> None:
        if self._manager is None:
            return

        markup = self._manager.to_json()
        if markup is None:
            return

        document: Any = json.loads(markup)
        for error in get_schema_validator().iter_errors(document):
            self.add_error(ValidationErrorType.SCHEMA_VALIDATION, _schema_message(error))

            # Causing errors are reported as well
            for cause in self._walk_context(error):
                self.add_error(ValidationErrorType.SCHEMA_VALIDATION, _schema_message(cause))

    def _walk_context(self, error: SchemaError) -> list[SchemaError]:
        causes = []
        for cause in error.context or []:
            causes.append(cause)
            causes.extend(self._walk_context(cause))
        return causes

    def _validate_workflow(self, workflow: Workflow) -> None:
        """Semantic checks, in order."""
        if not workflow.name or not workflow.name.strip():
            self._workflow_error("Workflow name should not be empty")

        if not workflow.states:
            self._workflow_error("No states found.")

        self._validate_states(workflow)

        if self.strict_validation_enabled:
            self._validate_end_states(workflow)

        self._validate_triggers(workflow)

    def _validate_states(self, workflow: Workflow) -> None:
        seen_names: set[str] = set()
        start_states = 0

        for state in workflow.states:
            if not state.name or not state.name.strip():
                self._workflow_error("Name should not be empty.")
            elif state.name in seen_names:
                self._workflow_error(f"State does not have a unique name: {state.name}")
            else:
                seen_names.add(state.name)

            if state.start:
                start_states += 1

            if isinstance(state, (OperationState, ParallelState, DelayState)):
                if not state.next_state or not state.next_state.strip():
                    self._workflow_error("Next state should not be empty.")
            elif isinstance(state, SwitchState):
                if not state.default or not state.default.strip():
                    self._workflow_error("Default should not be empty.")

        if start_states == 0:
            self._workflow_error("No start state found.")
        elif start_states > 1:
            self._workflow_error("Multiple start states found.")

    def _validate_end_states(self, workflow: Workflow) -> None:
        end_states = sum(1 for state in workflow.states if isinstance(state, EndState))

        if end_states == 0:
            self._workflow_error("No end state found.")
        elif end_states > 1:
            self._workflow_error("Multiple end states found.")

    def _validate_triggers(self, workflow: Workflow) -> None:
        seen_names: set[str] = set()

        for trigger in workflow.trigger_defs:
            if not trigger.name or not trigger.name.strip():
                self._workflow_error("Trigger Event has no name")
            elif trigger.name in seen_names:
                self._workflow_error(
                    f"Trigger Event does not have unique name: {trigger.name}"
                )
            else:
                seen_names.add(trigger.name)

            if not trigger.correlation_token or not trigger.correlation_token.strip():
                self._workflow_error("Trigger Event has no correlation token")

    def _workflow_error(self, message: str) -> None:
        self.add_error(ValidationErrorType.WORKFLOW_VALIDATION, message)
