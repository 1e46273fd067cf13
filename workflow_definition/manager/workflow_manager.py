"""
Workflow manager facade.

Owns the current workflow together with the collaborators that decode,
encode, validate and match it:
- Markup codec with its extension registry
- Expression evaluator registry
- Workflow validator
"""

import logging
import os
from typing import Callable, Mapping, Optional

from workflow_definition.config import Settings, get_settings
from workflow_definition.core import triggers
from workflow_definition.core.exceptions import BootstrapError
from workflow_definition.core.models import EventState, Extension, TriggerEvent, Workflow
from workflow_definition.core.validator import WorkflowValidator
from workflow_definition.expression.evaluators import ExpressionEvaluator
from workflow_definition.expression.registry import (
    ExpressionEvaluatorRegistry,
    create_default_registry,
)
from workflow_definition.markup.codec import MarkupCodec
from workflow_definition.markup.extensions import ExtensionRegistry
from workflow_definition.template.property_source import PropertySource
from workflow_definition.template.resolver import PropertyResolver

logger = logging.getLogger(__name__)

EvaluatorProvider = Callable[[], ExpressionEvaluatorRegistry]
ValidatorProvider = Callable[[], WorkflowValidator]


class WorkflowManager:
    """
    Holds one workflow definition and the services operating on it.

    Not safe for concurrent mutation: use one manager per editing session.

    Example:
        manager = WorkflowManager().set_markup(markup)
        diagnostics = manager.validator.validate()
    """

    def __init__(
        self,
        evaluator_provider: Optional[EvaluatorProvider] = None,
        validator_provider: Optional[ValidatorProvider] = None,
        property_source: Optional[Mapping[str, str]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()

        self._evaluators = self._resolve(
            "expression evaluator registry",
            evaluator_provider or (lambda: create_default_registry(self.settings)),
        )
        self._validator = self._resolve(
            "workflow validator",
            validator_provider or (lambda: WorkflowValidator(self.settings)),
        )
        self._validator.set_workflow_manager(self)

        self.extensions = ExtensionRegistry()
        self.codec = MarkupCodec(
            extensions=self.extensions,
            resolver=self._build_resolver(property_source),
        )

        self._workflow: Optional[Workflow] = None

    def _resolve(self, description: str, provider: Callable):
        """Resolve a collaborator, failing construction if it is unavailable."""
        try:
            collaborator = provider()
        except Exception as e:
            raise BootstrapError(f"Unable to resolve {description}: {e}") from e

        if collaborator is None:
            raise BootstrapError(f"Unable to resolve {description}: provider returned None")

        return collaborator

    def _build_resolver(
        self,
        property_source: Optional[Mapping[str, str]],
    ) -> Optional[PropertyResolver]:
        if property_source is None and self.settings.property_file is not None:
            property_source = PropertySource.from_file(self.settings.property_file)

        # Only whitelisted variables are visible to markup
        env_vars = {
            name: os.environ[name]
            for name in self.settings.property_env_vars
            if name in os.environ
        }

        if property_source is None and not env_vars:
            return None

        if not isinstance(property_source, PropertySource):
            property_source = PropertySource(property_source or {})
        return PropertyResolver.from_source(property_source, env_vars=env_vars)

    # ==================== Workflow ====================

    @property
    def workflow(self) -> Optional[Workflow]:
        return self._workflow

    def set_markup(self, markup: str) -> "WorkflowManager":
        """
        Decode markup and make it the current workflow.

        Raises:
            MarkupError: If the markup is neither JSON nor YAML; the current
                workflow is left unchanged
        """
        self._workflow = self.codec.decode(markup)
        logger.debug(f"Loaded workflow '{self._workflow.name}' from markup")
        return self

    def set_workflow(self, workflow: Optional[Workflow]) -> "WorkflowManager":
        self._workflow = workflow
        return self

    def to_workflow(self, markup: str) -> Workflow:
        """Decode markup without replacing the current workflow."""
        return self.codec.decode(markup)

    def to_json(self) -> Optional[str]:
        """Current workflow as JSON markup, or None if it cannot be encoded."""
        if self._workflow is None:
            return None

        try:
            return self.codec.encode(self._workflow)
        except Exception as e:
            logger.error(f"Error converting workflow to JSON: {e}", exc_info=True)
            return None

    def to_yaml(self) -> Optional[str]:
        """Current workflow as YAML markup, or None if it cannot be encoded."""
        if self._workflow is None:
            return None

        try:
            return self.codec.encode_alternate_format(self._workflow)
        except Exception as e:
            logger.error(f"Error converting workflow to YAML: {e}", exc_info=True)
            return None

    def register_extension(self, extension_id: str, extension_type: type[Extension]) -> None:
        """Register an extension type. Must happen before decoding markup using it."""
        self.extensions.register(extension_id, extension_type)

    # ==================== Collaborators ====================

    @property
    def validator(self) -> WorkflowValidator:
        return self._validator

    @property
    def evaluators(self) -> ExpressionEvaluatorRegistry:
        return self._evaluators

    @property
    def expression_evaluator(self) -> ExpressionEvaluator:
        """The default expression evaluator."""
        return self._evaluators.default_evaluator

    def get_expression_evaluator(self, name: Optional[str]) -> ExpressionEvaluator:
        """Get evaluator by name, falling back to the default one."""
        return self._evaluators.get_evaluator(name)

    def set_expression_evaluator(self, evaluator: ExpressionEvaluator) -> None:
        """Register an evaluator and make it the default."""
        self._evaluators.register(evaluator)
        self._evaluators.set_default_evaluator(evaluator.name)

    def set_default_expression_evaluator(self, name: str) -> None:
        """Switch the default evaluator. Unknown names are ignored."""
        self._evaluators.set_default_evaluator(name)

    # ==================== Trigger matching ====================

    def event_states_for_trigger(self, trigger: TriggerEvent) -> list[EventState]:
        if self._workflow is None:
            return []
        return triggers.event_states_matching(
            self._workflow, trigger, self.expression_evaluator
        )

    def triggers_for_event_state(self, event_state: EventState) -> list[TriggerEvent]:
        if self._workflow is None:
            return []
        return triggers.triggers_matching(
            self._workflow, event_state, self.expression_evaluator
        )

    def all_matched_triggers(self) -> list[TriggerEvent]:
        if self._workflow is None:
            return []
        return triggers.all_matched_triggers(self._workflow, self.expression_evaluator)
