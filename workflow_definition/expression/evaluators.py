"""
Expression evaluators.

An evaluator decides whether an event expression matches a trigger. The
built-in evaluators run expressions in the sandbox and differ only in the
variables they bind from the trigger context.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Union

from workflow_definition.core.models import TriggerEvent
from workflow_definition.expression.sandbox import compile_expression

logger = logging.getLogger(__name__)

TriggerContext = Union[TriggerEvent, str]


class ExpressionEvaluator(ABC):
    """
    Base class for pluggable expression evaluators.

    ``evaluate`` never raises: failures and non-boolean results are logged
    and reported as ``False``.
    """

    name: str = ""

    def evaluate(self, expression: str, context: TriggerContext) -> bool:
        """
        Evaluate an expression against a trigger context.

        Args:
            expression: Event expression text
            context: Trigger definition, or a bare trigger name

        Returns:
            True only when the expression evaluates to boolean true
        """
        try:
            result = self._evaluate(expression, context)
        except Exception as e:
            logger.error(
                f"Unable to evaluate expression '{expression}' with {self.name}: {e}"
            )
            return False

        if not isinstance(result, bool):
            logger.error(
                f"Expression '{expression}' did not evaluate to a boolean: {result!r}"
            )
            return False

        return result

    @abstractmethod
    def _evaluate(self, expression: str, context: TriggerContext) -> Any:
        """Evaluate and return the raw result. May raise."""
        pass


class SandboxedExpressionEvaluator(ExpressionEvaluator):
    """Runs expressions in the ast sandbox with variables bound from the context."""

    def _evaluate(self, expression: str, context: TriggerContext) -> Any:
        return compile_expression(expression).evaluate(self.variables(context))

    @abstractmethod
    def variables(self, context: TriggerContext) -> dict[str, Any]:
        """Variables visible to expressions for this context."""
        pass


class AttributeExpressionEvaluator(SandboxedExpressionEvaluator):
    """
    Binds trigger attributes as top-level variables.

    Example expressions:
        name eq 'order-created'
        type == 'created' && source != 'test'
        trigger.correlationToken == 'order-id'
    """

    name = "attribute"

    def variables(self, context: TriggerContext) -> dict[str, Any]:
        if isinstance(context, TriggerEvent):
            attributes = {
                "name": context.name,
                "source": context.source,
                "type": context.type,
                "correlation_token": context.correlation_token,
                "correlationToken": context.correlation_token,
            }
        elif isinstance(context, str):
            attributes = {
                "name": context,
                "source": None,
                "type": None,
                "correlation_token": None,
                "correlationToken": None,
            }
        else:
            raise TypeError(f"Unsupported trigger context: {type(context).__name__}")

        return {**attributes, "trigger": dict(attributes)}


class TriggerNameExpressionEvaluator(SandboxedExpressionEvaluator):
    """
    Binds the trigger name as ``trigger``.

    Example expressions:
        trigger.equals('order-created')
        trigger.startsWith('order-') || trigger eq 'refund'
    """

    name = "trigger-name"

    def variables(self, context: TriggerContext) -> dict[str, Any]:
        if isinstance(context, TriggerEvent):
            return {"trigger": context.name}
        if isinstance(context, str):
            return {"trigger": context}
        raise TypeError(f"Unsupported trigger context: {type(context).__name__}")
