"""
Registry of named expression evaluators.
"""

import logging
from typing import Iterable, Optional

from workflow_definition.config import Settings, get_settings
from workflow_definition.expression.evaluators import (
    AttributeExpressionEvaluator,
    ExpressionEvaluator,
    TriggerNameExpressionEvaluator,
)

logger = logging.getLogger(__name__)


class ExpressionEvaluatorRegistry:
    """
    Named evaluators with one default.

    Lookups of unknown names fall back to the default evaluator.
    """

    def __init__(
        self,
        evaluators: Iterable[ExpressionEvaluator] = (),
        default: Optional[str] = None,
    ):
        self._evaluators: dict[str, ExpressionEvaluator] = {}
        for evaluator in evaluators:
            self.register(evaluator)

        if not self._evaluators:
            raise ValueError("At least one expression evaluator is required")

        if default in self._evaluators:
            self._default = self._evaluators[default]
        else:
            self._default = next(iter(self._evaluators.values()))
            if default is not None:
                logger.warning(
                    f"Unknown default evaluator '{default}', using '{self._default.name}'"
                )

    def register(self, evaluator: ExpressionEvaluator) -> None:
        """Register (or replace) an evaluator under its name."""
        if not evaluator.name:
            raise ValueError("Expression evaluator must have a name")
        self._evaluators[evaluator.name] = evaluator

    def get_evaluator(self, name: Optional[str]) -> ExpressionEvaluator:
        """Get evaluator by name, or the default one."""
        return self._evaluators.get(name, self._default)

    @property
    def default_evaluator(self) -> ExpressionEvaluator:
        return self._default

    def set_default_evaluator(self, name: str) -> None:
        """Make a registered evaluator the default. Unknown names are ignored."""
        evaluator = self._evaluators.get(name)
        if evaluator is None:
            logger.debug(f"Ignoring unknown default evaluator '{name}'")
            return
        self._default = evaluator

    @property
    def names(self) -> list[str]:
        return list(self._evaluators)

    def __contains__(self, name: object) -> bool:
        return name in self._evaluators

    def __len__(self) -> int:
        return len(self._evaluators)


def create_default_registry(settings: Optional[Settings] = None) -> ExpressionEvaluatorRegistry:
    """Registry with the built-in evaluators and the configured default."""
    settings = settings or get_settings()
    return ExpressionEvaluatorRegistry(
        [AttributeExpressionEvaluator(), TriggerNameExpressionEvaluator()],
        default=settings.evaluator.default,
    )
