"""Event expression evaluation."""

from workflow_definition.expression.evaluators import (
    AttributeExpressionEvaluator,
    ExpressionEvaluator,
    SandboxedExpressionEvaluator,
    TriggerContext,
    TriggerNameExpressionEvaluator,
)
from workflow_definition.expression.registry import (
    ExpressionEvaluatorRegistry,
    create_default_registry,
)
from workflow_definition.expression.sandbox import SandboxedExpression, compile_expression

__all__ = [
    "AttributeExpressionEvaluator",
    "ExpressionEvaluator",
    "ExpressionEvaluatorRegistry",
    "SandboxedExpression",
    "SandboxedExpressionEvaluator",
    "TriggerContext",
    "TriggerNameExpressionEvaluator",
    "compile_expression",
    "create_default_registry",
]
