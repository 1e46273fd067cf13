"""
Sandboxed boolean expression engine.

Expressions are parsed with ``ast`` and walked over a whitelist of node
types. Nothing is handed to eval/exec.

Supports:
- Comparison: ==, !=, <, <=, >, >=, in, not in (and eq, ne, lt, le, gt, ge)
- Logical: and, or, not (and &&, ||, !)
- Literals: strings, numbers, true/false/null, lists
- String methods: equals, equalsIgnoreCase, startswith, endswith, contains,
  lower, upper (camelCase spellings accepted)
- Attribute access on mapping values: trigger.name

Example:
    expression = compile_expression("name eq 'order-created' && source != 'test'")
    expression.evaluate({"name": "order-created", "source": "shop"})  # True
"""

import ast
import operator
import re
from functools import lru_cache
from typing import Any, Callable, Mapping

from workflow_definition.core.exceptions import ExpressionEvaluationError

# Quoted literals are never rewritten
_LITERAL_PATTERN = re.compile(r"""('(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")""")

_REWRITES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\beq\b"), "=="),
    (re.compile(r"\bne\b"), "!="),
    (re.compile(r"\ble\b"), "<="),
    (re.compile(r"\bge\b"), ">="),
    (re.compile(r"\blt\b"), "<"),
    (re.compile(r"\bgt\b"), ">"),
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
    (re.compile(r"!(?!=)"), " not "),
    (re.compile(r"\btrue\b"), "True"),
    (re.compile(r"\bfalse\b"), "False"),
    (re.compile(r"\bnull\b"), "None"),
]

COMPARISONS: dict[type, Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
}

STRING_METHODS: dict[str, Callable[..., Any]] = {
    "equals": lambda value, other: value == other,
    "equalsIgnoreCase": lambda value, other: value.lower() == str(other).lower(),
    "startswith": str.startswith,
    "startsWith": str.startswith,
    "endswith": str.endswith,
    "endsWith": str.endswith,
    "contains": lambda value, other: other in value,
    "lower": str.lower,
    "toLowerCase": str.lower,
    "upper": str.upper,
    "toUpperCase": str.upper,
}

LITERAL_TYPES = (str, int, float, bool, type(None))


def normalize(expression: str) -> str:
    """Rewrite operator spellings to Python syntax outside of string literals."""
    parts = _LITERAL_PATTERN.split(expression)

    # Odd indexes are the captured literals
    for index in range(0, len(parts), 2):
        segment = parts[index]
        for pattern, replacement in _REWRITES:
            segment = pattern.sub(replacement, segment)
        parts[index] = segment

    return "".join(parts).strip()


class SandboxedExpression:
    """A parsed expression that can be evaluated against variables."""

    def __init__(self, expression: str):
        self.expression = expression
        self.source = normalize(expression)

        try:
            self._tree = ast.parse(self.source, mode="eval")
        except SyntaxError as e:
            raise ExpressionEvaluationError(
                f"Invalid expression '{expression}': {e.msg}", expression
            ) from e

    def evaluate(self, variables: Mapping[str, Any]) -> Any:
        """Evaluate against a variable mapping."""
        return self._eval(self._tree.body, variables)

    def _eval(self, node: ast.AST, variables: Mapping[str, Any]) -> Any:
        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                return all(bool(self._eval(value, variables)) for value in node.values)
            return any(bool(self._eval(value, variables)) for value in node.values)

        if isinstance(node, ast.UnaryOp):
            operand = self._eval(node.operand, variables)
            if isinstance(node.op, ast.Not):
                return not operand
            if isinstance(node.op, ast.USub) and isinstance(operand, (int, float)):
                return -operand
            raise self._unsupported(node)

        if isinstance(node, ast.Compare):
            return self._compare(node, variables)

        if isinstance(node, ast.Name):
            if node.id not in variables:
                raise ExpressionEvaluationError(
                    f"Unknown variable: {node.id}", self.expression
                )
            return variables[node.id]

        if isinstance(node, ast.Constant):
            if not isinstance(node.value, LITERAL_TYPES):
                raise self._unsupported(node)
            return node.value

        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._eval(item, variables) for item in node.elts]

        if isinstance(node, ast.Attribute):
            target = self._eval(node.value, variables)
            if isinstance(target, Mapping) and node.attr in target:
                return target[node.attr]
            raise ExpressionEvaluationError(
                f"Unknown attribute: {node.attr}", self.expression
            )

        if isinstance(node, ast.Call):
            return self._call(node, variables)

        raise self._unsupported(node)

    def _compare(self, node: ast.Compare, variables: Mapping[str, Any]) -> bool:
        left = self._eval(node.left, variables)

        for op, comparator in zip(node.ops, node.comparators):
            compare = COMPARISONS.get(type(op))
            if compare is None:
                raise self._unsupported(op)

            right = self._eval(comparator, variables)
            try:
                if not compare(left, right):
                    return False
            except TypeError as e:
                raise ExpressionEvaluationError(
                    f"Cannot compare {left!r} and {right!r}: {e}", self.expression
                ) from e
            left = right

        return True

    def _call(self, node: ast.Call, variables: Mapping[str, Any]) -> Any:
        if node.keywords or not isinstance(node.func, ast.Attribute):
            raise self._unsupported(node)

        method = STRING_METHODS.get(node.func.attr)
        if method is None:
            raise ExpressionEvaluationError(
                f"Unsupported method: {node.func.attr}", self.expression
            )

        target = self._eval(node.func.value, variables)
        if not isinstance(target, str):
            raise ExpressionEvaluationError(
                f"Method {node.func.attr} called on non-string {target!r}", self.expression
            )

        args = [self._eval(arg, variables) for arg in node.args]
        try:
            return method(target, *args)
        except TypeError as e:
            raise ExpressionEvaluationError(
                f"Bad arguments for {node.func.attr}: {e}", self.expression
            ) from e

    def _unsupported(self, node: ast.AST) -> ExpressionEvaluationError:
        return ExpressionEvaluationError(
            f"Unsupported syntax: {type(node).__name__}", self.expression
        )


@lru_cache(maxsize=512)
def compile_expression(expression: str) -> SandboxedExpression:
    """Parse an expression, caching the result per expression text."""
    return SandboxedExpression(expression)
