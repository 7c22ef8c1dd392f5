"""
Restricted evaluation of approval step conditions.

Conditions are small boolean expressions over the approval context, e.g.
``context.risk_rating == 'HIGH' and context.risk_score > 60``. Only literals,
names, attribute and key access, comparisons, membership tests and boolean
operators are allowed. JavaScript-style ``===``, ``!==``, ``&&``, ``||`` and
``true``/``false``/``null`` are accepted as well, since stored route
configurations use that syntax.

Anything outside that grammar, or any evaluation error, makes the condition
false.
"""

from __future__ import annotations

import ast
import operator
import re
from typing import Any, Mapping

from practiceflow.core.logging_config import get_logger

logger = get_logger(__name__)

_COMPARATORS = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.In: lambda left, right: left in right,
    ast.NotIn: lambda left, right: left not in right,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
}

_CONSTANT_NAMES = {"true": True, "false": False, "null": None, "True": True, "False": False, "None": None}

# Outside of string literals only
_JS_TOKENS = [
    (re.compile(r"===|=="), "=="),
    (re.compile(r"!==|!="), "!="),
    (re.compile(r"&&"), " and "),
    (re.compile(r"\|\|"), " or "),
]

_STRING_LITERAL = re.compile(r"('(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\")")


class ConditionError(ValueError):
    """The expression uses syntax outside the allowed grammar."""


def _normalize(expression: str) -> str:
    parts = _STRING_LITERAL.split(expression)
    for index in range(0, len(parts), 2):
        for pattern, replacement in _JS_TOKENS:
            parts[index] = pattern.sub(replacement, parts[index])
    return "".join(parts).strip()


class _Evaluator:
    def __init__(self, context: Mapping[str, Any]) -> None:
        self.context = context

    def visit(self, node: ast.AST) -> Any:
        if isinstance(node, ast.Expression):
            return self.visit(node.body)
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            if node.id == "context":
                return self.context
            if node.id in _CONSTANT_NAMES:
                return _CONSTANT_NAMES[node.id]
            return self.context.get(node.id)
        if isinstance(node, ast.Attribute):
            return self._lookup(self.visit(node.value), node.attr)
        if isinstance(node, ast.Subscript):
            return self._lookup(self.visit(node.value), self.visit(node.slice))
        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                return all(self.visit(value) for value in node.values)
            return any(self.visit(value) for value in node.values)
        if isinstance(node, ast.UnaryOp):
            if isinstance(node.op, ast.Not):
                return not self.visit(node.operand)
            if isinstance(node.op, ast.USub):
                return -self.visit(node.operand)
        if isinstance(node, ast.Compare):
            left = self.visit(node.left)
            for op, comparator in zip(node.ops, node.comparators):
                right = self.visit(comparator)
                if not _COMPARATORS[type(op)](left, right):
                    return False
                left = right
            return True
        if isinstance(node, (ast.List, ast.Tuple, ast.Set)):
            return [self.visit(element) for element in node.elts]
        raise ConditionError(f"Unsupported expression element: {type(node).__name__}")

    @staticmethod
    def _lookup(container: Any, key: Any) -> Any:
        if isinstance(container, Mapping):
            return container.get(key)
        if isinstance(container, (list, tuple)) and isinstance(key, int):
            return container[key] if -len(container) <= key < len(container) else None
        return None


def evaluate_condition(expression: str, context: Mapping[str, Any]) -> bool:
    """Evaluate ``expression`` against ``context``; invalid expressions are false."""
    if not expression or not expression.strip():
        return True
    try:
        tree = ast.parse(_normalize(expression), mode="eval")
        return bool(_Evaluator(context).visit(tree))
    except (SyntaxError, ConditionError, TypeError, ValueError, KeyError) as e:
        logger.warning(f"Could not evaluate approval condition {expression!r}: {e}")
        return False


def resolve_path(context: Mapping[str, Any], path: str) -> Any:
    """Follow a dotted path through nested mappings; missing segments give None."""
    current: Any = context
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current
