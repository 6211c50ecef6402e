"""Expression layer - Jinja2 expressions with custom names and operators."""

from jxlate.expressions.adapter import CompiledExpression, ExpressionAdapter
from jxlate.expressions.extensions import BinaryOperatorExtension, OperatorSpec

__all__ = [
    "CompiledExpression",
    "ExpressionAdapter",
    "BinaryOperatorExtension",
    "OperatorSpec",
]
