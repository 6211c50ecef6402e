"""Transformation engine - evaluates a compiled template against one record."""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List

from jxlate.coercion import coerce, parse_number
from jxlate.exceptions import RequiredFieldError, ShapeError, ValidationError, Violation
from jxlate.expressions import CompiledExpression, ExpressionAdapter
from jxlate.template.spec import (
    ArrayNode,
    ConstantNode,
    FieldNode,
    Literal,
    Node,
    ObjectNode,
)

log = logging.getLogger(__name__)

# Path reported for violations on a root-level field.
ROOT_PATH = "<root>"


class _Absent:
    """Marks a result that is left out of the output, unlike None (null)."""

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


@dataclass
class TransformContext:
    """Violations collected during a single transformation.

    A fresh context is created per record, so concurrent transformations
    never share state.
    """

    required: List[str] = field(default_factory=list)
    validation: List[Violation] = field(default_factory=list)

    def missing(self, path: str) -> None:
        self.required.append(path or ROOT_PATH)

    def invalid(self, path: str, test: str, value: Any) -> None:
        self.validation.append(Violation(path=path or ROOT_PATH, test=test, value=value))

    def raise_for_violations(self) -> None:
        """Raise required-field errors first, then validation errors."""
        if self.required:
            raise RequiredFieldError(self.required)
        if self.validation:
            raise ValidationError(self.validation)


class Transformer:
    """Walks compiled templates, evaluating expressions through an adapter."""

    def __init__(self, adapter: ExpressionAdapter):
        self.adapter = adapter

    def transform(self, node: Node, data: Any) -> Any:
        """Transform one record.

        Args:
            node: Root of a compiled template.
            data: Input record, usually a mapping.

        Returns:
            The output record. An absent root field yields None.

        Raises:
            RequiredFieldError: If any required field resolved to absent.
            ValidationError: If any field failed its ``validate`` expression.
            ShapeError: If an array source is not a list.
            EvaluationError: If an expression raised.
            CoercionError: If a ``json`` coercion failed.
        """
        context = TransformContext()
        result = self.transform_node(node, data, context, "")
        context.raise_for_violations()
        return None if result is ABSENT else result

    def transform_node(
        self, node: Node, data: Any, context: TransformContext, path: str
    ) -> Any:
        if isinstance(node, FieldNode):
            return self._transform_field(node, data, context, path)
        if isinstance(node, ArrayNode):
            return self._transform_array(node, data, context, path)
        if isinstance(node, ObjectNode):
            return self._transform_object(node, data, context, path)
        if isinstance(node, ConstantNode):
            return copy.deepcopy(node.value)
        raise TypeError(f"Unknown template node: {node!r}")

    def _transform_object(
        self, node: ObjectNode, data: Any, context: TransformContext, path: str
    ) -> dict:
        obj = {}
        for key, child in node.children:
            result = self.transform_node(
                child, data, context, f"{path}.{key}" if path else key
            )
            if result is not ABSENT:
                obj[key] = result
        return obj

    def _transform_array(
        self, node: ArrayNode, data: Any, context: TransformContext, path: str
    ) -> Any:
        if node.condition is not None and not self._evaluate(node.condition, data):
            if node.required:
                context.missing(path)
            return ABSENT

        # Array sources are plain keys of the current record, not expressions.
        items = data.get(node.key) if isinstance(data, Mapping) else None
        if not isinstance(items, (list, tuple)):
            raise ShapeError(path, node.key, items)

        # Elements become the data scope; violations keep the array's path.
        arr = []
        for item in items:
            result = self.transform_node(node.values, item, context, path)
            if result is not ABSENT:
                arr.append(result)
        return arr

    def _transform_field(
        self, node: FieldNode, data: Any, context: TransformContext, path: str
    ) -> Any:
        if node.literal is not None:
            return self._literal(node.literal, node.as_)

        if node.condition is not None and not self._evaluate(node.condition, data):
            if node.required:
                log.debug("Condition failed for required field %s", path or ROOT_PATH)
                context.missing(path)
            return ABSENT

        value = self._evaluate(node.expression, data)
        if value is None:
            if node.required:
                context.missing(path)
            return ABSENT

        value = coerce(value, node.as_)

        # Validation never removes the field from the output.
        if node.validate is not None and not self._evaluate(
            node.validate, data, value=value
        ):
            context.invalid(path, node.validate.source, value)
        return value

    def _literal(self, literal: Literal, as_: Any) -> Any:
        if literal.kind == "value":
            return coerce(literal.text, as_)
        if literal.kind == "string":
            return literal.text
        if literal.kind == "number":
            return parse_number(literal.text)
        if literal.kind == "boolean":
            return literal.text == "true"
        return None

    def _evaluate(self, expression: CompiledExpression, data: Any, **extra: Any) -> Any:
        return self.adapter.evaluate(expression, data, **extra)
