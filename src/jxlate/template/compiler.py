"""Compiler - turns a raw template tree into the compiled node IR."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple

from jxlate.coercion import COERCION_TYPES
from jxlate.exceptions import TemplateError
from jxlate.expressions import CompiledExpression, ExpressionAdapter
from jxlate.template.spec import (
    ARRAY_MARKER,
    ArrayNode,
    ConstantNode,
    FieldNode,
    Literal,
    Node,
    ObjectNode,
)

log = logging.getLogger(__name__)

# Checked in order against the original ``from`` text.
LITERAL_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("value", re.compile(r"^value\((.*)\)$", re.DOTALL)),
    ("string", re.compile(r"^string\((.*)\)$", re.DOTALL)),
    ("number", re.compile(r"^number\((\d+)\)$")),
    ("boolean", re.compile(r"^boolean\((true|false)\)$")),
    ("null", re.compile(r"^null\(\)$")),
]


def match_literal(source: str) -> Optional[Literal]:
    """Match literal syntax such as ``value(x)`` or ``null()``."""
    for kind, pattern in LITERAL_PATTERNS:
        match = pattern.match(source)
        if match:
            text = match.group(1) if pattern.groups else ""
            return Literal(kind=kind, text=text, source=source)
    return None


def join_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


class TemplateCompiler:
    """Compiles raw templates against an expression adapter.

    Every ``from``, ``if`` and ``validate`` string is compiled exactly once;
    the resulting tree is immutable and shared by every transformation.
    """

    def __init__(self, adapter: ExpressionAdapter):
        self.adapter = adapter
        self._expressions = 0

    def compile(self, template: Any) -> Node:
        """Compile a raw template.

        Args:
            template: Raw template, typically parsed JSON or YAML.

        Returns:
            Root node of the compiled template.

        Raises:
            CompilationError: If an expression is not valid.
            TemplateError: If a node is structurally invalid.
        """
        self._expressions = 0
        root = self._compile_node(template, "")
        log.debug("Compiled template with %d expressions", self._expressions)
        return root

    def _compile_node(self, raw: Any, path: str) -> Node:
        if not isinstance(raw, Mapping):
            return ConstantNode(value=raw)

        if "from" in raw:
            source = raw["from"]
            if not isinstance(source, str) or not source.strip():
                raise TemplateError(path, "'from' must be a non-empty string")
            if ARRAY_MARKER in source:
                return self._compile_array(raw, path)
            return self._compile_field(raw, path)

        children = tuple(
            (str(key), self._compile_node(child, join_path(path, str(key))))
            for key, child in raw.items()
        )
        return ObjectNode(children=children)

    def _compile_field(self, raw: Mapping, path: str) -> FieldNode:
        # ``values`` only applies to array sources and is ignored here.
        source = raw["from"]
        as_ = raw.get("as")
        if as_ is not None and as_ not in COERCION_TYPES:
            raise TemplateError(
                path, f"'as' must be one of {', '.join(COERCION_TYPES)}, got {as_!r}"
            )

        literal = match_literal(source)
        return FieldNode(
            source=source,
            expression=None if literal else self._expression(source, "from", path),
            literal=literal,
            condition=self._optional_expression(raw, "if", path),
            required=self._required(raw, path),
            as_=as_,
            validate=self._optional_expression(raw, "validate", path),
        )

    def _compile_array(self, raw: Mapping, path: str) -> ArrayNode:
        if "values" not in raw:
            raise TemplateError(path, f"array source '{raw['from']}' has no 'values'")

        source = raw["from"]
        return ArrayNode(
            source=source,
            key=source.replace(ARRAY_MARKER, "", 1).strip(),
            values=self._compile_node(raw["values"], path),
            condition=self._optional_expression(raw, "if", path),
            required=self._required(raw, path),
        )

    def _required(self, raw: Mapping, path: str) -> bool:
        required = raw.get("required", False)
        if not isinstance(required, bool):
            raise TemplateError(path, "'required' must be a boolean")
        return required

    def _optional_expression(
        self, raw: Mapping, key: str, path: str
    ) -> Optional[CompiledExpression]:
        text = raw.get(key)
        if text is None:
            return None
        return self._expression(text, key, path)

    def _expression(self, text: Any, key: str, path: str) -> CompiledExpression:
        if not isinstance(text, str):
            raise TemplateError(path, f"'{key}' must be an expression string")
        self._expressions += 1
        return self.adapter.compile(text)
