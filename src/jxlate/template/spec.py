"""Compiled template IR - the node kinds a raw template compiles into."""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

from jxlate.coercion import CoercionType
from jxlate.expressions import CompiledExpression

ARRAY_MARKER = "[]"


@dataclass(frozen=True)
class Literal:
    """A ``from`` value given in literal syntax, e.g. ``number(43)``."""

    kind: str  # value, string, number, boolean or null
    text: str  # text between the parentheses
    source: str  # original ``from`` text


@dataclass(frozen=True)
class FieldNode:
    """A single value derived from an expression or a literal."""

    source: str  # original ``from`` text
    expression: Optional[CompiledExpression] = None  # None for literals
    literal: Optional[Literal] = None
    condition: Optional[CompiledExpression] = None  # ``if``
    required: bool = False
    as_: Optional[CoercionType] = None
    validate: Optional[CompiledExpression] = None


@dataclass(frozen=True)
class ArrayNode:
    """Projects every element of ``data[key]`` through ``values``."""

    source: str  # original ``from`` text, e.g. ``items[]``
    key: str  # lookup key with the marker stripped
    values: "Node"
    condition: Optional[CompiledExpression] = None
    required: bool = False


@dataclass(frozen=True)
class ObjectNode:
    """Nested structure; children keep declaration order."""

    children: Tuple[Tuple[str, "Node"], ...] = ()


@dataclass(frozen=True)
class ConstantNode:
    """A non-mapping template value, emitted unchanged."""

    value: Any = None


Node = Union[FieldNode, ArrayNode, ObjectNode, ConstantNode]
