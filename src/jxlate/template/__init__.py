"""Template layer - compiled node IR, compiler and file loading."""

from jxlate.template.compiler import TemplateCompiler, match_literal
from jxlate.template.loader import load_template
from jxlate.template.spec import (
    ArrayNode,
    ConstantNode,
    FieldNode,
    Literal,
    Node,
    ObjectNode,
)

__all__ = [
    "TemplateCompiler",
    "match_literal",
    "load_template",
    "ArrayNode",
    "ConstantNode",
    "FieldNode",
    "Literal",
    "Node",
    "ObjectNode",
]
