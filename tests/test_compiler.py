"""Tests for the template compiler and loader."""

import dataclasses
import json

import pytest

from jxlate import CompilationError, TemplateError
from jxlate.expressions import ExpressionAdapter
from jxlate.template import (
    ArrayNode,
    ConstantNode,
    FieldNode,
    ObjectNode,
    TemplateCompiler,
    load_template,
    match_literal,
)


@pytest.fixture
def compiler():
    return TemplateCompiler(ExpressionAdapter())


# =============================================================================
# Node classification
# =============================================================================


def test_field_node(compiler):
    node = compiler.compile({"from": "age", "if": "age > 1", "as": "number"})
    assert isinstance(node, FieldNode)
    assert node.expression.source == "age"
    assert node.condition.source == "age > 1"
    assert node.as_ == "number"
    assert node.required is False
    assert node.validate is None


def test_array_node(compiler):
    node = compiler.compile({"from": "items[]", "values": {"N": {"from": "n"}}})
    assert isinstance(node, ArrayNode)
    assert node.key == "items"
    assert node.source == "items[]"
    assert isinstance(node.values, ObjectNode)


def test_object_node_keeps_key_order(compiler):
    node = compiler.compile({"B": {"from": "b"}, "A": {"from": "a"}, "C": 3})
    assert isinstance(node, ObjectNode)
    assert [key for key, _ in node.children] == ["B", "A", "C"]
    assert node.children[2][1] == ConstantNode(value=3)


def test_non_mapping_is_constant(compiler):
    assert compiler.compile([1, 2]) == ConstantNode(value=[1, 2])
    assert compiler.compile("text") == ConstantNode(value="text")


def test_nodes_are_immutable(compiler):
    node = compiler.compile({"from": "age"})
    with pytest.raises(dataclasses.FrozenInstanceError):
        node.required = True


def test_extra_keys_are_ignored(compiler):
    node = compiler.compile({"from": "age", "description": "the age"})
    assert isinstance(node, FieldNode)


def test_values_without_array_source_is_a_field(compiler):
    node = compiler.compile({"from": "age", "values": {"from": "x"}})
    assert isinstance(node, FieldNode)
    assert node.expression.source == "age"


# =============================================================================
# Literals
# =============================================================================


@pytest.mark.parametrize(
    "source,kind,text",
    [
        ("value(26)", "value", "26"),
        ("string(Hello, World)", "string", "Hello, World"),
        ("number(43)", "number", "43"),
        ("boolean(true)", "boolean", "true"),
        ("boolean(false)", "boolean", "false"),
        ("null()", "null", ""),
    ],
)
def test_match_literal(source, kind, text):
    literal = match_literal(source)
    assert literal.kind == kind
    assert literal.text == text
    assert literal.source == source


@pytest.mark.parametrize(
    "source", ["number(4.5)", "boolean(yes)", "null(x)", "first_name", "values(x)"]
)
def test_non_literals(source):
    assert match_literal(source) is None


def test_literals_are_not_compiled(compiler):
    # Not a valid expression, but never handed to the expression engine
    node = compiler.compile({"from": "string(Hello World)"})
    assert node.expression is None
    assert node.literal.text == "Hello World"


# =============================================================================
# Errors
# =============================================================================


def test_invalid_expression_raises_compilation_error(compiler):
    with pytest.raises(CompilationError) as exc:
        compiler.compile({"A": {"from": "age >"}})
    assert exc.value.expression == "age >"


def test_invalid_condition_raises_compilation_error(compiler):
    with pytest.raises(CompilationError):
        compiler.compile({"A": {"from": "age", "if": "(("}})


@pytest.mark.parametrize(
    "raw",
    [
        {"from": ""},
        {"from": 12},
        {"from": "age", "as": "date"},
        {"from": "age", "required": "yes"},
        {"from": "age", "validate": 5},
        {"from": "items[]"},
    ],
)
def test_structural_errors(compiler, raw):
    with pytest.raises(TemplateError):
        compiler.compile({"Field": raw})


def test_template_error_names_the_path(compiler):
    with pytest.raises(TemplateError) as exc:
        compiler.compile({"Outer": {"Inner": {"from": "x", "as": "date"}}})
    assert exc.value.path == "Outer.Inner"
    assert exc.value.payload["path"] == "Outer.Inner"
    assert "Outer.Inner" in str(exc.value)


def test_template_error_is_a_compilation_error():
    assert issubclass(TemplateError, CompilationError)


# =============================================================================
# Loading
# =============================================================================


def test_load_yaml_template(tmp_path):
    path = tmp_path / "template.yaml"
    path.write_text(
        "FirstName:\n"
        "  from: first_name\n"
        "  required: true\n"
        "Tags:\n"
        "  from: tags[]\n"
        "  values:\n"
        "    from: label\n"
    )
    assert load_template(path) == {
        "FirstName": {"from": "first_name", "required": True},
        "Tags": {"from": "tags[]", "values": {"from": "label"}},
    }


def test_load_json_template(tmp_path):
    template = {"A": {"from": "a", "as": "number"}}
    path = tmp_path / "template.json"
    path.write_text(json.dumps(template))
    assert load_template(path) == template


def test_load_template_rejects_non_mapping(tmp_path):
    path = tmp_path / "template.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(TemplateError):
        load_template(path)


def test_load_template_rejects_bad_yaml(tmp_path):
    path = tmp_path / "template.yaml"
    path.write_text("A: [unclosed\n")
    with pytest.raises(TemplateError):
        load_template(path)
