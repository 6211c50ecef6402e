"""Tests for the expression adapter and binary operator extension."""

import operator

import pytest

from jxlate import CompilationError, ConfigurationError, EvaluationError, Jxlate
from jxlate.expressions import ExpressionAdapter


@pytest.fixture
def adapter():
    return ExpressionAdapter()


def test_evaluate_compiled_expression(adapter):
    compiled = adapter.compile("age > 25")
    assert compiled.source == "age > 25"
    assert adapter.evaluate(compiled, {"age": 30}) is True
    assert adapter.evaluate(compiled, {"age": 20}) is False


def test_evaluate_string(adapter):
    assert adapter.evaluate_string("a ~ '-' ~ b", {"a": "x", "b": "y"}) == "x-y"


def test_undefined_names_resolve_to_none(adapter):
    assert adapter.evaluate_string("missing", {}) is None
    assert adapter.evaluate_string("missing.deeper", {}) is None


def test_ordering_against_missing_names_is_false(adapter):
    assert adapter.evaluate_string("missing > 1", {}) is False
    assert adapter.evaluate_string("1 < missing", {}) is False
    assert adapter.evaluate_string("missing >= missing", {}) is False
    assert adapter.evaluate_string("not (missing <= 1)", {}) is True


def test_arithmetic_on_missing_names_raises(adapter):
    with pytest.raises(EvaluationError):
        adapter.evaluate_string("missing + 1", {})


def test_non_mapping_data_has_no_names(adapter):
    assert adapter.evaluate_string("name", "just a string") is None


def test_extra_names_override_data(adapter):
    assert adapter.evaluate_string("value", {"value": 1}, value=2) == 2


def test_syntax_error_raises_compilation_error(adapter):
    with pytest.raises(CompilationError) as exc:
        adapter.compile("age >")
    assert exc.value.expression == "age >"


def test_unknown_transform_fails_at_construction():
    with pytest.raises(CompilationError):
        Jxlate({"A": {"from": "name|nosuchtransform"}})


def test_evaluation_error_wraps_cause(adapter):
    with pytest.raises(EvaluationError) as exc:
        adapter.evaluate_string("1 // 0", {})
    assert exc.value.expression == "1 // 0"
    assert isinstance(exc.value.cause, ZeroDivisionError)


def test_strict_adapter():
    strict = ExpressionAdapter(strict=True)
    with pytest.raises(EvaluationError):
        strict.evaluate_string("missing", {})
    assert strict.evaluate_string("present", {"present": 0}) == 0
    with pytest.raises(EvaluationError):
        strict.evaluate_string("missing > 1", {})


def test_functions_and_transforms(adapter):
    adapter.add_function("greet", lambda name: f"hi {name}")
    adapter.add_transform("shout", lambda value, mark="!": value.upper() + mark)
    assert adapter.evaluate_string("greet(name)|shout", {"name": "bo"}) == "HI BO!"
    assert adapter.evaluate_string("name|shout('?')", {"name": "bo"}) == "BO?"


# =============================================================================
# Binary operators
# =============================================================================


class TestBinaryOperators:
    def test_simple_operator(self, adapter):
        adapter.add_binary_operator("plus", 30, operator.add)
        assert adapter.evaluate_string("a plus 1", {"a": 2}) == 3

    def test_low_precedence_binds_last(self, adapter):
        adapter.add_binary_operator("plus", 1, operator.add)
        assert adapter.evaluate_string("a plus b * 2", {"a": 1, "b": 3}) == 7

    def test_high_precedence_binds_first(self, adapter):
        adapter.add_binary_operator("plus", 50, operator.add)
        assert adapter.evaluate_string("a plus b * 2", {"a": 1, "b": 3}) == 8

    def test_left_associative(self, adapter):
        adapter.add_binary_operator("minus", 30, operator.sub)
        assert adapter.evaluate_string("10 minus 3 minus 2", {}) == 5

    def test_operator_with_comparison(self, adapter):
        adapter.add_binary_operator("plus", 30, operator.add)
        assert adapter.evaluate_string("a plus 1 > 2", {"a": 2}) is True

    def test_operator_inside_groups(self, adapter):
        adapter.add_binary_operator("plus", 30, operator.add)
        assert adapter.evaluate_string("(a plus 1) * 2", {"a": 1}) == 4
        assert adapter.evaluate_string("[a plus 1, a]", {"a": 1}) == [2, 1]

    def test_operator_with_filters(self, adapter):
        adapter.add_binary_operator("plus", 30, operator.add)
        assert adapter.evaluate_string("a|upper plus b", {"a": "x", "b": "y"}) == "Xy"

    def test_operator_name_as_attribute(self, adapter):
        adapter.add_binary_operator("plus", 30, operator.add)
        assert adapter.evaluate_string("x.plus", {"x": {"plus": 5}}) == 5

    def test_expressions_without_operators_unchanged(self, adapter):
        adapter.add_binary_operator("plus", 30, operator.add)
        assert adapter.evaluate_string("not a or b", {"a": True, "b": False}) is False

    def test_word_operator(self, adapter):
        adapter.add_binary_operator(
            "startswith", 20, lambda left, right: str(left).startswith(right)
        )
        data = {"name": "Johnny"}
        assert adapter.evaluate_string("name startswith 'Jo' and true", data) is True

    @pytest.mark.parametrize("name", ["not-valid", "1plus", "and", "is"])
    def test_invalid_names(self, adapter, name):
        with pytest.raises(ConfigurationError):
            adapter.add_binary_operator(name, 10, operator.add)


def test_shared_adapter_keeps_latest_registration():
    shared = ExpressionAdapter()
    first = Jxlate(
        {"A": {"from": "a combine b"}},
        {"binary_ops": {"combine": {"precedence": 30, "fn": operator.add}}},
        adapter=shared,
    )
    Jxlate(
        {"A": {"from": "a combine b"}},
        {"binary_ops": {"combine": {"precedence": 30, "fn": operator.mul}}},
        adapter=shared,
    )
    assert first.parse({"a": 2, "b": 3}) == {"A": 6}


def test_engines_do_not_share_registrations():
    Jxlate({}, {"functions": {"double": lambda v: v * 2}})
    with pytest.raises(EvaluationError):
        Jxlate({"A": {"from": "double(2)"}}).parse({})
