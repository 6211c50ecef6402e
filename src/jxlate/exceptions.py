"""Jxlate Exceptions

Error types raised while compiling templates and transforming records.
Every error carries a JSON-friendly ``payload`` so collectors can store
structured diagnostics instead of bare messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List


class JxlateError(Exception):
    """Base exception for all jxlate errors."""

    kind = "error"

    @property
    def payload(self) -> dict[str, Any]:
        return {"error": self.kind, "message": str(self)}


class CompilationError(JxlateError):
    """Raised when an expression in a template cannot be compiled."""

    kind = "compilation"

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"Failed to compile expression: {expression}. Error: {reason}")

    @property
    def payload(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "message": str(self),
            "expression": self.expression,
        }


class TemplateError(CompilationError):
    """Raised when a template node is structurally invalid."""

    kind = "template"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.expression = ""
        self.reason = reason
        JxlateError.__init__(self, f"Invalid template at '{path or '<root>'}': {reason}")

    @property
    def payload(self) -> dict[str, Any]:
        return {"error": self.kind, "message": str(self), "path": self.path}


class ConfigurationError(JxlateError):
    """Raised when engine configuration is invalid."""

    kind = "configuration"


class ShapeError(JxlateError):
    """Raised when an array template's source is not a sequence."""

    kind = "shape"

    def __init__(self, path: str, key: str, value: Any):
        self.path = path
        self.key = key
        self.value = value
        super().__init__(
            f"Expected an array for '{key}' but got: {type(value).__name__}"
        )


class EvaluationError(JxlateError):
    """Raised when evaluating an expression fails."""

    kind = "evaluation"

    def __init__(self, expression: str, cause: BaseException):
        self.expression = expression
        self.cause = cause
        super().__init__(f"Failed to evaluate expression: {expression}. Error: {cause}")

    @property
    def payload(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "message": str(self),
            "expression": self.expression,
        }


class CoercionError(JxlateError):
    """Raised when an explicit ``json`` coercion cannot parse its input."""

    kind = "coercion"

    def __init__(self, value: Any, target: str = "json"):
        self.value = value
        self.target = target
        super().__init__(f'Cannot coerce value "{value}" to {target.upper()}')


class RequiredFieldError(JxlateError):
    """Raised when required fields resolved to absent values."""

    kind = "required"

    def __init__(self, paths: Iterable[str]):
        # Array descent reports the array path once per element.
        self.paths: List[str] = list(dict.fromkeys(paths))
        super().__init__(
            f"Required fields are missing or invalid: {', '.join(self.paths)}"
        )

    @property
    def payload(self) -> dict[str, Any]:
        return {"required": list(self.paths)}


@dataclass(frozen=True)
class Violation:
    """A field value that failed its ``validate`` expression."""

    path: str
    test: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "test": self.test, "value": self.value}


class ValidationError(JxlateError):
    """Raised when one or more fields failed validation."""

    kind = "invalid"

    def __init__(self, violations: Iterable[Violation]):
        self.violations: List[Violation] = list(violations)
        details = ", ".join(f"{v.path} ({v.test})" for v in self.violations)
        super().__init__(f"Fields failed validation: {details}")

    @property
    def payload(self) -> dict[str, Any]:
        return {"invalid": [v.to_dict() for v in self.violations]}
