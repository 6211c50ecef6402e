"""Jxlate - declarative JSON-to-JSON transformation with Jinja2 expressions."""

from importlib.metadata import PackageNotFoundError, version

from jxlate.config import BinaryOperator, EngineConfig, StreamOptions
from jxlate.engine import Jxlate
from jxlate.exceptions import (
    CoercionError,
    CompilationError,
    ConfigurationError,
    EvaluationError,
    JxlateError,
    RequiredFieldError,
    ShapeError,
    TemplateError,
    ValidationError,
    Violation,
)
from jxlate.stream import SequentialProcessor
from jxlate.template import load_template

try:
    __version__ = version("jxlate")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    # engine
    "Jxlate",
    "SequentialProcessor",
    "load_template",
    # config
    "BinaryOperator",
    "EngineConfig",
    "StreamOptions",
    # errors
    "JxlateError",
    "CompilationError",
    "TemplateError",
    "ConfigurationError",
    "ShapeError",
    "EvaluationError",
    "CoercionError",
    "RequiredFieldError",
    "ValidationError",
    "Violation",
]
