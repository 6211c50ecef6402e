"""Configuration models for jxlate engines.

- EngineConfig: names registered on the expression adapter before compiling
  - functions: callables usable as ``name(args)``
  - transforms: callables usable as ``value|name`` or ``value|name(args)``
  - binary_ops: infix operators with an explicit precedence
  - strict: missing names raise instead of resolving to absent
- StreamOptions: failure policy for sequential processing
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from jxlate.exceptions import ConfigurationError


class BinaryOperator(BaseModel):
    """A named infix operator."""

    precedence: int = Field(description="Binding strength; built-ins rank 10 to 50")
    fn: Callable[[Any, Any], Any] = Field(description="Combines left and right operands")


class EngineConfig(BaseModel):
    """Extension points registered before the template is compiled."""

    model_config = {"populate_by_name": True}

    functions: dict[str, Callable[..., Any]] = Field(default_factory=dict)
    transforms: dict[str, Callable[..., Any]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("transforms", "tranforms"),
    )
    binary_ops: dict[str, BinaryOperator] = Field(
        default_factory=dict, alias="binaryOps"
    )
    strict: bool = False

    @classmethod
    def resolve(cls, config: "EngineConfig | dict[str, Any] | None") -> "EngineConfig":
        """Build an EngineConfig from a model, mapping or None.

        Raises:
            ConfigurationError: If the mapping does not validate.
        """
        if config is None:
            return cls()
        if isinstance(config, cls):
            return config
        try:
            return cls.model_validate(dict(config))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid engine config: {e}") from e


class StreamOptions(BaseModel):
    """Failure policy for ``Jxlate.stream``.

    ``error_collector`` is any object with ``append``; it is kept by
    reference so callers can inspect it while the stream runs.
    """

    model_config = {"arbitrary_types_allowed": True}

    on_error: Literal["throw", "continue"] = "throw"
    error_collector: Optional[Any] = None

    @field_validator("error_collector")
    @classmethod
    def check_appendable(cls, value: Any) -> Any:
        if value is not None and not callable(getattr(value, "append", None)):
            raise ValueError("error_collector must support append()")
        return value
