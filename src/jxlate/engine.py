"""Jxlate - the public engine tying compiler, transformer and streams together."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import pydantic

from jxlate.config import EngineConfig, StreamOptions
from jxlate.exceptions import ConfigurationError
from jxlate.expressions import ExpressionAdapter
from jxlate.stream import SequentialProcessor
from jxlate.template import Node, TemplateCompiler
from jxlate.transform import Transformer


class Jxlate:
    """Transforms JSON-like records according to a template.

    The template is compiled once, at construction. ``parse`` may then be
    called any number of times, including concurrently.

    Args:
        template: Raw template mapping.
        config: ``EngineConfig`` or an equivalent mapping with
            ``functions``, ``transforms``, ``binary_ops`` and ``strict``.
        adapter: Expression adapter to share with other engines. A new
            one is created when omitted. A shared adapter keeps its own
            strictness; passing a conflicting ``strict`` is an error.

    Raises:
        CompilationError: If any expression in the template is invalid.
        ConfigurationError: If the config is invalid, or sets ``strict``
            differently from a given adapter.

    Example:
        engine = Jxlate({"FirstName": {"from": "first_name"}})
        engine.parse({"first_name": "John"})  # {"FirstName": "John"}
    """

    def __init__(
        self,
        template: Any,
        config: EngineConfig | Dict[str, Any] | None = None,
        *,
        adapter: Optional[ExpressionAdapter] = None,
    ):
        self.config = EngineConfig.resolve(config)
        if (
            adapter is not None
            and "strict" in self.config.model_fields_set
            and self.config.strict != adapter.strict
        ):
            raise ConfigurationError(
                f"strict={self.config.strict} conflicts with the given adapter "
                f"(strict={adapter.strict})"
            )
        self.adapter = adapter or ExpressionAdapter(strict=self.config.strict)
        self.adapter.register(
            functions=self.config.functions,
            transforms=self.config.transforms,
            binary_ops=self.config.binary_ops,
        )
        self.template: Node = TemplateCompiler(self.adapter).compile(template)
        self._transformer = Transformer(self.adapter)

    def parse(self, data: Any) -> Any:
        """Transform a single record.

        Raises:
            RequiredFieldError: Required fields resolved to absent.
            ValidationError: Fields failed their ``validate`` expression.
            ShapeError: An array source is not a list.
            EvaluationError: An expression raised while evaluating.
            CoercionError: An explicit ``json`` coercion failed.
        """
        return self._transformer.transform(self.template, data)

    transform = parse

    def stream(
        self,
        records: Optional[Iterable[Any]] = None,
        *,
        on_error: str = "throw",
        error_collector: Optional[Any] = None,
    ) -> SequentialProcessor:
        """Create a processor applying this engine to a record sequence.

        Args:
            records: Records to bind; iterate the processor to consume them.
            on_error: ``"throw"`` to stop at the first failure or
                ``"continue"`` to skip failing records.
            error_collector: Receives each skipped record's error payload
                under ``"continue"``.

        Raises:
            ConfigurationError: If the options are invalid.
        """
        try:
            options = StreamOptions(on_error=on_error, error_collector=error_collector)
        except pydantic.ValidationError as e:
            raise ConfigurationError(f"Invalid stream options: {e}") from e
        return SequentialProcessor(self, options, records)
