"""Sequential processor - applies an engine to a sequence of records."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional

from jxlate.config import StreamOptions
from jxlate.exceptions import JxlateError

if TYPE_CHECKING:
    from jxlate.engine import Jxlate

log = logging.getLogger(__name__)


class SequentialProcessor:
    """Transforms records one at a time, in input order.

    With ``on_error="throw"`` the first failing record raises out of the
    iteration and nothing after it is processed. With ``on_error="continue"``
    the failure's payload is appended to ``error_collector`` (when given) and
    the record is skipped.

    Processing is lazy: closing the iterator, or simply no longer pulling
    from it, stops consuming the input.

    Example:
        errors = []
        stream = engine.stream(on_error="continue", error_collector=errors)
        for out in stream.process(records):
            ...
    """

    def __init__(
        self,
        engine: "Jxlate",
        options: Optional[StreamOptions] = None,
        records: Optional[Iterable[Any]] = None,
    ):
        self.engine = engine
        self.options = options or StreamOptions()
        self.records = records
        self.processed = 0
        self.failed = 0

    def process(self, records: Iterable[Any]) -> Iterator[Any]:
        """Yield the transformed form of every successfully parsed record."""
        for index, record in enumerate(records):
            try:
                result = self.engine.parse(record)
            except JxlateError as e:
                self.failed += 1
                if self.options.on_error == "throw":
                    raise
                log.warning("Skipping record %d: %s", index, e)
                if self.options.error_collector is not None:
                    self.options.error_collector.append(e.payload)
                continue
            self.processed += 1
            yield result

    def __iter__(self) -> Iterator[Any]:
        if self.records is None:
            raise TypeError("No records bound to this stream; call process(records)")
        return self.process(self.records)
