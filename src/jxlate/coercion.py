"""Type coercion for field values.

``coerce(value, as_)`` maps an evaluated value to its output type. With an
explicit type the conversion is total except for ``json``; without one only
strings are inspected, turning numeric text into numbers and
``true``/``false``/``null`` (any case) into their JSON values.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Literal, Optional

from jxlate.exceptions import CoercionError

CoercionType = Literal["string", "number", "boolean", "json"]

COERCION_TYPES = ("string", "number", "boolean", "json")

NUMERIC = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*$")
INTEGER = re.compile(r"^\s*[+-]?\d+\s*$")


def to_string(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def parse_number(text: str) -> Optional[int | float]:
    """Parse numeric text, returning None when it is not a finite number."""
    if not NUMERIC.match(text):
        return None
    if INTEGER.match(text):
        return int(text)
    number = float(text)
    if math.isinf(number):
        return None
    return number


def to_number(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        number = parse_number(value)
        return value if number is None else number
    return value


def to_boolean(value: Any) -> bool:
    return value is True or value == "true"


def to_json(value: Any) -> Any:
    text = value if isinstance(value, (str, bytes, bytearray)) else to_string(value)
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise CoercionError(value, "json") from e


def infer(value: Any) -> Any:
    """Guess the type of string values; anything else is returned as-is."""
    if not isinstance(value, str):
        return value

    number = parse_number(value)
    if number is not None:
        return number

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered == "null":
        return None
    return value


_EXPLICIT = {
    "string": to_string,
    "number": to_number,
    "boolean": to_boolean,
    "json": to_json,
}


def coerce(value: Any, as_: Optional[CoercionType] = None) -> Any:
    """Coerce a value to ``as_``, or infer its type when ``as_`` is None.

    Raises:
        CoercionError: If ``as_`` is ``json`` and the value does not parse.
    """
    if as_:
        return _EXPLICIT[as_](value)
    return infer(value)
