"""Load raw templates from JSON or YAML files."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from jxlate.exceptions import TemplateError


def load_template(path: str | Path) -> Any:
    """Read a raw template from a ``.json``, ``.yaml`` or ``.yml`` file.

    JSON is a subset of YAML, so both go through ``yaml.safe_load``.
    """
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text())
    except yaml.YAMLError as e:
        raise TemplateError("", f"cannot parse {p}: {e}") from e

    if not isinstance(data, dict):
        raise TemplateError("", f"{p} must contain a mapping at the top level")
    return data
