"""Jxlate CLI

Transform newline-delimited JSON records with a template.

Usage:
    jxlate template.yaml records.ndjson          # transform a file
    cat records.ndjson | jxlate template.json    # transform stdin
    jxlate template.yaml data.json --array       # input is one JSON array
    jxlate template.yaml in.ndjson --on-error continue --errors errors.ndjson
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterator, List, NoReturn, Optional, TextIO

import typer
from rich.console import Console
from rich.logging import RichHandler

from jxlate import __version__
from jxlate.engine import Jxlate
from jxlate.exceptions import JxlateError
from jxlate.template import load_template

console = Console(stderr=True)

typer_app = typer.Typer()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the jxlate CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level
    - Debug (JXLATE_DEBUG=1): DEBUG level - shows compilation details
    """
    if os.environ.get("JXLATE_DEBUG"):
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=bool(os.environ.get("JXLATE_DEBUG")),
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("jxlate")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def exit_with_error(message: str, exit_code: int = 1) -> NoReturn:
    """Exit the program with an error message."""
    typer.echo(f"Error: {message}", err=True)
    sys.exit(exit_code)


def read_records(source: TextIO, as_array: bool = False) -> Iterator[Any]:
    """Read records from NDJSON, or from a single JSON document.

    With ``as_array`` a top-level list yields its items and any other
    document yields itself.
    """
    if as_array:
        data = json.load(source)
        yield from data if isinstance(data, list) else [data]
        return

    for lineno, line in enumerate(source, start=1):
        if not line.strip():
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError as e:
            exit_with_error(f"line {lineno} is not valid JSON: {e}")


def write_errors(errors: List[dict], path: Optional[Path]) -> None:
    if path is not None:
        with open(path, "w") as f:
            for payload in errors:
                f.write(json.dumps(payload, default=str) + "\n")
        return

    if errors:
        console.print(f"[yellow]Skipped {len(errors)} record(s)[/yellow]")
        for payload in errors:
            console.print(json.dumps(payload, default=str), highlight=False)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"jxlate {__version__}")
        raise typer.Exit()


@typer_app.command()
def cli(
    template: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Template file (.json, .yaml, .yml)."
    ),
    input_file: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, help="Input records; stdin when omitted."
    ),
    on_error: str = typer.Option(
        "throw",
        "--on-error",
        help="'throw' stops at the first bad record, 'continue' skips it.",
    ),
    errors_file: Optional[Path] = typer.Option(
        None, "--errors", help="Write skipped records' errors here as NDJSON."
    ),
    as_array: bool = typer.Option(
        False, "--array", help="Input is a single JSON array instead of NDJSON."
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail on names missing from a record."
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Transform JSON records according to a template."""
    setup_logging(verbose)

    if on_error not in ("throw", "continue"):
        exit_with_error(f"--on-error must be 'throw' or 'continue', got '{on_error}'")

    errors: List[dict] = []
    try:
        engine = Jxlate(load_template(template), {"strict": strict})
        source = open(input_file) if input_file else sys.stdin
        try:
            stream = engine.stream(
                read_records(source, as_array),
                on_error=on_error,
                error_collector=errors,
            )
            for record in stream:
                typer.echo(json.dumps(record, default=str))
        finally:
            if input_file:
                source.close()
    except JxlateError as e:
        exit_with_error(str(e))
    except json.JSONDecodeError as e:
        exit_with_error(f"input is not valid JSON: {e}")
    finally:
        write_errors(errors, errors_file)

    logging.getLogger("jxlate").info(
        "Processed %d record(s), skipped %d", stream.processed, stream.failed
    )


def main() -> None:
    typer_app()


if __name__ == "__main__":
    main()
