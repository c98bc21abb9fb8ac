"""Override template command for Arbiter.

Writes an editable ``{"matrixOverrides": {...}}`` JSON file that host
applications load and pass to the selector as ``matrix_overrides``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Annotated

import typer

from arbiter.cli.formatters.panels import print_error, print_success
from arbiter.observability.logging import get_logger
from arbiter.routing.matrix import create_model_matrix_override_template

log = get_logger(__name__)

DEFAULT_OUTPUT_PATH = "arbiter.model-overrides.json"

# Unknown options are collected instead of rejected so they exit with 1.
CONTEXT_SETTINGS = {
    "ignore_unknown_options": True,
    "allow_extra_args": True,
    "help_option_names": ["--help", "-h"],
}


def expand_home(raw_path: str) -> str:
    """Expand ``~`` and ``~/...`` from HOME; other paths are returned unchanged."""
    home = os.environ.get("HOME")
    if not home:
        return raw_path
    if raw_path == "~":
        return home
    if raw_path.startswith("~/"):
        return str(Path(home) / raw_path[2:])
    return raw_path


def build_template_json(include_current_matrix: bool) -> str:
    """Render the override template as 2-space indented JSON with a trailing newline."""
    template = create_model_matrix_override_template(include_current_matrix)
    return json.dumps(template, indent=2) + "\n"


def init_overrides(
    ctx: typer.Context,
    paths: Annotated[
        list[str] | None,
        typer.Argument(
            help=f"Output path for the template (default: {DEFAULT_OUTPUT_PATH}).",
            show_default=False,
        ),
    ] = None,
    empty: Annotated[
        bool,
        typer.Option("--empty", help="Generate an empty template (no copied base matrix)."),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite the output file if it already exists."),
    ] = False,
    stdout: Annotated[
        bool,
        typer.Option("--stdout", help="Print JSON to stdout instead of writing a file."),
    ] = False,
) -> None:
    """Generate a matrix override template JSON file.

    The template copies the current capability matrix unless --empty is given.
    """
    args = [*(paths or []), *ctx.args]

    unknown = [arg for arg in args if arg.startswith("-")]
    if unknown:
        print_error(f"Unknown option: {unknown[0]}")
        raise typer.Exit(1)

    if len(args) > 1:
        print_error("Too many positional arguments. Expected at most one output path.")
        raise typer.Exit(1)

    content = build_template_json(include_current_matrix=not empty)
    if stdout:
        typer.echo(content, nl=False)
        return

    output_path = Path(expand_home(args[0] if args else DEFAULT_OUTPUT_PATH)).resolve()
    if output_path.exists() and not force:
        print_error(
            f"Refusing to overwrite existing file: {output_path}\nPass --force to overwrite."
        )
        raise typer.Exit(1)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    except OSError as e:
        log.warning("cli.overrides.write_failed", path=str(output_path), error=str(e))
        print_error(f"Failed to write {output_path}: {e}")
        raise typer.Exit(1) from e

    print_success(
        f"Wrote override template: {output_path}\n"
        "Pass its matrixOverrides object to Arbiter as matrix_overrides."
    )


__all__ = ["CONTEXT_SETTINGS", "DEFAULT_OUTPUT_PATH", "init_overrides"]
