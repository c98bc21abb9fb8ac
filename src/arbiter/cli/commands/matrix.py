"""Matrix command group for Arbiter.

Inspect the capability matrix, optionally with an override file applied.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from arbiter.cli.formatters.panels import print_error
from arbiter.cli.formatters.tables import create_matrix_table, create_model_table, print_table
from arbiter.routing.matrix import (
    MODEL_MATRIX,
    apply_model_matrix_overrides,
    get_model_arena_priors,
    get_model_ratings,
    parse_model_matrix_overrides,
)
from arbiter.routing.types import MatrixOverrides

app = typer.Typer(
    name="matrix",
    help="Inspect the model capability matrix.",
    no_args_is_help=True,
)


def _load_overrides(path: Path) -> MatrixOverrides:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print_error(f"Failed to read overrides file {path}: {e}")
        raise typer.Exit(1) from e

    result = parse_model_matrix_overrides(payload)
    if result.is_err:
        print_error(f"Invalid overrides file {path}: {result.error.message}")
        raise typer.Exit(1)
    return result.value


@app.command()
def show(
    model_id: Annotated[
        str | None,
        typer.Argument(help="Model id to look up (e.g. 'anthropic/claude-sonnet-4-5')."),
    ] = None,
    overrides: Annotated[
        Path | None,
        typer.Option("--overrides", "-o", help="Override template JSON file to apply."),
    ] = None,
) -> None:
    """Display the effective capability matrix.

    Shows a single model's ratings and arena priors when MODEL_ID is given.
    """
    matrix_overrides = _load_overrides(overrides) if overrides is not None else None

    if model_id is None:
        matrix = apply_model_matrix_overrides(MODEL_MATRIX, matrix_overrides)
        print_table(create_matrix_table(matrix, "Capability Matrix"))
        return

    ratings = get_model_ratings(model_id, matrix_overrides)
    if ratings is None:
        print_error(f"Model not found in capability matrix: {model_id}")
        raise typer.Exit(1)

    print_table(create_model_table(model_id, ratings, get_model_arena_priors(model_id)))


__all__ = ["app"]
