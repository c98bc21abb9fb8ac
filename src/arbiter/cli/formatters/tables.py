"""Rich tables for capability ratings.

One table shape for the whole matrix (prefix rows, task-type columns) and one
for a single model (task-type rows with the arena prior beside the tier).
"""

from collections.abc import Mapping

from rich.table import Table

from arbiter.cli.formatters import console
from arbiter.routing.types import TASK_TYPES, ModelArenaScores, ModelRatings, TaskType

MISSING_CELL = "-"


def _ratings_table(title: str | None, *, show_header: bool = True) -> Table:
    return Table(
        title=title,
        show_header=show_header,
        border_style="blue",
        header_style="bold cyan",
        row_styles=["", "dim"],
    )


def format_rating_cell(
    task: TaskType,
    ratings: Mapping[TaskType, int],
    priors: Mapping[TaskType, float] | None,
) -> str:
    """Render one tier, e.g. ``4 (arena 1408)``; unsupported tasks show ``-``."""
    cell = str(ratings[task]) if task in ratings else MISSING_CELL
    if priors and task in priors:
        cell = f"{cell} (arena {priors[task]:g})"
    return cell


def create_matrix_table(
    matrix: Mapping[str, Mapping[TaskType, int]],
    title: str | None = None,
) -> Table:
    """Create a table with one row per model prefix and one column per task type.

    Example:
        table = create_matrix_table(MODEL_MATRIX, "Capability Matrix")
        print_table(table)
    """
    table = _ratings_table(title)
    table.add_column("Model prefix", style="cyan", no_wrap=True)
    for task in TASK_TYPES:
        table.add_column(task.value.capitalize(), justify="center")

    for prefix, ratings in matrix.items():
        table.add_row(prefix, *(format_rating_cell(task, ratings, None) for task in TASK_TYPES))

    return table


def create_model_table(
    model_id: str,
    ratings: ModelRatings,
    priors: ModelArenaScores | None = None,
) -> Table:
    """Create a task-type/tier table for a single model.

    Args:
        model_id: Model id as typed by the user; used as the title.
        ratings: Effective ratings for the model.
        priors: Arena priors, shown next to each tier when known.

    Returns:
        Rich Table with one row per task type.
    """
    table = _ratings_table(model_id, show_header=False)
    table.add_column("Task", style="cyan", no_wrap=True)
    table.add_column("Tier")

    for task in TASK_TYPES:
        table.add_row(task.value.capitalize(), format_rating_cell(task, ratings, priors))

    return table


def print_table(table: Table) -> None:
    """Print a table to stdout."""
    console.print(table)


__all__ = [
    "MISSING_CELL",
    "create_matrix_table",
    "create_model_table",
    "format_rating_cell",
    "print_table",
]
