"""Message panels for command outcomes.

Errors are printed to stderr so ``--stdout`` output stays pipeable.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from arbiter.cli.formatters import console, err_console


def message_panel(message: str, title: str, style: str) -> Panel:
    """Create a compact panel whose border and text share a theme style.

    Args:
        message: Message content; may span several lines.
        title: Panel title.
        style: Theme style name ("error", "success", "warning", "info").
    """
    return Panel(
        f"[{style}]{escape(message)}[/]",
        title=f"[bold][{style}]{title}[/][/]",
        border_style=style,
        expand=False,
    )


def _print(target: Console, message: str, title: str, style: str) -> None:
    target.print(message_panel(message, title, style))


def print_error(message: str, title: str = "Error") -> None:
    """Print an error panel on stderr."""
    _print(err_console, message, title, "error")


def print_success(message: str, title: str = "Success") -> None:
    """Print a success panel on stdout."""
    _print(console, message, title, "success")


__all__ = ["message_panel", "print_error", "print_success"]
