"""Shared rich consoles for the Arbiter CLI.

Command output goes to ``console`` (stdout); errors go to ``err_console``
(stderr) so ``arbiter init-overrides --stdout`` stays machine-readable.
"""

from rich.console import Console
from rich.theme import Theme

ARBITER_THEME = Theme(
    {
        "success": "green",
        "warning": "yellow",
        "error": "red",
        "info": "blue",
    }
)

console = Console(theme=ARBITER_THEME)
err_console = Console(theme=ARBITER_THEME, stderr=True)

__all__ = ["console", "err_console", "ARBITER_THEME"]
