"""Arbiter CLI module.

This module provides the command-line interface for Arbiter,
built with Typer for CLI framework and Rich for terminal output.
"""

from arbiter.cli.main import app

__all__ = ["app"]
