"""Arbiter - capability-aware LLM model ranking.

Ranks model identifiers for a task so a calling agent can pick the best
available model under a cost, latency or quality policy.

Example:
    # Using CLI
    arbiter init-overrides ~/.arbiter/model-overrides.json
    arbiter matrix show claude-sonnet-4-5

    # Using Python
    from arbiter.routing import ClassificationResult, TaskType, select_models
    from arbiter.routing import resolve_model_fuzzy
"""

__version__ = "0.1.0"

__all__ = ["__version__", "main"]


def main() -> None:
    """Main entry point for the Arbiter CLI.

    This function invokes the Typer app from arbiter.cli.main.
    """
    from arbiter.cli.main import app

    app()
