"""Configuration module for Arbiter.

Main exports:
    RouterConfig: Selection defaults for a host agent
    parse_router_config: Drop-invalid parser returning Result
    load_router_config: Load config from YAML/JSON file

Usage:
    from arbiter.config import load_router_config

    config = load_router_config()
    ranked = select_models(classification, config.cost_preference, models,
                           config.to_selection_options())
"""

from arbiter.config.loader import get_config_path, load_router_config, parse_router_config
from arbiter.config.models import RouterConfig, get_config_dir

__all__ = [
    # Models
    "RouterConfig",
    "get_config_dir",
    # Loader
    "get_config_path",
    "load_router_config",
    "parse_router_config",
]
