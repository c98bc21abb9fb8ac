"""Configuration loading for Arbiter.

Functions:
    parse_router_config: Validate an untrusted config payload, dropping invalid fields
    load_router_config: Load RouterConfig from a YAML/JSON file
    get_config_path: Resolve the config path from argument, env var or default
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
import yaml

from arbiter.config.models import RouterConfig, get_config_dir
from arbiter.core.errors import ConfigError, ValidationError
from arbiter.core.types import JsonPayload, Result
from arbiter.observability.logging import get_logger
from arbiter.routing.matrix import parse_model_matrix_overrides
from arbiter.routing.types import CostPreference, RoutingMode

log = get_logger(__name__)

CONFIG_ENV_VAR = "ARBITER_CONFIG"
DEFAULT_CONFIG_FILENAME = "config.yaml"


def _non_empty_strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def parse_router_config(payload: JsonPayload) -> Result[RouterConfig, ValidationError]:
    """Parse a router config payload, dropping invalid fields individually.

    Recognized keys: exclude, matrixOverrides, preferredProviders,
    costPreference, routingMode. Unknown keys are ignored.

    Args:
        payload: Decoded YAML/JSON value.

    Returns:
        Ok with the config, or Err when the root is not a mapping.
    """
    if not isinstance(payload, Mapping):
        return Result.err(ValidationError("Router config must be an object", value=payload))

    fields: dict[str, Any] = {
        "exclude": _non_empty_strings(payload.get("exclude")),
        "preferred_providers": _non_empty_strings(payload.get("preferredProviders")),
    }

    if "matrixOverrides" in payload:
        overrides = parse_model_matrix_overrides(payload["matrixOverrides"])
        if overrides.is_ok:
            fields["matrix_overrides"] = overrides.value
        else:
            log.warning("config.matrix_overrides.dropped", reason=overrides.error.message)

    cost_preference = payload.get("costPreference")
    if isinstance(cost_preference, str) and cost_preference in {p.value for p in CostPreference}:
        fields["cost_preference"] = CostPreference(cost_preference)
    elif cost_preference is not None:
        log.warning("config.cost_preference.dropped", value=cost_preference)

    routing_mode = payload.get("routingMode")
    if isinstance(routing_mode, str) and routing_mode in {m.value for m in RoutingMode}:
        fields["routing_mode"] = RoutingMode(routing_mode)
    elif routing_mode is not None:
        log.warning("config.routing_mode.dropped", value=routing_mode)

    return Result.ok(RouterConfig(**fields))


def get_config_path(config_path: Path | str | None = None) -> Path:
    """Resolve which config file to read.

    Priority:
    1. Explicit config_path argument
    2. ARBITER_CONFIG environment variable (.env files are honored)
    3. ~/.arbiter/config.yaml
    """
    if config_path is not None:
        return Path(config_path).expanduser()

    load_dotenv()
    load_dotenv(get_config_dir() / ".env")
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / DEFAULT_CONFIG_FILENAME


def load_router_config(config_path: Path | str | None = None) -> RouterConfig:
    """Load router configuration from a YAML or JSON file.

    Invalid individual fields are dropped (see parse_router_config); only an
    unreadable file or a non-mapping root is an error.

    Args:
        config_path: Path to the config file. See get_config_path for defaults.

    Returns:
        Validated RouterConfig.

    Raises:
        ConfigError: If the file doesn't exist, can't be parsed, or its root
            is not a mapping.
    """
    path = get_config_path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Configuration file not found: {path}",
            config_file=str(path),
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Failed to parse configuration file: {e}",
            config_file=str(path),
            details={"yaml_error": str(e)},
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            config_file=str(path),
        ) from e

    if raw is None:
        raw = {}

    result = parse_router_config(raw)
    if result.is_err:
        raise ConfigError(
            f"Configuration root must be a mapping: {path}",
            config_file=str(path),
            details={"type": type(raw).__name__},
        )

    log.debug("config.router.loaded", config_file=str(path))
    return result.value
