"""Scenario files.

A scenario can be stored as YAML or JSON, holding any subset of the
:class:`~erflow.core.scenario.Scenario` parameters; omitted keys keep
their defaults.

Example usage:
    from erflow.core.config import load_scenario

    scenario = load_scenario(Path("config/scenario.yaml"))
    results = run_session(scenario)
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from erflow.core.errors import ConfigError
from erflow.core.scenario import Scenario

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ERFLOW_CONFIG"


def scenario_from_dict(data: dict[str, Any]) -> Scenario:
    """Build a Scenario from plain parameters.

    Raises:
        ConfigError: If a key is unknown or a value is invalid.
    """
    allowed = Scenario().to_dict().keys()
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ConfigError(f"Unknown scenario parameter(s): {', '.join(unknown)}")
    return Scenario(**data)


def load_scenario(config_path: Path) -> Scenario:
    """Load a scenario from a YAML or JSON file.

    Args:
        config_path: Path to configuration file (.yaml, .yml, or .json)

    Returns:
        Scenario instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If the format is not supported or the content is invalid
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        if config_path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        elif config_path.suffix == ".json":
            data = json.load(f)
        else:
            raise ConfigError(
                f"Unsupported config format: {config_path.suffix}. "
                "Use .yaml, .yml, or .json"
            )

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping of parameters")

    logger.debug(f"Loaded scenario parameters from {config_path}: {sorted(data)}")
    return scenario_from_dict(data)


def save_scenario(scenario: Scenario, config_path: Path) -> None:
    """Save scenario parameters to a YAML or JSON file.

    Args:
        scenario: Scenario to save
        config_path: Path to save to (.yaml, .yml, or .json)

    Raises:
        ConfigError: If file format is not supported
    """
    data = scenario.to_dict()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        if config_path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        elif config_path.suffix == ".json":
            json.dump(data, f, indent=2)
        else:
            raise ConfigError(
                f"Unsupported config format: {config_path.suffix}. "
                "Use .yaml, .yml, or .json"
            )


def get_default_config_path() -> Path | None:
    """Get the scenario file to use when none is given.

    Checks in order:
    1. ERFLOW_CONFIG environment variable
    2. ./config/scenario.yaml

    Returns:
        Path to the configuration file, or None to use built-in defaults
    """
    if env_path := os.environ.get(CONFIG_ENV_VAR):
        return Path(env_path)

    cwd_config = Path.cwd() / "config" / "scenario.yaml"
    if cwd_config.exists():
        return cwd_config

    return None
