"""Pathing configuration dataclasses and YAML loading."""

from .pathing_config import (
    DEFAULT_CONFIG,
    DEFAULT_ENV_CONFIG,
    EnvironmentConfig,
    PathExecutionConfig,
    build_scenario,
    load_pathing_config,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_ENV_CONFIG",
    "EnvironmentConfig",
    "PathExecutionConfig",
    "build_scenario",
    "load_pathing_config",
]
