from __future__ import annotations

"""Public configuration API for IndexPilot."""

from IndexPilot.config.app import (
    DEFAULT_CONFIG_PATH,
    AppConfig,
    load_config,
    load_config_with_defaults,
    merge_config_dicts,
    parse_config_dict,
)
from IndexPilot.config.connections import ConnectionsConfig, PoolConfig
from IndexPilot.config.runtime import RuntimeConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "RuntimeConfig",
    "ConnectionsConfig",
    "PoolConfig",
    "AppConfig",
    "load_config",
    "load_config_with_defaults",
    "merge_config_dicts",
    "parse_config_dict",
]
