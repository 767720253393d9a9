"""Engine connection configuration, one entry per named pool."""

from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from IndexPilot.config.common import (
    expect_bool,
    expect_float,
    expect_int,
    expect_str,
    expect_str_list,
    get_optional_value,
    get_required_value,
    get_section,
)
from IndexPilot.core.errors import ConfigurationMissing

SECTION = "elasticsearch"


@dataclass(frozen=True, slots=True)
class PoolConfig:
    """Connection settings for one named pool."""

    name: str
    hosts: tuple[str, ...]
    timeout: float
    verify_certs: bool
    max_connections: int | None
    username_env: str | None
    password_env: str | None

    @property
    def auth(self) -> tuple[str, str] | None:
        """Basic-auth credentials read from the configured env vars."""
        if not self.username_env:
            return None
        username = os.getenv(self.username_env, "").strip()
        if not username:
            return None
        password = os.getenv(self.password_env or "", "")
        return username, password


@dataclass(frozen=True, slots=True)
class ConnectionsConfig:
    """All configured pools keyed by name."""

    pools: Mapping[str, PoolConfig]


def load_connections(raw: Mapping[str, Any]) -> ConnectionsConfig:
    """Load the ``elasticsearch`` section.

    Raises:
        ConfigurationMissing: If the section, or a pool's hosts, is absent.
        TypeError: If config types are invalid.
    """
    section = get_section(raw, SECTION, required=True)
    if not section:
        raise ConfigurationMissing(SECTION)
    pools: dict[str, PoolConfig] = {}
    for name in section:
        pools[str(name)] = _load_pool(section, str(name))
    return ConnectionsConfig(pools=MappingProxyType(pools))


def check_connections(config: ConnectionsConfig) -> None:
    """Validate connection constraints.

    Raises:
        ValueError: If values violate connection constraints.
    """
    for name, pool in config.pools.items():
        key = f"{SECTION}.{name}"
        if not pool.hosts or any(not h.strip() for h in pool.hosts):
            raise ValueError(f"{key}.hosts must include at least one non-empty host")
        if pool.timeout <= 0:
            raise ValueError(f"{key}.timeout must be positive")
        if pool.max_connections is not None and pool.max_connections <= 0:
            raise ValueError(f"{key}.pool.max_connections must be positive")
        if pool.password_env and not pool.username_env:
            raise ValueError(f"{key}.password_env requires {key}.username_env")


def _load_pool(section: Mapping[str, Any], name: str) -> PoolConfig:
    key = f"{SECTION}.{name}"
    pool_section = get_section(section, name, required=True, config_key=key)
    hosts_value = get_required_value(pool_section, "hosts", f"{key}.hosts")
    if isinstance(hosts_value, str):
        hosts_value = [hosts_value]
    transport = get_section(pool_section, "pool", required=False, config_key=f"{key}.pool")

    max_connections = get_optional_value(transport, "max_connections", None)
    username_env = get_optional_value(pool_section, "username_env", None)
    password_env = get_optional_value(pool_section, "password_env", None)
    return PoolConfig(
        name=name,
        hosts=tuple(expect_str_list(hosts_value, f"{key}.hosts")),
        timeout=expect_float(get_optional_value(pool_section, "timeout", 30), f"{key}.timeout"),
        verify_certs=expect_bool(get_optional_value(pool_section, "verify_certs", True), f"{key}.verify_certs"),
        max_connections=(
            expect_int(max_connections, f"{key}.pool.max_connections") if max_connections is not None else None
        ),
        username_env=expect_str(username_env, f"{key}.username_env") if username_env is not None else None,
        password_env=expect_str(password_env, f"{key}.password_env") if password_env is not None else None,
    )
