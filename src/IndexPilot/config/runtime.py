"""``log`` section: verbosity and the optional per-migration log file."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from IndexPilot.config.common import (
    expect_bool,
    expect_str,
    get_optional_value,
    get_required_value,
    get_section,
)

_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """How the CLI reports migration progress.

    Attributes:
        level: Console level name, upper-cased.
        to_file: Whether each run also writes ``{dir}/{action}/{action}_{ts}.log``.
        dir: Root directory of those run logs.
    """

    level: str
    to_file: bool
    dir: str


def load_runtime(raw: Mapping[str, Any]) -> RuntimeConfig:
    """Read the ``log`` section; ``log.level`` is the only required key.

    Raises:
        TypeError: If a value has the wrong type.
        ConfigurationMissing: If ``log`` or ``log.level`` is absent.
    """
    section = get_section(raw, "log", required=True)
    return RuntimeConfig(
        level=expect_str(get_required_value(section, "level", "log.level"), "log.level").upper(),
        to_file=expect_bool(get_optional_value(section, "to_file", False), "log.to_file"),
        dir=expect_str(get_optional_value(section, "dir", "log"), "log.dir"),
    )


def check_runtime(config: RuntimeConfig) -> None:
    """Reject unknown level names, and a blank ``log.dir`` when file logging is on."""
    if config.level not in _ALLOWED_LOG_LEVELS:
        raise ValueError(f"log.level must be one of {sorted(_ALLOWED_LOG_LEVELS)}")
    if config.to_file and not config.dir.strip():
        raise ValueError("log.dir must not be empty")
