"""Exception types raised across IndexPilot."""

from __future__ import annotations


class IndexPilotError(Exception):
    """Base class for all IndexPilot errors."""


class ConfigurationMissing(IndexPilotError, ValueError):
    """A required index or connection configuration section is absent."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Missing required config: {key}")
        self.key = key


class InvalidQueryArgument(IndexPilotError, ValueError):
    """A builder call received an unknown clause sequence or operator."""


class ClientResolutionError(IndexPilotError, LookupError):
    """A requested connection pool or index handle does not exist."""


class AdministrationOperationError(IndexPilotError):
    """An administration/search call against the engine failed.

    Attributes:
        status: HTTP status code when the engine answered, else None.
        reason: Error type reported by the engine (e.g. ``index_not_found_exception``).
    """

    def __init__(self, message: str, *, status: int | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason
