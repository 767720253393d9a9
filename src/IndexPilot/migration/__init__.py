"""Zero-downtime index migrations."""

from __future__ import annotations

from IndexPilot.migration.engine import (
    DONE,
    FAILED,
    SKIPPED,
    MigrationEngine,
    MigrationIntent,
    MigrationOutcome,
    migrate,
)

__all__ = [
    "DONE",
    "FAILED",
    "SKIPPED",
    "MigrationEngine",
    "MigrationIntent",
    "MigrationOutcome",
    "migrate",
]
