"""Command implementations for the IndexPilot CLI.

Holds the migration logic that runs once the client and descriptor are
resolved, separated from click parameter handling.
"""

from __future__ import annotations

from dataclasses import dataclass

from IndexPilot.client.base import AdminClient
from IndexPilot.index.descriptor import IndexDescriptor
from IndexPilot.migration import MigrationEngine, MigrationIntent, MigrationOutcome
from IndexPilot.utils.log import log


@dataclass(slots=True)
class MigrateCommand:
    """Runs one migration intent for one descriptor."""

    descriptor: IndexDescriptor
    client: AdminClient
    intent: MigrationIntent = MigrationIntent.CREATE
    run_backfill: bool = True

    def execute(self) -> MigrationOutcome:
        log.info(
            "Migrating index=%s intent=%s pool=%s backfill=%s",
            self.descriptor.name,
            self.intent.value,
            self.descriptor.pool,
            self.run_backfill,
        )
        outcome = MigrationEngine(self.client).run(
            self.descriptor,
            self.intent,
            run_backfill=self.run_backfill,
        )
        if outcome.completed:
            log.debug("Completed steps: %s", ", ".join(outcome.completed))
        return outcome
