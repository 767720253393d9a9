"""Command runner for coordinating CLI execution.

Manages logging configuration, client lifecycle and error handling for
command execution.
"""

from __future__ import annotations

import click

from IndexPilot.cli.commands import MigrateCommand
from IndexPilot.client import ClientFactory
from IndexPilot.config import AppConfig
from IndexPilot.index import load_descriptor
from IndexPilot.migration import FAILED, MigrationIntent, MigrationOutcome
from IndexPilot.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management."""

    def __init__(self, config: AppConfig) -> None:
        """Initialize command runner.

        Args:
            config: Application configuration.
        """
        self.config = config

    def run_migrate(
        self,
        action: str,
        descriptor_path: str,
        intent: MigrationIntent,
        *,
        run_backfill: bool = True,
    ) -> MigrationOutcome:
        """Execute one migration with full resource management.

        Args:
            action: The CLI command name (e.g., 'migrate').
            descriptor_path: ``module:attribute`` reference to the descriptor.
            intent: Migration intent to run.
            run_backfill: Whether to run the descriptor's backfill.

        Returns:
            The migration outcome (done or skipped).

        Raises:
            click.Abort: When the descriptor cannot be loaded or the
                migration fails.
        """
        configure_logging(
            level=self.config.runtime.level,
            action=action,
            log_to_file=self.config.runtime.to_file,
            log_dir=self.config.runtime.dir,
        )
        try:
            descriptor = load_descriptor(descriptor_path)
            with ClientFactory(self.config.connections) as clients:
                command = MigrateCommand(
                    descriptor=descriptor,
                    client=clients.get(descriptor.pool),
                    intent=intent,
                    run_backfill=run_backfill,
                )
                outcome = command.execute()
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("Migrate failed: %s", e)
            raise click.Abort from e

        if outcome.status == FAILED:
            raise click.Abort
        log.info("%s", outcome.message)
        return outcome
