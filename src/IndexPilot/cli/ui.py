"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to their respective runners.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from IndexPilot.cli.runner import CommandRunner
from IndexPilot.config import DEFAULT_CONFIG_PATH, load_config
from IndexPilot.migration import MigrationIntent


@click.group(help="IndexPilot: zero-downtime Elasticsearch index migrations.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config,
    so pool credentials can be read from it.

    Args:
        ctx: Click context.
        config_path: Path to YAML config file.
    """
    load_dotenv()

    cfg = load_config(config_path)
    ctx.obj = cfg


@cli.command("migrate")
@click.argument("descriptor")
@click.option("--update", is_flag=True, default=False, help="Update settings and mappings in place.")
@click.option("--recreate", is_flag=True, default=False, help="Build a new generation, backfill it and swap the alias.")
@click.option("--no-backfill", is_flag=True, default=False, help="Skip the descriptor's backfill.")
@click.pass_context
def migrate_cmd(ctx: click.Context, descriptor: str, update: bool, recreate: bool, no_backfill: bool) -> None:
    """Create, update or recreate the index described by DESCRIPTOR.

    DESCRIPTOR is a ``module:attribute`` reference to an IndexDescriptor.
    Without --update or --recreate the index is created.

    Raises:
        click.UsageError: When both --update and --recreate are given.
        click.Abort: When the migration fails.
    """
    if update and recreate:
        raise click.UsageError("--update and --recreate are mutually exclusive")
    intent = MigrationIntent.CREATE
    if update:
        intent = MigrationIntent.UPDATE
    elif recreate:
        intent = MigrationIntent.RECREATE

    cfg = ctx.obj
    runner = CommandRunner(cfg)
    runner.run_migrate(
        action=ctx.command.name,
        descriptor_path=descriptor,
        intent=intent,
        run_backfill=not no_backfill,
    )
