"""CLI package for IndexPilot index administration.

Splits the command line into parameter handling (``ui``), resource
management (``runner``) and the command logic itself (``commands``).
"""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from IndexPilot.cli.runner import CommandRunner
from IndexPilot.cli.ui import cli


def main() -> None:
    """Run the IndexPilot CLI.

    Entry point referenced by the console script in pyproject.toml.
    """
    cli()
