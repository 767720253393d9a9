"""Package logger for migration runs.

Console lines read ``mm-dd HH:MM:SS [LVL] message`` with a four-letter
level. A run can also keep a DEBUG file under ``{log_dir}/{action}/`` so
every engine call of a failed migration can be replayed afterwards.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Final

_LINE_FORMAT: Final = "%(asctime)s [%(levelabbr)s] %(message)s"
_DATE_FORMAT: Final = "%m-%d %H:%M:%S"

_LEVEL_ABBREV: Final[dict[int, str]] = {
    logging.DEBUG: "DEBG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERRO",
    logging.CRITICAL: "ERRO",
}


class _MigrationFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 - record is stdlib name
        record.levelabbr = _LEVEL_ABBREV.get(record.levelno, record.levelname[:4])
        return super().format(record)


log = logging.getLogger("IndexPilot")


def _run_log_path(log_dir: str, action: str) -> Path:
    """Return a fresh ``{action}_{mmddHHMMSS}.log`` path, creating its directory."""
    action_dir = Path(log_dir or "log") / action
    action_dir.mkdir(parents=True, exist_ok=True)
    return action_dir / f"{action}_{datetime.now().strftime('%m%d%H%M%S')}.log"


def configure_logging(
    *,
    level: str = "INFO",
    action: str | None = None,
    log_to_file: bool = False,
    log_dir: str = "log",
) -> None:
    """Install console (and optionally file) handlers on the package logger.

    Calling it again replaces the previous handlers. The console follows
    ``level``; the run file, written only when ``log_to_file`` is set and an
    ``action`` is known, always records DEBUG.
    """
    console_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    formatter = _MigrationFormatter(fmt=_LINE_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]

    if log_to_file and action:
        run_file = logging.FileHandler(_run_log_path(log_dir, action), encoding="utf-8")
        run_file.setLevel(logging.DEBUG)
        run_file.setFormatter(formatter)
        handlers.append(run_file)

    log.handlers.clear()
    for handler in handlers:
        log.addHandler(handler)
    log.setLevel(logging.DEBUG if len(handlers) > 1 else console_level)
    log.propagate = False
