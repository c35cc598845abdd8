"""Logging setup on top of the shared rich console."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from carescribe import config

console = Console()


def configure_logging(level: str | None = None) -> None:
    """Route all carescribe loggers through a RichHandler."""
    logging.basicConfig(
        level=level or config.LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
