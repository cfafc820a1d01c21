"""Logging configuration for the CLI and API server."""

import logging

from rich.logging import RichHandler


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib logging through a rich handler.

    Args:
        level: Root log level name (e.g. "INFO", "DEBUG")
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
