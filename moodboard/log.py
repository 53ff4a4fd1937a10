"""
Logging helpers for Moodboard.

The server and CLI call ``configure_logging`` once at startup; library
modules only ever ask for ``logging.getLogger(__name__)``.
"""

import logging
import sys

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO, fmt: str | None = None) -> None:
    """
    Configure the root logger unless something already did.
    """
    if logging.getLogger().handlers:
        # Respect any user provided configuration.
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=fmt or DEFAULT_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
