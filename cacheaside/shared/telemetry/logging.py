"""Logging configuration for applications embedding cacheaside.

The library itself only creates module loggers; call setup_logging() from
the application entry point if nothing else configures logging.
"""

import logging
import sys


def setup_logging(debug: bool | None = None) -> None:
    """Configure root logging.

    Level is DEBUG when debug is True, otherwise INFO. When debug is None it
    is read from settings (CACHEASIDE_DEBUG). Output goes to stdout.
    """
    if debug is None:
        from cacheaside.core.config import get_settings

        debug = get_settings().debug
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

