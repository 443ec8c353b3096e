"""Logging setup for the sf command line."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False, level: str | None = None) -> None:
    """Send all log output through rich, on stderr.

    stderr so `sf run ... --output csv > out.csv` still gives a clean file.
    -v wins over the configured level.
    """
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName((level or "INFO").upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=True,
        show_level=True,
        show_path=False,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )
    logging.basicConfig(
        level=log_level,
        format="<%(name)s> %(message)s",
        handlers=[handler],
        force=True,
    )
