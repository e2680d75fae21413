"""Logging for cryptvault.

Command output (listings, `cat` text, shell replies) goes to stdout through
`console`. Log records never do: they go to stderr so that piping
`cryptvault cat` into another program yields only the decrypted bytes.
An optional log file records DEBUG traces of unlock attempts and storage
operations regardless of the console level.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


PACKAGE_LOGGER = "cryptvault"

# Command output
console = Console()

# Log records and tracebacks
err_console = Console(stderr=True)

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _stderr_handler(rich_output: bool) -> logging.Handler:
    if rich_output:
        handler = RichHandler(
            console=err_console,
            show_time=False,
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        return handler

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(f"{PACKAGE_LOGGER}: %(levelname)s: %(message)s"))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: Optional[Path] = None,
    rich_output: bool = True,
) -> logging.Logger:
    """
    Route the package logger to stderr and, optionally, a trace file.

    Calling this again replaces the handlers from the previous call, so the
    CLI can reconfigure after loading settings.

    Args:
        level: Console level name; unknown names fall back to WARNING
        log_file: File that receives every record down to DEBUG
        rich_output: Use a RichHandler instead of a plain stream handler

    Returns:
        The "cryptvault" logger
    """
    console_level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()
    # The file must see DEBUG even when the console only shows warnings
    logger.setLevel(logging.DEBUG if log_file else console_level)

    stderr_handler = _stderr_handler(rich_output)
    stderr_handler.setLevel(console_level)
    logger.addHandler(stderr_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        trace_handler = logging.FileHandler(log_file, encoding="utf-8")
        trace_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        trace_handler.setLevel(logging.DEBUG)
        logger.addHandler(trace_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, e.g. get_logger(__name__) in cryptvault.vault.session."""
    return logging.getLogger(name)
