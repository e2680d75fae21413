"""Utility modules for cryptvault.

Provides common utilities:
- Logging configuration
- Size and timestamp formatting
"""

from .formatting import (
    format_size,
    format_timestamp,
    or_unknown,
)
from .logging import (
    console,
    err_console,
    get_logger,
    setup_logging,
)


__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "console",
    "err_console",
    # Formatting
    "format_size",
    "format_timestamp",
    "or_unknown",
]
