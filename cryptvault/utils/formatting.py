"""Human-readable rendering of sizes and timestamps."""

from datetime import datetime

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_size(size_bytes: int) -> str:
    """Format a byte count as B, KB, MB or GB."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    if size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"


def format_timestamp(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def or_unknown(value) -> str:
    """Render a missing metadata value as 'unknown'."""
    return "unknown" if value is None else str(value)
