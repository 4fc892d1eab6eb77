"""Human-readable rendering of byte counts and report lines."""

from constants import Constants, SizeUnits


def format_size(size: int) -> str:
    """Format a byte count with the largest unit it reaches.

    Examples:
        >>> format_size(1024)
        '1.00KB (1024 bytes)'
        >>> format_size(100)
        '100 bytes'
    """
    for unit in SizeUnits:
        if size >= unit.value:
            return f"{size / unit.value:.2f}{unit.name} ({size} bytes)"
    return f"{size} bytes"


def format_row(label: str, size: int) -> str:
    """Render one dependency line, label padded to the configured width."""
    return f"{label:<{Constants.LABEL_WIDTH}} : {format_size(size)}"


def format_total(total: int) -> str:
    return f"> Total size: {format_size(total)}"
