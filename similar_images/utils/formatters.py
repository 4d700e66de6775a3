"""
Formatting utilities for Similar Images.

Provides human-readable formatting for counts, durations, and file sizes.
"""

from __future__ import annotations

# Re-export format_size from models for convenience
from ..models import format_size


def format_number(n: int) -> str:
    """
    Format large numbers with commas for readability.

    Examples:
        >>> format_number(1234567)
        '1,234,567'
    """
    return f"{n:,}"


def format_duration(seconds: float) -> str:
    """
    Format an elapsed time.

    Examples:
        >>> format_duration(0.25)
        '0.25s'
        >>> format_duration(150)
        '2m 30s'
        >>> format_duration(3665)
        '1h 1m'
    """
    if seconds < 10:
        return f"{seconds:.2f}s"
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    return f"{int(seconds // 3600)}h {int(seconds % 3600 // 60)}m"


def format_rate(count: int, seconds: float) -> str:
    """Format a throughput such as '120.5 img/s'."""
    if seconds <= 0:
        return "n/a"
    return f"{count / seconds:.1f} img/s"


__all__ = ['format_number', 'format_duration', 'format_rate', 'format_size']
