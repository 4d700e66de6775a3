"""
Utilities package for Similar Images.

Provides:
- formatters: Human-readable formatting for numbers, time, and file sizes
- exporters: Export search results to files
"""

from __future__ import annotations

from . import formatters
from . import exporters

from .formatters import format_number, format_duration, format_rate, format_size
from .exporters import export_results, EXPORT_FORMATS

__all__ = [
    # Submodules
    'formatters',
    'exporters',
    # Formatters
    'format_number',
    'format_duration',
    'format_rate',
    'format_size',
    # Exporters
    'export_results',
    'EXPORT_FORMATS',
]
