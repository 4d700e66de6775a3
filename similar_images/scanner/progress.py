"""
Progress reporting helpers for the scanner package.

Batches progress callbacks to reduce overhead and wraps optional tqdm bars.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

from ..config import PROGRESS_BATCH_SIZE, PROGRESS_INTERVAL
from .dependencies import HAS_TQDM, _tqdm_class

ProgressCallback = Callable[[int, int], None]


class ProgressThrottle:
    """
    Forwards (current, total) to a callback at most every
    PROGRESS_BATCH_SIZE units or PROGRESS_INTERVAL seconds, and always
    for the final unit.
    """

    def __init__(self, callback: Optional[ProgressCallback], total: int):
        self.callback = callback
        self.total = total
        self._last_count = 0
        self._last_time = time.monotonic()

    def update(self, current: int) -> None:
        if self.callback is None:
            return

        now = time.monotonic()
        if (
            current - self._last_count >= PROGRESS_BATCH_SIZE
            or now - self._last_time >= PROGRESS_INTERVAL
            or current >= self.total
        ):
            self.callback(current, self.total)
            self._last_count = current
            self._last_time = now


def make_progress_bar(enabled: bool, total: int, desc: str, unit: str) -> Optional[Any]:
    """Create a tqdm bar if tqdm is installed and enabled, else None."""
    if not (HAS_TQDM and enabled and total > 0 and _tqdm_class is not None):
        return None
    return _tqdm_class(total=total, desc=desc, unit=unit, ncols=80)


__all__ = ['ProgressCallback', 'ProgressThrottle', 'make_progress_bar']
