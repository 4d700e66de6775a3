"""
SQLite hash cache for Similar Images.

Re-scanning a directory only hashes files that are new or changed. The
cache key combines file path, mtime and size with every hashing setting,
so an entry is never reused under different settings.

Public API:
- HashCache: The cache
- CacheStats: Hit/miss counters for one run
- make_cache_key(): Build a cache key
- get_cache(): Shared cache at the configured location
- reset_cache(): Drop the shared cache (tests, config changes)
"""

from __future__ import annotations

import threading
from typing import Optional

from ..user_config import get_user_config
from .core import HashCache
from .utils import CacheStats, make_cache_key


_shared_cache: Optional[HashCache] = None
_shared_cache_lock = threading.Lock()


def get_cache() -> HashCache:
    """
    Shared HashCache, created on first use at user_config.cache_db_file.

    Thread-safe.
    """
    global _shared_cache
    if _shared_cache is None:
        with _shared_cache_lock:
            if _shared_cache is None:
                _shared_cache = HashCache(get_user_config().cache_db_file)
    return _shared_cache


def reset_cache():
    """Forget the shared cache; the next get_cache() opens a new one."""
    global _shared_cache
    with _shared_cache_lock:
        _shared_cache = None


__all__ = [
    'HashCache',
    'CacheStats',
    'make_cache_key',
    'get_cache',
    'reset_cache',
]
