"""
HashCache: the public face of the cache package.

Combines CRUD operations and housekeeping over one database file.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..config import CACHE_DB_FILE
from ..models import CachedHash, FileEntry
from .connection import ConnectionManager
from .maintenance import MaintenanceOperations
from .operations import CacheOperations
from .schema import SCHEMA_VERSION, initialize_schema


class HashCache:
    """
    SQLite-backed cache of perceptual hash variants.

    Safe to share between hashing threads. Keys come from
    make_cache_key(), so an entry is only reused while the file's path,
    size and mtime and the hashing settings are all unchanged.

    Usage:
        cache = HashCache()

        key = make_cache_key(entry, parameters)
        cached = cache.lookup(key)
        if cached is None:
            record = analyze_image(entry, parameters)
            cache.store(key, entry, CachedHash(record.width, record.height,
                                               record.hash_variants))
    """

    SCHEMA_VERSION = SCHEMA_VERSION

    def __init__(self, db_path: Optional[str] = None):
        """
        Open (and if needed create) a cache database.

        Args:
            db_path: Database file; defaults to CACHE_DB_FILE
        """
        self.db_path = db_path or CACHE_DB_FILE

        connections = ConnectionManager(self.db_path)
        with connections.connection(exclusive=True) as conn:
            initialize_schema(conn)

        self._ops = CacheOperations(connections)
        self._housekeeping = MaintenanceOperations(connections)

    def lookup(self, key: str) -> Optional[CachedHash]:
        """Cached hashes for a key, or None on a miss."""
        return self._ops.lookup(key)

    def store(self, key: str, entry: FileEntry, cached: CachedHash) -> bool:
        """Cache the hashes of one file."""
        return self._ops.store(key, entry, cached)

    def lookup_batch(self, keys: list[str]) -> dict[str, Optional[CachedHash]]:
        """Look up many keys in one transaction."""
        return self._ops.lookup_batch(keys)

    def store_batch(self, items: Iterable[tuple[str, FileEntry, CachedHash]]) -> int:
        """Store many (key, entry, cached) triples in one transaction."""
        return self._ops.store_batch(items)

    def invalidate(self, filepath: str):
        """Forget a file under every setting it was hashed with."""
        self._ops.invalidate(filepath)

    def cleanup_stale(self, max_age_days: int = 30) -> int:
        """Drop entries not read for max_age_days days."""
        return self._housekeeping.cleanup_stale(max_age_days)

    def cleanup_missing(self) -> int:
        """Drop entries of deleted files."""
        return self._housekeeping.cleanup_missing()

    def get_stats(self) -> dict:
        """Entry counts and file size."""
        return self._housekeeping.get_stats()

    def clear(self):
        """Delete everything."""
        self._housekeeping.clear()

    def vacuum(self):
        """Shrink the database file."""
        self._housekeeping.vacuum()


__all__ = ['HashCache']
