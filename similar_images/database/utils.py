"""
Shared utilities for database operations.

Provides:
- CacheStats: Statistics dataclass for tracking cache performance
- Cache key construction and value (de)serialization
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass

from ..errors import CacheError
from ..models import CachedHash, FileEntry, HashVariant
from ..params import Parameters


# SQLite has a limit of 999 variables, we use 500 for safety
CHUNK_SIZE = 500


@dataclass
class CacheStats:
    """Statistics about cache usage during a scan."""
    cache_hits: int = 0
    cache_misses: int = 0
    total_files: int = 0

    @property
    def hit_rate(self) -> float:
        """Return cache hit rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.cache_hits / self.total_files) * 100


def make_cache_key(entry: FileEntry, parameters: Parameters) -> str:
    """
    Create a cache key from file identity and hashing configuration.

    The key changes if the file is modified, its size changes, or any
    setting that affects the hash values changes.

    Args:
        entry: Candidate file (path, size, mtime)
        parameters: Search parameters

    Returns:
        Cache key string
    """
    return (
        f"{entry.path}:{entry.modified_time}:{entry.size_bytes}:"
        f"{parameters.hash_algorithm.value}:{parameters.hash_size}:"
        f"{parameters.resize_filter.value}:{parameters.geometric_invariance.value}"
    )


def serialize_variants(variants: tuple) -> str:
    """Encode hash variants as a JSON string."""
    # Local import: the scanner package imports this package
    from ..scanner.hashing import hash_to_hex

    return json.dumps([
        {
            'transform': variant.transform,
            'shape': list(variant.hash.hash.shape),
            'bits': hash_to_hex(variant.hash),
        }
        for variant in variants
    ])


def deserialize_variants(payload: str) -> tuple:
    """
    Decode hash variants written by serialize_variants.

    Raises:
        CacheError: If the payload is malformed
    """
    from ..scanner.hashing import hex_to_hash

    try:
        items = json.loads(payload)
        return tuple(
            HashVariant(item['transform'], hex_to_hash(item['bits'], tuple(item['shape'])))
            for item in items
        )
    except (TypeError, ValueError, KeyError) as e:
        raise CacheError(f"Malformed cached hash: {e}") from e


def row_to_cached_hash(row: sqlite3.Row) -> CachedHash:
    """
    Convert database row to a CachedHash.

    Raises:
        CacheError: If the stored variants cannot be decoded
    """
    variants = deserialize_variants(row['variants'])
    if not variants:
        raise CacheError(f"Cached entry for {row['path']} has no hashes")
    return CachedHash(
        width=row['width'] or 0,
        height=row['height'] or 0,
        hash_variants=variants,
    )


__all__ = [
    'CHUNK_SIZE',
    'CacheStats',
    'make_cache_key',
    'serialize_variants',
    'deserialize_variants',
    'row_to_cached_hash',
]
