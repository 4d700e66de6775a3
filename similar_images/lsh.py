"""
Multi-index hashing for fast, exact perceptual hash matching.

Each hash is cut into (threshold + 1) disjoint bit segments and every
segment is used as a bucket key in its own table. If two hashes differ in
at most `threshold` bits, those differing bits can touch at most
`threshold` segments, so at least one segment is identical and the pair
collides in that table (pigeonhole principle).

Unlike random bit-sampling LSH this never misses a pair: bucket collisions
are a superset of the true matches and every candidate is verified with
the exact distance afterwards.

Performance:
- Brute force: O(n^2) comparisons
- Multi-index: O(n * k) where k is the average number of candidates,
  small as long as segments keep enough bits (see MIN_SEGMENT_BITS)
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterator

from .config import MIN_SEGMENT_BITS


def segment_bounds(hash_bits: int, num_segments: int) -> list[tuple[int, int]]:
    """
    Split hash_bits positions into num_segments contiguous ranges.

    Segment lengths differ by at most one bit.

    Returns:
        List of (start, end) half-open ranges
    """
    if num_segments < 1 or num_segments > hash_bits:
        raise ValueError(f"Cannot split {hash_bits} bits into {num_segments} segments")

    base, extra = divmod(hash_bits, num_segments)
    bounds = []
    start = 0
    for i in range(num_segments):
        end = start + base + (1 if i < extra else 0)
        bounds.append((start, end))
        start = end
    return bounds


def is_bucketing_useful(hash_bits: int, threshold: int) -> bool:
    """
    Whether multi-index bucketing can speed up a search.

    Every segment needs at least MIN_SEGMENT_BITS bits; shorter segments
    put most hashes into the same few buckets.
    """
    return (threshold + 1) * MIN_SEGMENT_BITS <= hash_bits


class MultiIndexHash:
    """
    Exact Hamming-radius index over perceptual hashes.

    An image may be added several times (once per hash variant) under the
    same index; it is then a candidate for every image that collides with
    any of its variants.

    Usage:
        index = MultiIndexHash(hash_bits=64, threshold=5)

        for idx, record in enumerate(records):
            for variant in record.hash_variants:
                index.add(idx, variant.hash)

        for i, j in index.iter_candidate_pairs():
            # Verify with the exact distance
            ...
    """

    def __init__(self, hash_bits: int, threshold: int):
        """
        Initialize the index.

        Args:
            hash_bits: Total bits in each hash
            threshold: Maximum distance that must still collide
        """
        self.hash_bits = hash_bits
        self.threshold = threshold
        self.num_tables = threshold + 1
        self.bounds = segment_bounds(hash_bits, self.num_tables)

        # Tables: table_idx -> segment bytes -> list of indices
        self.tables: list[dict[bytes, list[int]]] = [
            defaultdict(list) for _ in range(self.num_tables)
        ]
        self._indices: set[int] = set()

    def add(self, idx: int, phash) -> None:
        """
        Add one hash of image `idx` to the index.

        Args:
            idx: Image identifier (typically array index)
            phash: imagehash.ImageHash with hash_bits bits
        """
        if phash is None:
            return

        bits = phash.hash.flatten()
        if bits.size != self.hash_bits:
            raise ValueError(f"Expected a {self.hash_bits}-bit hash, got {bits.size} bits")

        for table, (start, end) in zip(self.tables, self.bounds):
            bucket = table[bits[start:end].tobytes()]
            # Variants of one image are added back to back
            if not bucket or bucket[-1] != idx:
                bucket.append(idx)

        self._indices.add(idx)

    def iter_candidate_pairs(self) -> Iterator[tuple[int, int]]:
        """
        Yield every pair of indices sharing a bucket.

        Pairs are (i, j) with i < j. A pair can be yielded more than once
        when it collides in several tables.
        """
        for table in self.tables:
            for bucket in table.values():
                if len(bucket) < 2:
                    continue
                members = sorted(set(bucket))
                for a in range(len(members)):
                    for b in range(a + 1, len(members)):
                        yield members[a], members[b]

    def get_all_candidate_pairs(self) -> set[tuple[int, int]]:
        """Unique candidate pairs as a set of (i, j) with i < j."""
        return set(self.iter_candidate_pairs())

    def estimate_candidate_pairs(self) -> int:
        """Number of pairs iter_candidate_pairs() will yield (with repeats)."""
        total = 0
        for table in self.tables:
            for bucket in table.values():
                k = len(set(bucket))
                total += k * (k - 1) // 2
        return total

    def clear(self) -> None:
        """Clear all data from the index."""
        for table in self.tables:
            table.clear()
        self._indices.clear()

    @property
    def size(self) -> int:
        """Number of distinct images in the index."""
        return len(self._indices)

    def get_stats(self) -> dict:
        """Get statistics about the index."""
        non_empty = [len(bucket) for table in self.tables for bucket in table.values()]
        return {
            'num_tables': self.num_tables,
            'segment_bits': [end - start for start, end in self.bounds],
            'total_items': self.size,
            'non_empty_buckets': len(non_empty),
            'avg_bucket_size': sum(non_empty) / max(1, len(non_empty)),
            'max_bucket_size': max(non_empty, default=0),
        }


__all__ = ['MultiIndexHash', 'segment_bounds', 'is_bucketing_useful']
