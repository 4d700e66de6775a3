"""
Similarity grouping module for the scanner package.

Links every pair of images whose closest hash variants are within the
similarity threshold and returns the connected components. Uses a
Union-Find structure and either a vectorised brute-force pass or exact
multi-index bucketing; both produce the same links.

Records are ordered by path before indexing, so member order inside a
group and group order in the output never depend on input order or on
which worker finished first.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..config import CANCEL_CHECK_INTERVAL, LSH_AUTO_THRESHOLD
from ..lsh import MultiIndexHash, is_bucketing_useful
from ..models import ImageRecord
from ..params import Parameters
from .dependencies import np
from .hashing import packed_bits
from .progress import ProgressCallback, ProgressThrottle, make_progress_bar


# Number of set bits for every byte value
_POPCOUNT = np.array([bin(value).count('1') for value in range(256)], dtype=np.uint8)


class _UnionFind:
    """Disjoint sets with path compression and union by rank."""

    def __init__(self, size: int):
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, x: int, y: int) -> bool:
        px, py = self.find(x), self.find(y)
        if px == py:
            return False
        if self.rank[px] < self.rank[py]:
            px, py = py, px
        self.parent[py] = px
        if self.rank[px] == self.rank[py]:
            self.rank[px] += 1
        return True


def _is_cancelled(cancel_event: Optional[Any]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _pack_variants(records: list[ImageRecord]) -> tuple[np.ndarray, int]:
    """
    Stack packed hash bits into an array of shape (images, variants, bytes).

    Returns:
        Tuple of (packed array, bits per hash)
    """
    bit_count = records[0].hash_variants[0].hash.hash.size
    variant_count = len(records[0].hash_variants)

    for record in records:
        if len(record.hash_variants) != variant_count:
            raise ValueError(
                f"{record.path} has {len(record.hash_variants)} hash variants, "
                f"expected {variant_count}"
            )
        for variant in record.hash_variants:
            if variant.hash.hash.size != bit_count:
                raise ValueError(
                    f"{record.path} has a {variant.hash.hash.size}-bit hash, "
                    f"expected {bit_count} bits"
                )

    packed = np.stack([
        np.stack([packed_bits(variant.hash) for variant in record.hash_variants])
        for record in records
    ])
    return packed, bit_count


def _min_distance(first: np.ndarray, second: np.ndarray) -> int:
    """Smallest distance between any variant of `first` and any of `second`."""
    xor = first[:, None, :] ^ second[None, :, :]
    return int(_POPCOUNT[xor].sum(axis=-1, dtype=np.int64).min())


def _link_bruteforce(
    packed: np.ndarray,
    sizes: np.ndarray,
    parameters: Parameters,
    union_find: _UnionFind,
    cancel_event: Optional[Any],
    progress_callback: Optional[ProgressCallback],
    show_progress: bool,
) -> bool:
    """
    Compare every pair, one row of the upper triangle at a time.

    Returns:
        False if cancelled before all rows were compared
    """
    n = packed.shape[0]
    threshold = parameters.similarity_threshold
    total_comparisons = n * (n - 1) // 2
    throttle = ProgressThrottle(progress_callback, total_comparisons)
    pbar = make_progress_bar(show_progress, n - 1, "Comparing images", "img")

    comparison_count = 0
    completed = True
    try:
        for i in range(n - 1):
            if _is_cancelled(cancel_event):
                completed = False
                break

            others = packed[i + 1:]
            best = np.full(len(others), np.iinfo(np.int64).max, dtype=np.int64)
            for variant in packed[i]:
                # (others, variants, bytes) -> closest variant of each other image
                distances = _POPCOUNT[others ^ variant].sum(axis=-1, dtype=np.int64).min(axis=1)
                np.minimum(best, distances, out=best)

            matches = best <= threshold
            if parameters.exclude_same_size:
                matches &= sizes[i + 1:] != sizes[i]

            for offset in np.flatnonzero(matches):
                union_find.union(i, i + 1 + int(offset))

            comparison_count += len(others)
            throttle.update(comparison_count)
            if pbar is not None:
                pbar.update(1)
    finally:
        if pbar is not None:
            pbar.close()

    return completed


def _link_bucketed(
    records: list[ImageRecord],
    packed: np.ndarray,
    sizes: np.ndarray,
    bit_count: int,
    parameters: Parameters,
    union_find: _UnionFind,
    cancel_event: Optional[Any],
    progress_callback: Optional[ProgressCallback],
    show_progress: bool,
    logger: Optional[logging.Logger],
) -> bool:
    """
    Compare only pairs that share a multi-index bucket.

    Returns:
        False if cancelled before all candidates were compared
    """
    threshold = parameters.similarity_threshold
    index = MultiIndexHash(hash_bits=bit_count, threshold=threshold)
    for idx, record in enumerate(records):
        for variant in record.hash_variants:
            index.add(idx, variant.hash)

    estimated_candidates = index.estimate_candidate_pairs()
    if logger:
        n = len(records)
        brute_force = n * (n - 1) // 2
        logger.info(
            f"Bucketed comparison: {brute_force:,} pairs -> ~{estimated_candidates:,} candidates "
            f"({index.num_tables} tables)"
        )

    throttle = ProgressThrottle(progress_callback, estimated_candidates)
    pbar = make_progress_bar(show_progress, estimated_candidates, "Comparing candidates", "cmp")

    comparison_count = 0
    actual_comparisons = 0
    matches_found = 0
    completed = True
    try:
        for i, j in index.iter_candidate_pairs():
            comparison_count += 1
            if comparison_count % CANCEL_CHECK_INTERVAL == 0:
                if _is_cancelled(cancel_event):
                    completed = False
                    break
                throttle.update(comparison_count)
                if pbar is not None:
                    pbar.update(CANCEL_CHECK_INTERVAL)

            # Already connected, or seen in another table
            if union_find.find(i) == union_find.find(j):
                continue
            if parameters.exclude_same_size and sizes[i] == sizes[j]:
                continue

            actual_comparisons += 1
            if _min_distance(packed[i], packed[j]) <= threshold:
                union_find.union(i, j)
                matches_found += 1
    finally:
        if pbar is not None:
            pbar.close()

    if completed:
        throttle.update(estimated_candidates)

    if logger:
        logger.info(
            f"Found {matches_found:,} linking pairs ({actual_comparisons:,} actual comparisons, "
            f"{comparison_count - actual_comparisons:,} skipped)"
        )
    return completed


def _collect_components(records: list[ImageRecord], union_find: _UnionFind) -> list[list[ImageRecord]]:
    """Components with at least two members, ordered by their first member."""
    components: dict[int, list[ImageRecord]] = {}
    for i, record in enumerate(records):
        components.setdefault(union_find.find(i), []).append(record)
    return [members for members in components.values() if len(members) > 1]


def group_similar_images(
    records: list[ImageRecord],
    parameters: Parameters,
    cancel_event: Optional[Any] = None,
    progress_callback: Optional[ProgressCallback] = None,
    show_progress: bool = False,
    use_lsh: Optional[bool] = None,
    lsh_auto_threshold: int = LSH_AUTO_THRESHOLD,
    logger: Optional[logging.Logger] = None,
) -> list[list[ImageRecord]]:
    """
    Find groups of similar images.

    Two images are linked when exclude_same_size is off or their sizes
    differ, and some pair of their hash variants is within
    similarity_threshold. Groups are the connected components of size >= 2.

    Args:
        records: Hashed images
        parameters: Search parameters
        cancel_event: Object with is_set(); checked between comparison batches
        progress_callback: Optional callback(current, total)
        show_progress: Whether to show a tqdm progress bar
        use_lsh: Force bucketing on/off, or None for auto-select by size
        lsh_auto_threshold: Collection size at which bucketing is auto-selected
        logger: Optional logger for status messages

    Returns:
        Lists of records, members ordered by path, groups ordered by
        their first member. On cancellation, the components of the
        links found so far.
    """
    ordered = sorted(records, key=lambda record: record.path)
    if len(ordered) < 2:
        return []

    packed, bit_count = _pack_variants(ordered)
    sizes = np.array([record.size_bytes for record in ordered], dtype=np.int64)
    union_find = _UnionFind(len(ordered))
    threshold = parameters.similarity_threshold

    if use_lsh is None:
        use_lsh = len(ordered) >= lsh_auto_threshold
    if use_lsh and not is_bucketing_useful(bit_count, threshold):
        if logger:
            logger.info(
                f"Threshold {threshold} is too loose for bucketing {bit_count}-bit hashes, "
                f"comparing all pairs"
            )
        use_lsh = False

    if use_lsh:
        completed = _link_bucketed(
            ordered, packed, sizes, bit_count, parameters, union_find,
            cancel_event, progress_callback, show_progress, logger,
        )
    else:
        completed = _link_bruteforce(
            packed, sizes, parameters, union_find,
            cancel_event, progress_callback, show_progress,
        )

    if not completed and logger:
        logger.info("Comparison cancelled, returning groups found so far")

    return _collect_components(ordered, union_find)


__all__ = ['group_similar_images']
