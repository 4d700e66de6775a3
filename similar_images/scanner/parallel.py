"""
Parallel processing module for the scanner package.

Provides parallel image hashing with caching, cancellation, progress
tracking, and callback support.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional

from ..config import DEFAULT_WORKERS
from ..database import HashCache, CacheStats, make_cache_key
from ..errors import DecodeError
from ..models import CachedHash, FileEntry, FileFailure, ImageRecord
from ..params import Parameters
from .analysis import analyze_image
from .decoding import decode_image
from .progress import ProgressCallback, ProgressThrottle, make_progress_bar


def _record_from_cache(entry: FileEntry, cached: CachedHash) -> ImageRecord:
    return ImageRecord(
        path=entry.path,
        size_bytes=entry.size_bytes,
        modified_time=entry.modified_time,
        width=cached.width,
        height=cached.height,
        hash_variants=cached.hash_variants,
    )


def hash_images_parallel(
    entries: list[FileEntry],
    parameters: Parameters,
    max_workers: int = DEFAULT_WORKERS,
    cancel_event: Optional[Any] = None,
    progress_callback: Optional[ProgressCallback] = None,
    show_progress: bool = False,
    cache: Optional[HashCache] = None,
    decoder: Callable = decode_image,
    logger: Optional[logging.Logger] = None,
) -> tuple[list[ImageRecord], list[FileFailure], CacheStats]:
    """
    Hash many images in parallel with optional caching.

    Cached entries are fetched in one batch before any work is dispatched
    and fresh results are stored in one batch at the end, so workers never
    wait on the cache. Each unit checks the cancellation flag before it
    starts; once set, units already running finish and the rest are skipped.

    Args:
        entries: Candidate files
        parameters: Search parameters
        max_workers: Number of parallel workers
        cancel_event: Object with is_set(), e.g. threading.Event
        progress_callback: Optional callback(current, total) for progress updates
        show_progress: Whether to show tqdm progress bar
        cache: HashCache to consult, or None to hash everything
        decoder: Callable(path) -> PIL image, raising DecodeError
        logger: Optional logger for status messages

    Returns:
        Tuple of (records in input order, per-file failures, CacheStats)
    """
    if not entries:
        return [], [], CacheStats()

    slots: list[Optional[ImageRecord]] = [None] * len(entries)
    failures: list[FileFailure] = []
    stats = CacheStats(total_files=len(entries))

    keys: list[str] = []
    to_hash: list[int] = []

    if cache is not None:
        keys = [make_cache_key(entry, parameters) for entry in entries]
        cached_results = cache.lookup_batch(keys)
        for i, (entry, key) in enumerate(zip(entries, keys)):
            cached = cached_results.get(key)
            if cached is not None:
                slots[i] = _record_from_cache(entry, cached)
                stats.cache_hits += 1
            else:
                to_hash.append(i)
                stats.cache_misses += 1

        if logger and stats.cache_hits > 0:
            logger.info(
                f"Cache: {stats.cache_hits:,} hits, {stats.cache_misses:,} misses "
                f"({stats.hit_rate:.1f}% hit rate)"
            )
    else:
        to_hash = list(range(len(entries)))
        stats.cache_misses = len(entries)

    def hash_one(entry: FileEntry) -> Optional[ImageRecord]:
        if cancel_event is not None and cancel_event.is_set():
            return None
        return analyze_image(entry, parameters, decoder)

    fresh: list[int] = []

    if to_hash:
        throttle = ProgressThrottle(progress_callback, len(entries))
        pbar = make_progress_bar(show_progress, len(to_hash), "Hashing images", "img")

        try:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = {executor.submit(hash_one, entries[i]): i for i in to_hash}

                for done, future in enumerate(as_completed(futures), 1):
                    i = futures[future]
                    try:
                        record = future.result()
                    except DecodeError as e:
                        failures.append(FileFailure(e.path, e.reason))
                        if logger:
                            logger.debug(f"Skipping {e.path}: {e.reason}")
                    except Exception as e:
                        failures.append(FileFailure(entries[i].path, str(e)))
                        if logger:
                            logger.debug(f"Skipping {entries[i].path}: {e}")
                    else:
                        if record is not None:
                            slots[i] = record
                            fresh.append(i)

                    if pbar is not None:
                        pbar.update(1)
                    throttle.update(stats.cache_hits + done)
        finally:
            if pbar is not None:
                pbar.close()
    elif progress_callback:
        progress_callback(len(entries), len(entries))

    if cache is not None and fresh:
        cache.store_batch(
            (keys[i], entries[i], CachedHash(slots[i].width, slots[i].height, slots[i].hash_variants))
            for i in sorted(fresh)
        )

    records = [record for record in slots if record is not None]
    return records, failures, stats


__all__ = ['hash_images_parallel']
