"""
Search entry point for the scanner package.

Runs the whole pipeline: hash candidates (consulting the cache), group
similar images, aggregate the result.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from typing import Any, Callable, Iterable, Optional, Union

from ..config import DEFAULT_WORKERS, LSH_AUTO_THRESHOLD
from ..database import HashCache, get_cache
from ..models import FileEntry, FileFailure, RunInfo, SimilarityGroup
from ..params import Parameters
from .aggregation import aggregate_results
from .decoding import decode_image
from .file_discovery import collect_candidates
from .grouping import group_similar_images
from .parallel import hash_images_parallel
from .progress import ProgressCallback

module_logger = logging.getLogger(__name__)


def _normalize_candidates(
    files: Iterable[Union[FileEntry, str]],
) -> tuple[list[FileEntry], list[FileFailure]]:
    """
    Accept FileEntry objects or plain paths (which get stat'ed).

    A path is one image within a run: later repeats of a path are dropped.
    """
    seen: set[str] = set()
    entries: list[FileEntry] = []
    paths: list[str] = []
    for item in files:
        path = item.path if isinstance(item, FileEntry) else os.fspath(item)
        if path in seen:
            continue
        seen.add(path)
        if isinstance(item, FileEntry):
            entries.append(item)
        else:
            paths.append(path)

    stat_entries, failures = collect_candidates(paths)
    return entries + stat_entries, failures


def _open_shared_cache(logger: Optional[logging.Logger]) -> Optional[HashCache]:
    """Shared cache, or None if its database cannot be opened."""
    try:
        return get_cache()
    except (sqlite3.Error, OSError) as e:
        (logger or module_logger).warning(f"Hash cache unavailable, continuing without it: {e}")
        return None


def search(
    parameters: Parameters,
    files: Iterable[Union[FileEntry, str]],
    cancel_event: Optional[Any] = None,
    progress_callback: Optional[ProgressCallback] = None,
    *,
    use_cache: bool = True,
    cache: Optional[HashCache] = None,
    max_workers: int = DEFAULT_WORKERS,
    decoder: Callable = decode_image,
    use_lsh: Optional[bool] = None,
    lsh_auto_threshold: int = LSH_AUTO_THRESHOLD,
    show_progress: bool = False,
    logger: Optional[logging.Logger] = None,
) -> tuple[RunInfo, list[SimilarityGroup]]:
    """
    Find groups of visually similar images.

    Args:
        parameters: Search parameters
        files: Candidate files (FileEntry objects or paths)
        cancel_event: Object with is_set(), e.g. threading.Event. Once set,
            no new work starts and the partial result is returned.
        progress_callback: Optional callback(current, total), called during
            hashing and again during comparison
        use_cache: Whether to use the hash cache
        cache: Cache to use; defaults to the global cache when use_cache
        max_workers: Number of parallel hashing workers
        decoder: Callable(path) -> PIL image, raising DecodeError
        use_lsh: Force bucketed comparison on/off, or None for auto
        lsh_auto_threshold: Collection size at which bucketing is auto-selected
        show_progress: Whether to show tqdm progress bars
        logger: Optional logger for status messages

    Returns:
        Tuple of (RunInfo, list of SimilarityGroup)

    Raises:
        ConfigError: If the parameters are invalid (before any work starts)
    """
    parameters.validate()

    def cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    if cancelled():
        return aggregate_results([], 0, cancelled=True)

    entries, failures = _normalize_candidates(files)
    if logger:
        logger.info(f"Hashing {len(entries):,} images ({parameters.hash_algorithm.value}, "
                    f"size {parameters.hash_size}, {parameters.resize_filter.value})")

    if use_cache and cache is None:
        cache = _open_shared_cache(logger)

    records, hash_failures, stats = hash_images_parallel(
        entries,
        parameters,
        max_workers=max_workers,
        cancel_event=cancel_event,
        progress_callback=progress_callback,
        show_progress=show_progress,
        cache=cache if use_cache else None,
        decoder=decoder,
        logger=logger,
    )
    failures.extend(hash_failures)

    if failures and logger:
        logger.info(f"Skipped {len(failures):,} unreadable files")

    if cancelled():
        if logger:
            logger.info(f"Search cancelled after hashing {len(records):,} images")
        return aggregate_results(
            [], len(records), failures, cancelled=True, cache_hits=stats.cache_hits
        )

    groups = group_similar_images(
        records,
        parameters,
        cancel_event=cancel_event,
        progress_callback=progress_callback,
        show_progress=show_progress,
        use_lsh=use_lsh,
        lsh_auto_threshold=lsh_auto_threshold,
        logger=logger,
    )

    info, similarity_groups = aggregate_results(
        groups, len(records), failures, cancelled=cancelled(), cache_hits=stats.cache_hits
    )
    if logger:
        logger.info(
            f"Found {info.number_of_groups:,} groups with {info.number_of_duplicates:,} "
            f"duplicates among {info.initial_found_files:,} images"
        )
    return info, similarity_groups


__all__ = ['search']
