"""
Result aggregation for the scanner package.

The only place where RunInfo counters are computed.
"""

from __future__ import annotations

from typing import Iterable

from ..models import FileFailure, RunInfo, SimilarityGroup


def aggregate_results(
    groups: Iterable[list],
    initial_found_files: int,
    failures: Iterable[FileFailure] = (),
    cancelled: bool = False,
    cache_hits: int = 0,
) -> tuple[RunInfo, list[SimilarityGroup]]:
    """
    Build the final group list and its summary.

    Groups with fewer than two members are dropped. Remaining groups keep
    their order and are numbered from 1.

    Args:
        groups: Member lists from the grouper
        initial_found_files: Number of images successfully hashed
        failures: Per-file errors collected during the run
        cancelled: Whether the run stopped early
        cache_hits: Images served from the cache

    Returns:
        Tuple of (RunInfo, list of SimilarityGroup)
    """
    similarity_groups = [
        SimilarityGroup(id=group_id, images=list(members))
        for group_id, members in enumerate(
            (members for members in groups if len(members) >= 2), 1
        )
    ]

    grouped_members = sum(len(group) for group in similarity_groups)
    failures = sorted(failures, key=lambda failure: failure.path)

    info = RunInfo(
        initial_found_files=initial_found_files,
        number_of_groups=len(similarity_groups),
        number_of_duplicates=grouped_members - len(similarity_groups),
        skipped_files=len(failures),
        errors=[str(failure) for failure in failures],
        cancelled=cancelled,
        cache_hits=cache_hits,
    )
    return info, similarity_groups


__all__ = ['aggregate_results']
