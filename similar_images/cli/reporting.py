"""
Report formatting and display for the CLI interface.

Provides functions to print search results in a human-readable format.
"""

from __future__ import annotations

from ..models import RunInfo, SimilarityGroup, format_size


def _print_section_header(title: str) -> None:
    """Print a section header with divider lines."""
    print("\n" + "-" * 70)
    print(title)
    print("-" * 70)


def _print_group(group: SimilarityGroup) -> None:
    print(f"\nGroup {group.id} ({len(group)} files, {format_size(group.total_size)}):")
    for img in group.images:
        print(f"  {img.resolution:>11} | {format_size(img.size_bytes):>10} | {img.path}")


def print_similarity_report(info: RunInfo, groups: list[SimilarityGroup]) -> None:
    """
    Print a report of found similarity groups.

    Notes:
        - Summary counters first, then one block per group
        - Members are printed in group order (by path)
        - Skipped files are listed last
    """
    print("\n" + "=" * 70)
    print("SIMILAR IMAGES REPORT")
    print("=" * 70)

    print(f"\nImages scanned: {info.initial_found_files:,}")
    if info.cache_hits:
        print(f"Served from cache: {info.cache_hits:,}")
    print(f"Similar images found: {info.number_of_duplicates:,} files in "
          f"{info.number_of_groups:,} groups")
    if info.skipped_files:
        print(f"Skipped files: {info.skipped_files:,}")
    if info.cancelled:
        print("Search was cancelled; results are partial")

    if groups:
        _print_section_header("SIMILARITY GROUPS")
        for group in groups:
            _print_group(group)

    if info.errors:
        _print_section_header("SKIPPED FILES")
        for error in info.errors:
            print(f"  {error}")

    print("\n" + "=" * 70)


__all__ = ['print_similarity_report']
