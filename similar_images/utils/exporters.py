"""
Export functionality for Similar Images.

Provides functions to export search results to various file formats
including TXT, CSV and JSON.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import TextIO

from ..models import RunInfo, SimilarityGroup

EXPORT_FORMATS = ('txt', 'csv', 'json')


def _export_txt(info: RunInfo, groups: list[SimilarityGroup], file_handle: TextIO) -> None:
    """
    Export search results to TXT format.

    Args:
        info: Run summary
        groups: Similarity groups
        file_handle: Open file handle to write to
    """
    file_handle.write("SIMILAR IMAGES REPORT\n")
    file_handle.write("=" * 70 + "\n\n")
    file_handle.write(f"Images scanned: {info.initial_found_files}\n")
    file_handle.write(f"Groups: {info.number_of_groups}\n")
    file_handle.write(f"Duplicates: {info.number_of_duplicates}\n")
    file_handle.write(f"Skipped: {info.skipped_files}\n")
    if info.cancelled:
        file_handle.write("Search was cancelled; results are partial\n")

    for group in groups:
        file_handle.write(f"\nGroup {group.id}:\n")
        for img in group.images:
            file_handle.write(f"  {img.path}\n")

    if info.errors:
        file_handle.write("\n\nSKIPPED FILES\n")
        file_handle.write("-" * 70 + "\n")
        for error in info.errors:
            file_handle.write(f"  {error}\n")


def _export_csv(info: RunInfo, groups: list[SimilarityGroup], file_handle: TextIO) -> None:
    """
    Export search results to CSV format.

    Notes:
        CSV includes: group_id, path, width, height, size_bytes, modified_time
    """
    writer = csv.writer(file_handle)
    writer.writerow(['group_id', 'path', 'width', 'height', 'size_bytes', 'modified_time'])

    for group in groups:
        for img in group.images:
            writer.writerow([
                group.id, img.path, img.width, img.height, img.size_bytes, img.modified_time,
            ])


def _export_json(info: RunInfo, groups: list[SimilarityGroup], file_handle: TextIO) -> None:
    """Export search results as a single JSON document."""
    json.dump(
        {
            'run_info': info.to_dict(),
            'groups': [group.to_dict() for group in groups],
        },
        file_handle,
        indent=2,
    )


_EXPORTERS = {
    'txt': _export_txt,
    'csv': _export_csv,
    'json': _export_json,
}


def export_results(
    info: RunInfo,
    groups: list[SimilarityGroup],
    output_path: Path,
    export_format: str = 'txt'
) -> None:
    """
    Export search results to a file.

    Args:
        info: Run summary
        groups: Similarity groups
        output_path: Path to output file
        export_format: Export format ('txt', 'csv' or 'json'). Default: 'txt'

    Raises:
        ValueError: If export_format is not supported
        OSError: If file cannot be written
    """
    if export_format not in _EXPORTERS:
        raise ValueError(
            f"Unsupported export format: {export_format}. Use one of {', '.join(EXPORT_FORMATS)}."
        )

    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        _EXPORTERS[export_format](info, groups, f)


__all__ = ['export_results', 'EXPORT_FORMATS']
