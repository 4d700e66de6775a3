"""
File discovery module for the scanner package.

The default crawler collaborator: finds image files in directories and
turns paths into FileEntry candidates with size and modification time.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from ..config import HEIF_EXTENSIONS, IMAGE_EXTENSIONS
from ..models import FileEntry, FileFailure
from .dependencies import HAS_HEIF_SUPPORT


def find_image_files(root_path: str | Path, recursive: bool = True) -> list[str]:
    """
    Find all image files in the given directory.

    Args:
        root_path: Directory path to search for images
        recursive: If True, search subdirectories recursively

    Returns:
        Sorted list of absolute file paths as strings

    Notes:
        - Skips HEIC/HEIF/AVIF files if pillow-heif is not installed
        - Resolves symlinks and deduplicates files reached via several paths
    """
    root = Path(root_path)

    extensions_to_scan = IMAGE_EXTENSIONS
    if not HAS_HEIF_SUPPORT:
        extensions_to_scan = IMAGE_EXTENSIONS - HEIF_EXTENSIONS

    images = set()
    iterator = root.rglob('*') if recursive else root.glob('*')

    for filepath in iterator:
        if filepath.suffix.lower() in extensions_to_scan and filepath.is_file():
            images.add(str(filepath.resolve()))

    return sorted(images)


def collect_candidates(paths: Iterable[str | Path]) -> tuple[list[FileEntry], list[FileFailure]]:
    """
    Stat candidate paths.

    Args:
        paths: File paths

    Returns:
        Tuple of (entries for files that could be stat'ed, failures)
    """
    entries: list[FileEntry] = []
    failures: list[FileFailure] = []

    for path in paths:
        path = os.fspath(path)
        try:
            entries.append(FileEntry.from_path(path))
        except OSError as e:
            failures.append(FileFailure(path, f"Cannot stat file: {e.strerror or e}"))

    return entries, failures


__all__ = ['find_image_files', 'collect_candidates']
