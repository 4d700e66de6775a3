"""
Data models for Similar Images.

Contains dataclasses for candidate files, hashed image records,
similarity groups and run summaries.
"""

from dataclasses import dataclass, field
from typing import Any, NamedTuple
import os


def format_size(size_bytes: int) -> str:
    """Human-readable byte count, e.g. '1.5 MB'."""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} TB"


@dataclass(frozen=True)
class FileEntry:
    """
    A candidate file as produced by the crawler.

    Attributes:
        path: Full path to the file
        size_bytes: Size in bytes
        modified_time: Modification time (seconds since the epoch)
    """
    path: str
    size_bytes: int
    modified_time: float

    @classmethod
    def from_path(cls, path: str) -> 'FileEntry':
        """Stat a path. Raises OSError if the file cannot be stat'ed."""
        stat = os.stat(path)
        return cls(path=str(path), size_bytes=stat.st_size, modified_time=stat.st_mtime)


class HashVariant(NamedTuple):
    """One perceptual hash of an image under a geometric transform."""
    transform: str
    hash: Any  # imagehash.ImageHash


@dataclass(frozen=True)
class ImageRecord:
    """
    A scanned image with its hash variants.

    Records are built once by a single hashing worker and never mutated.

    Attributes:
        path: Full path to the image file
        size_bytes: Size in bytes
        modified_time: Modification time of the file
        width: Image width in pixels
        height: Image height in pixels
        hash_variants: One (transform, hash) pair per required variant
    """
    path: str
    size_bytes: int = 0
    modified_time: float = 0.0
    width: int = 0
    height: int = 0
    hash_variants: tuple = ()

    @property
    def pixel_count(self) -> int:
        """Total pixels (width * height)."""
        return self.width * self.height

    @property
    def filename(self) -> str:
        """Base name of the file."""
        return os.path.basename(self.path)

    @property
    def directory(self) -> str:
        """Parent directory of the file."""
        return os.path.dirname(self.path)

    @property
    def resolution(self) -> str:
        """'WIDTHxHEIGHT'."""
        return f"{self.width}x{self.height}"

    @property
    def size_formatted(self) -> str:
        """size_bytes formatted with format_size()."""
        return format_size(self.size_bytes)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'path': self.path,
            'filename': self.filename,
            'directory': self.directory,
            'size_bytes': self.size_bytes,
            'size_formatted': self.size_formatted,
            'modified_time': self.modified_time,
            'width': self.width,
            'height': self.height,
            'resolution': self.resolution,
            'pixel_count': self.pixel_count,
            'hashes': {variant.transform: str(variant.hash) for variant in self.hash_variants},
        }


@dataclass
class SimilarityGroup:
    """
    A group of visually similar images.

    Attributes:
        id: 1-based position of this group in the search output
        images: Members ordered by path
    """
    id: int
    images: list = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.images)

    def __iter__(self):
        return iter(self.images)

    @property
    def paths(self) -> list:
        """Paths of all members, in group order."""
        return [img.path for img in self.images]

    @property
    def total_size(self) -> int:
        """Combined size of all members in bytes."""
        return sum(img.size_bytes for img in self.images)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'image_count': len(self.images),
            'total_size': self.total_size,
            'images': [img.to_dict() for img in self.images],
        }


@dataclass
class RunInfo:
    """
    Summary of one search.

    Attributes:
        initial_found_files: Images successfully hashed
        number_of_groups: Groups reported
        number_of_duplicates: Sum of group sizes minus number of groups
        skipped_files: Files that could not be read or hashed
        errors: One "path: reason" message per skipped file
        cancelled: True if the search stopped early
        cache_hits: Images whose hashes came from the cache
    """
    initial_found_files: int = 0
    number_of_groups: int = 0
    number_of_duplicates: int = 0
    skipped_files: int = 0
    errors: list = field(default_factory=list)
    cancelled: bool = False
    cache_hits: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'initial_found_files': self.initial_found_files,
            'number_of_groups': self.number_of_groups,
            'number_of_duplicates': self.number_of_duplicates,
            'skipped_files': self.skipped_files,
            'errors': list(self.errors),
            'cancelled': self.cancelled,
            'cache_hits': self.cache_hits,
        }


@dataclass(frozen=True)
class FileFailure:
    """A per-file error collected during a run."""
    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass(frozen=True)
class CachedHash:
    """Cache value: dimensions plus the hash variants of one image."""
    width: int
    height: int
    hash_variants: tuple
