"""
Scanner package for Similar Images.

Provides perceptual hashing, parallel hashing with caching, similarity
grouping and the search() entry point.

Public API:
- search: Run a complete similar-image search
- find_image_files: Discover image files in directories
- collect_candidates: Stat paths into FileEntry candidates
- decode_image: Default Pillow decoder
- compute_hash_variants: Hash an image once per geometric variant
- hash_distance: Distance between two hashes
- hash_bit_count: Bits per hash for an algorithm and hash size
- analyze_image: Decode and hash a single candidate
- hash_images_parallel: Hash many candidates in parallel with caching
- group_similar_images: Connected components of the similarity graph
- aggregate_results: Build RunInfo and numbered groups
- has_heif_support: Check if HEIC/HEIF support is available
"""

from __future__ import annotations

from .file_discovery import find_image_files, collect_candidates
from .decoding import decode_image
from .hashing import compute_hash_variants, hash_distance, hash_bit_count
from .analysis import analyze_image
from .parallel import hash_images_parallel
from .grouping import group_similar_images
from .aggregation import aggregate_results
from .search import search

from .dependencies import HAS_HEIF_SUPPORT


def has_heif_support() -> bool:
    """Check if HEIC/HEIF support is available."""
    return HAS_HEIF_SUPPORT


__all__ = [
    'search',
    'find_image_files',
    'collect_candidates',
    'decode_image',
    'compute_hash_variants',
    'hash_distance',
    'hash_bit_count',
    'analyze_image',
    'hash_images_parallel',
    'group_similar_images',
    'aggregate_results',
    'has_heif_support',
]
