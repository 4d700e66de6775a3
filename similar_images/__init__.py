"""
Similar Images
==============
A near-duplicate image detector.

Features:
- Perceptual hashing: gradient, double gradient, vertical gradient,
  blockhash and mean hashes at 8/16/32/64 bits per side
- Optional mirror/flip/rotation invariance
- Groups images into connected components of the similarity graph
- Exact bucketed comparison for large collections
- SQLite cache for fast re-scans
- Cancellable, with progress callbacks
- CLI for automation
"""

__version__ = "1.0.0"

from .params import Parameters, HashAlgorithm, ResizeFilter, GeometricInvariance
from .models import FileEntry, ImageRecord, SimilarityGroup, RunInfo
from .errors import SimilarImagesError, ConfigError, DecodeError, CacheError
from .config import IMAGE_EXTENSIONS, LSH_AUTO_THRESHOLD
from .scanner import (
    search,
    find_image_files,
    collect_candidates,
    decode_image,
    compute_hash_variants,
    hash_distance,
    group_similar_images,
    aggregate_results,
)
from .database import HashCache, get_cache, CacheStats
from .lsh import MultiIndexHash

__all__ = [
    "Parameters",
    "HashAlgorithm",
    "ResizeFilter",
    "GeometricInvariance",
    "FileEntry",
    "ImageRecord",
    "SimilarityGroup",
    "RunInfo",
    "SimilarImagesError",
    "ConfigError",
    "DecodeError",
    "CacheError",
    "IMAGE_EXTENSIONS",
    "LSH_AUTO_THRESHOLD",
    "search",
    "find_image_files",
    "collect_candidates",
    "decode_image",
    "compute_hash_variants",
    "hash_distance",
    "group_similar_images",
    "aggregate_results",
    "HashCache",
    "get_cache",
    "CacheStats",
    "MultiIndexHash",
]
