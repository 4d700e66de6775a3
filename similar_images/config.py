"""
Configuration constants for Similar Images.

This module contains all configurable settings including:
- Supported image extensions
- Default hashing parameters
- Grouping and cache tuning knobs
"""

import os

# Image extensions the default crawler picks up.
# RAW and vector formats are left out: Pillow cannot decode them to pixels.
IMAGE_EXTENSIONS = {
    # Common formats
    '.jpg', '.jpeg', '.jfif', '.png', '.gif', '.bmp', '.webp', '.tiff', '.tif',
    # Other formats Pillow decodes natively
    '.ico', '.icns', '.tga', '.dds', '.pcx', '.sgi', '.rgb', '.rgba', '.bw',
    '.pbm', '.pgm', '.ppm', '.pnm',
    '.jp2', '.j2k', '.jpf', '.jpx',
    # Needs pillow-heif
    '.heic', '.heif', '.avif',
}

HEIF_EXTENSIONS = {'.heic', '.heif', '.avif'}

# Default maximum hash distance for two images to be linked.
# The meaningful range depends on algorithm and hash size:
# hash_size=8 gives 64 bits (32 for double_gradient).
DEFAULT_THRESHOLD = 10

# Hash resolution; the hash carries hash_size**2 bits for most algorithms
DEFAULT_HASH_SIZE = 8
ALLOWED_HASH_SIZES = (8, 16, 32, 64)

DEFAULT_HASH_ALGORITHM = 'gradient'
DEFAULT_RESIZE_FILTER = 'lanczos3'
DEFAULT_GEOMETRIC_INVARIANCE = 'off'

# Blockhash works on a square image of BLOCKHASH_CELL * hash_size pixels
BLOCKHASH_CELL = 4
BLOCKHASH_BANDS = 4

# Default number of parallel workers for image hashing
DEFAULT_WORKERS = 4

# Multi-index bucketing configuration
# Bucketing gives the same links as brute force with far fewer comparisons
LSH_AUTO_THRESHOLD = 5000   # Auto-enable bucketing when >= this many images
MIN_SEGMENT_BITS = 8        # Segments shorter than this make buckets too coarse

# How often (in compared pairs) the bucketed comparison checks for cancellation
CANCEL_CHECK_INTERVAL = 10000

# Progress callbacks are batched (every N units or every interval seconds)
PROGRESS_BATCH_SIZE = 1000
PROGRESS_INTERVAL = 1.0

# Decompression bomb limit for Pillow (500 megapixels)
MAX_IMAGE_PIXELS = 500_000_000

# SQLite cache database location
# Stores computed hash variants for faster re-scans
CACHE_DB_FILE = os.path.join(os.path.expanduser('~'), '.similar_images_cache.db')
