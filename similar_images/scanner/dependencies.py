"""
Third-party imports shared by the scanner modules.

Pillow, imagehash and numpy are required. pillow-heif (HEIC/HEIF/AVIF
decoding) and tqdm (progress bars) are used when installed.
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Optional

from ..config import MAX_IMAGE_PIXELS

_logger = logging.getLogger(__name__)

try:
    from PIL import Image, ImageFilter
    import imagehash
    import numpy as np
except ImportError as e:
    raise ImportError(
        f"Similar Images needs Pillow, imagehash and numpy ({e}).\n"
        "Install with: pip install Pillow imagehash numpy"
    ) from e

# pillow-heif registers itself as a Pillow plugin; without it HEIF files
# are left out of scans
try:
    from pillow_heif import register_heif_opener
except ImportError:
    HAS_HEIF_SUPPORT = False
    _logger.debug("pillow-heif not installed, HEIC/HEIF/AVIF files will be skipped")
else:
    register_heif_opener()
    HAS_HEIF_SUPPORT = True
    _logger.debug("HEIC/HEIF/AVIF decoding available")

# Large panoramas are legitimate inputs
Image.MAX_IMAGE_PIXELS = MAX_IMAGE_PIXELS
warnings.filterwarnings("ignore", category=Image.DecompressionBombWarning)

try:
    from tqdm import tqdm as _tqdm
except ImportError:
    HAS_TQDM = False
    _tqdm_class: Optional[Any] = None
else:
    HAS_TQDM = True
    _tqdm_class = _tqdm


__all__ = [
    'Image',
    'ImageFilter',
    'imagehash',
    'np',
    'HAS_HEIF_SUPPORT',
    'HAS_TQDM',
    '_tqdm_class',
    '_logger',
]
