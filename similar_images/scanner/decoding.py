"""
Image decoding for the scanner package.

The default decoder collaborator: turns a path into a fully loaded Pillow
image or raises DecodeError. Anything callable with the same contract can
be passed to search() instead.
"""

from __future__ import annotations

import os
from pathlib import Path

from ..config import HEIF_EXTENSIONS
from ..errors import DecodeError
from .dependencies import Image, HAS_HEIF_SUPPORT


def decode_image(filepath: str | Path) -> "Image.Image":
    """
    Open and fully decode an image file.

    Args:
        filepath: Path to the image file

    Returns:
        Loaded PIL image in 'RGB' or 'L' mode (other modes are converted)

    Raises:
        DecodeError: If the file is missing, unreadable, unsupported,
            truncated or corrupt
    """
    filepath = str(filepath)

    if not os.path.exists(filepath):
        raise DecodeError(filepath, "File not found")

    if not os.access(filepath, os.R_OK):
        raise DecodeError(filepath, "File not readable (permission denied)")

    ext = os.path.splitext(filepath)[1].lower()
    if ext in HEIF_EXTENSIONS and not HAS_HEIF_SUPPORT:
        raise DecodeError(filepath, "HEIC/HEIF support not installed (pip install pillow-heif)")

    try:
        with Image.open(filepath) as img:
            # Force load to detect truncated images early
            try:
                img.load()
            except Exception as load_err:
                raise DecodeError(filepath, f"Corrupt or truncated image: {load_err}") from load_err

            if img.mode in ('RGB', 'L'):
                return img.copy()
            # Handles palettes, transparency, 16-bit and CMYK
            return img.convert('RGB')

    except DecodeError:
        raise
    except Image.UnidentifiedImageError as e:
        raise DecodeError(filepath, f"Not a valid image file: {e}") from e
    except Exception as e:
        raise DecodeError(filepath, f"Failed to open image: {e}") from e


__all__ = ['decode_image']
