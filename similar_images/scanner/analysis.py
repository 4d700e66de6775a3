"""
Image analysis module for the scanner package.

Provides the single-file unit of work: decode one candidate and build its
ImageRecord with all required hash variants.
"""

from __future__ import annotations

from typing import Callable

from ..errors import DecodeError
from ..models import FileEntry, ImageRecord
from ..params import Parameters
from .decoding import decode_image
from .hashing import compute_hash_variants


def analyze_image(
    entry: FileEntry,
    parameters: Parameters,
    decoder: Callable = decode_image,
) -> ImageRecord:
    """
    Decode and hash a single image.

    Args:
        entry: Candidate file from the crawler
        parameters: Search parameters
        decoder: Callable(path) -> PIL image, raising DecodeError

    Returns:
        Immutable ImageRecord

    Raises:
        DecodeError: If the image cannot be decoded or hashed
    """
    image = decoder(entry.path)

    try:
        width, height = image.size
        if width == 0 or height == 0:
            raise DecodeError(entry.path, "Image has no pixels")
        variants = compute_hash_variants(image, parameters)
    except DecodeError:
        raise
    except Exception as e:
        raise DecodeError(entry.path, f"Hash calculation failed: {e}") from e
    finally:
        image.close()

    return ImageRecord(
        path=entry.path,
        size_bytes=entry.size_bytes,
        modified_time=entry.modified_time,
        width=width,
        height=height,
        hash_variants=variants,
    )


__all__ = ['analyze_image']
