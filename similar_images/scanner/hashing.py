"""
Hashing module for the scanner package.

Computes perceptual hashes of decoded images. Every algorithm follows the
same three steps: convert to luminance, resize to the algorithm's working
resolution with the configured filter, then extract bits with the
algorithm's rule. Geometric invariance is handled by hashing a fixed set
of transposed copies of the image.

Hashes are imagehash.ImageHash objects, so `a - b` is the Hamming
distance. The number of bits (and therefore the useful threshold range)
depends on the algorithm and hash size, see hash_bit_count().
"""

from __future__ import annotations

from typing import Callable, Optional

from ..config import BLOCKHASH_BANDS, BLOCKHASH_CELL
from ..models import HashVariant
from ..params import GeometricInvariance, HashAlgorithm, Parameters, ResizeFilter
from .dependencies import Image, ImageFilter, imagehash, np


# Transform name -> Pillow transpose operation (None = identity).
# All of these are exact pixel permutations.
TRANSFORMS: dict[str, Optional[Image.Transpose]] = {
    'original': None,
    'rotate90': Image.Transpose.ROTATE_90,
    'rotate180': Image.Transpose.ROTATE_180,
    'rotate270': Image.Transpose.ROTATE_270,
    'mirror': Image.Transpose.FLIP_LEFT_RIGHT,
    'flip': Image.Transpose.FLIP_TOP_BOTTOM,
    'transpose': Image.Transpose.TRANSPOSE,
    'transverse': Image.Transpose.TRANSVERSE,
}

# Variant sets per invariance mode; order is the order of hash_variants
VARIANT_TRANSFORMS: dict[GeometricInvariance, tuple[str, ...]] = {
    GeometricInvariance.OFF: ('original',),
    GeometricInvariance.MIRROR_FLIP: ('original', 'mirror'),
    GeometricInvariance.MIRROR_FLIP_ROTATE90: tuple(TRANSFORMS),
}

_PIL_FILTERS = {
    ResizeFilter.LANCZOS3: Image.Resampling.LANCZOS,
    ResizeFilter.NEAREST: Image.Resampling.NEAREST,
}


def working_size(algorithm: HashAlgorithm, hash_size: int) -> tuple[int, int]:
    """
    Resolution (width, height) an image is resized to before extraction.

    Args:
        algorithm: Hash algorithm
        hash_size: Configured hash size

    Returns:
        Tuple of (width, height)
    """
    if algorithm is HashAlgorithm.GRADIENT:
        return hash_size + 1, hash_size
    if algorithm is HashAlgorithm.VERT_GRADIENT:
        return hash_size, hash_size + 1
    if algorithm is HashAlgorithm.DOUBLE_GRADIENT:
        half = hash_size // 2
        return half + 1, half + 1
    if algorithm is HashAlgorithm.BLOCKHASH:
        side = hash_size * BLOCKHASH_CELL
        return side, side
    return hash_size, hash_size


def hash_bit_count(algorithm: HashAlgorithm, hash_size: int) -> int:
    """Number of bits in a hash, i.e. the largest possible distance."""
    if algorithm is HashAlgorithm.DOUBLE_GRADIENT:
        return 2 * (hash_size // 2) ** 2
    return hash_size * hash_size


def _mean_bits(pixels: np.ndarray, hash_size: int) -> np.ndarray:
    return pixels > pixels.mean()


def _gradient_bits(pixels: np.ndarray, hash_size: int) -> np.ndarray:
    # Brightness increases to the right
    return pixels[:, 1:] > pixels[:, :-1]


def _vert_gradient_bits(pixels: np.ndarray, hash_size: int) -> np.ndarray:
    # Brightness increases downwards
    return pixels[1:, :] > pixels[:-1, :]


def _double_gradient_bits(pixels: np.ndarray, hash_size: int) -> np.ndarray:
    half = hash_size // 2
    rows = pixels[:half, 1:] > pixels[:half, :-1]
    cols = pixels[1:, :half] > pixels[:-1, :half]
    return np.vstack([rows, cols])


def _blockhash_bits(pixels: np.ndarray, hash_size: int) -> np.ndarray:
    cell = BLOCKHASH_CELL
    blocks = pixels.reshape(hash_size, cell, hash_size, cell).sum(axis=(1, 3))
    # Each block is compared against the median of its horizontal band
    bands = np.array_split(blocks, min(BLOCKHASH_BANDS, hash_size), axis=0)
    return np.vstack([band > np.median(band) for band in bands])


_EXTRACTORS: dict[HashAlgorithm, Callable[[np.ndarray, int], np.ndarray]] = {
    HashAlgorithm.MEAN: _mean_bits,
    HashAlgorithm.GRADIENT: _gradient_bits,
    HashAlgorithm.VERT_GRADIENT: _vert_gradient_bits,
    HashAlgorithm.DOUBLE_GRADIENT: _double_gradient_bits,
    HashAlgorithm.BLOCKHASH: _blockhash_bits,
}


def resize_luma(gray: "Image.Image", size: tuple[int, int], resize_filter: ResizeFilter) -> np.ndarray:
    """
    Resize a luminance image and return its pixels as a float array.

    Args:
        gray: Image in 'L' mode
        size: Target (width, height)
        resize_filter: Filter to resample with

    Returns:
        Array of shape (height, width)
    """
    if resize_filter is ResizeFilter.GAUSSIAN:
        # Blur proportionally to the reduction, then average down
        scale = max(gray.width / size[0], gray.height / size[1])
        if scale > 1:
            gray = gray.filter(ImageFilter.GaussianBlur(radius=scale / 2))
        resized = gray.resize(size, Image.Resampling.BOX)
    else:
        resized = gray.resize(size, _PIL_FILTERS[resize_filter])
    return np.asarray(resized, dtype=np.float64)


def extract_hash(
    gray: "Image.Image",
    algorithm: HashAlgorithm,
    hash_size: int,
    resize_filter: ResizeFilter,
) -> "imagehash.ImageHash":
    """
    Compute one perceptual hash of a luminance image.

    Args:
        gray: Image in 'L' mode
        algorithm: Bit-extraction rule
        hash_size: Hash resolution
        resize_filter: Resampling filter

    Returns:
        imagehash.ImageHash wrapping a 2-D boolean array
    """
    pixels = resize_luma(gray, working_size(algorithm, hash_size), resize_filter)
    bits = _EXTRACTORS[algorithm](pixels, hash_size)
    return imagehash.ImageHash(np.asarray(bits, dtype=bool))


def apply_transform(image: "Image.Image", transform: str) -> "Image.Image":
    """Apply a named transform from TRANSFORMS."""
    operation = TRANSFORMS[transform]
    if operation is None:
        return image
    return image.transpose(operation)


def compute_hash_variants(image: "Image.Image", parameters: Parameters) -> tuple[HashVariant, ...]:
    """
    Hash an image once per variant required by the invariance mode.

    Off gives one hash, MirrorFlip two, MirrorFlipRotate90 all eight
    symmetries of the square.

    Args:
        image: Decoded image
        parameters: Search parameters

    Returns:
        Tuple of HashVariant in VARIANT_TRANSFORMS order
    """
    gray = image if image.mode == 'L' else image.convert('L')
    return tuple(
        HashVariant(
            transform,
            extract_hash(
                apply_transform(gray, transform),
                parameters.hash_algorithm,
                parameters.hash_size,
                parameters.resize_filter,
            ),
        )
        for transform in VARIANT_TRANSFORMS[parameters.geometric_invariance]
    )


def hash_distance(first: "imagehash.ImageHash", second: "imagehash.ImageHash") -> int:
    """Hamming distance between two hashes of the same configuration."""
    return int(first - second)


def packed_bits(phash: "imagehash.ImageHash") -> np.ndarray:
    """Hash bits packed 8 per byte (uint8 array)."""
    return np.packbits(phash.hash.flatten())


def hash_to_hex(phash: "imagehash.ImageHash") -> str:
    """Serialize hash bits as hex of the packed bit array."""
    return packed_bits(phash).tobytes().hex()


def hex_to_hash(bits_hex: str, shape: tuple[int, int]) -> "imagehash.ImageHash":
    """
    Inverse of hash_to_hex.

    Args:
        bits_hex: Hex string from hash_to_hex
        shape: (rows, cols) of the original bit array

    Raises:
        ValueError: If the hex string does not match the shape
    """
    rows, cols = shape
    packed = np.frombuffer(bytes.fromhex(bits_hex), dtype=np.uint8)
    if packed.size != (rows * cols + 7) // 8:
        raise ValueError(f"Hash of {packed.size} bytes does not fit shape {rows}x{cols}")
    bits = np.unpackbits(packed)[:rows * cols]
    return imagehash.ImageHash(bits.reshape(rows, cols).astype(bool))


__all__ = [
    'TRANSFORMS',
    'VARIANT_TRANSFORMS',
    'working_size',
    'hash_bit_count',
    'resize_luma',
    'extract_hash',
    'apply_transform',
    'compute_hash_variants',
    'hash_distance',
    'packed_bits',
    'hash_to_hex',
    'hex_to_hash',
]
