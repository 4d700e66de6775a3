"""
Search parameters for Similar Images.

Parameters are immutable for the duration of a run. Enum-valued settings
accept either the enum member or its string value, so they can come
straight from a CLI flag or a config file.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .config import (
    ALLOWED_HASH_SIZES,
    DEFAULT_GEOMETRIC_INVARIANCE,
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_HASH_SIZE,
    DEFAULT_RESIZE_FILTER,
    DEFAULT_THRESHOLD,
)
from .errors import ConfigError


class HashAlgorithm(str, Enum):
    """Bit-extraction rule applied to the resized luminance image."""
    GRADIENT = 'gradient'
    DOUBLE_GRADIENT = 'double_gradient'
    VERT_GRADIENT = 'vert_gradient'
    BLOCKHASH = 'blockhash'
    MEAN = 'mean'


class ResizeFilter(str, Enum):
    """Resampling used to reach the algorithm's working resolution."""
    LANCZOS3 = 'lanczos3'
    GAUSSIAN = 'gaussian'
    NEAREST = 'nearest'


class GeometricInvariance(str, Enum):
    """Which transformed copies of each image are hashed and compared."""
    OFF = 'off'
    MIRROR_FLIP = 'mirror_flip'
    MIRROR_FLIP_ROTATE90 = 'mirror_flip_rotate90'


def _coerce(enum_cls, value: Any, what: str):
    """Convert a member or a loosely spelled string into an enum member."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower().replace('-', '_')
        try:
            return enum_cls(normalized)
        except ValueError:
            pass
    choices = ', '.join(member.value for member in enum_cls)
    raise ConfigError(f"Unknown {what} {value!r}. Choose one of: {choices}")


@dataclass(frozen=True)
class Parameters:
    """
    Settings for one similar-image search.

    Attributes:
        similarity_threshold: Maximum hash distance for two images to be
            linked. 0 links only identical hashes.
        hash_size: Hash resolution (8, 16, 32 or 64)
        hash_algorithm: Bit-extraction rule
        resize_filter: Resampling filter used before extraction
        exclude_same_size: Never link two files of identical byte size
        geometric_invariance: Mirror/rotation variants to compare
    """
    similarity_threshold: int = DEFAULT_THRESHOLD
    hash_size: int = DEFAULT_HASH_SIZE
    hash_algorithm: HashAlgorithm = HashAlgorithm(DEFAULT_HASH_ALGORITHM)
    resize_filter: ResizeFilter = ResizeFilter(DEFAULT_RESIZE_FILTER)
    exclude_same_size: bool = False
    geometric_invariance: GeometricInvariance = GeometricInvariance(DEFAULT_GEOMETRIC_INVARIANCE)

    @classmethod
    def create(
        cls,
        similarity_threshold: int = DEFAULT_THRESHOLD,
        hash_size: int = DEFAULT_HASH_SIZE,
        hash_algorithm: Union[HashAlgorithm, str] = DEFAULT_HASH_ALGORITHM,
        resize_filter: Union[ResizeFilter, str] = DEFAULT_RESIZE_FILTER,
        exclude_same_size: bool = False,
        geometric_invariance: Union[GeometricInvariance, str] = DEFAULT_GEOMETRIC_INVARIANCE,
    ) -> 'Parameters':
        """
        Build validated parameters, converting string values to enums.

        Raises:
            ConfigError: If any value is unknown or out of range
        """
        params = cls(
            similarity_threshold=similarity_threshold,
            hash_size=hash_size,
            hash_algorithm=_coerce(HashAlgorithm, hash_algorithm, 'hash algorithm'),
            resize_filter=_coerce(ResizeFilter, resize_filter, 'resize filter'),
            exclude_same_size=bool(exclude_same_size),
            geometric_invariance=_coerce(
                GeometricInvariance, geometric_invariance, 'geometric invariance'
            ),
        )
        params.validate()
        return params

    def validate(self) -> None:
        """
        Check every field.

        Raises:
            ConfigError: On the first invalid field
        """
        threshold = self.similarity_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, int):
            raise ConfigError(f"Similarity threshold must be an integer, got {threshold!r}")
        if threshold < 0:
            raise ConfigError(f"Similarity threshold must be >= 0, got {threshold}")

        if isinstance(self.hash_size, bool) or self.hash_size not in ALLOWED_HASH_SIZES:
            allowed = ', '.join(str(s) for s in ALLOWED_HASH_SIZES)
            raise ConfigError(f"Hash size must be one of {allowed}, got {self.hash_size!r}")

        if not isinstance(self.hash_algorithm, HashAlgorithm):
            raise ConfigError(f"Unknown hash algorithm {self.hash_algorithm!r}")
        if not isinstance(self.resize_filter, ResizeFilter):
            raise ConfigError(f"Unknown resize filter {self.resize_filter!r}")
        if not isinstance(self.geometric_invariance, GeometricInvariance):
            raise ConfigError(f"Unknown geometric invariance {self.geometric_invariance!r}")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'similarity_threshold': self.similarity_threshold,
            'hash_size': self.hash_size,
            'hash_algorithm': self.hash_algorithm.value,
            'resize_filter': self.resize_filter.value,
            'exclude_same_size': self.exclude_same_size,
            'geometric_invariance': self.geometric_invariance.value,
        }


__all__ = [
    'HashAlgorithm',
    'ResizeFilter',
    'GeometricInvariance',
    'Parameters',
]
