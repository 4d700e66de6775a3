"""
Exception hierarchy for Similar Images.

Only ConfigError ever escapes a search. DecodeError is collected per file
and CacheError never leaves the cache layer.
"""


class SimilarImagesError(Exception):
    """Base exception for all Similar Images errors."""
    pass


class ConfigError(SimilarImagesError, ValueError):
    """Invalid search parameters. Raised before any work starts."""
    pass


class DecodeError(SimilarImagesError):
    """An image could not be read, decoded or hashed."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class CacheError(SimilarImagesError):
    """A cache entry could not be read or written."""
    pass


__all__ = [
    'SimilarImagesError',
    'ConfigError',
    'DecodeError',
    'CacheError',
]
