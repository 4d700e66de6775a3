"""
Argument parsing for the CLI interface.

Provides functions to create and configure the argument parser for the
similar images command-line interface.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from ..config import ALLOWED_HASH_SIZES
from ..params import GeometricInvariance, HashAlgorithm, ResizeFilter
from ..utils.exporters import EXPORT_FORMATS


def _choices(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Options left unset (None) fall back to the user configuration.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='similar-images',
        description='Find groups of visually similar images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s /path/to/photos
      Report groups of similar images

  %(prog)s /path/to/photos --threshold 0 --invariance mirror_flip
      Near-identical images only, also matching mirrored copies

  %(prog)s /path/to/photos -a blockhash --hash-size 16 --exclude-same-size
      Finer hash; only link images whose file sizes differ

  %(prog)s /path/to/photos --export results.json --export-format json
      Export results to JSON for external review
        """
    )

    parser.add_argument(
        'directory',
        type=Path,
        help='Directory to scan for images'
    )

    # Search parameters
    parser.add_argument(
        '-t', '--threshold',
        type=int,
        default=None,
        help='Maximum hash distance for two images to be similar (lower=stricter)'
    )

    parser.add_argument(
        '--hash-size',
        type=int,
        choices=ALLOWED_HASH_SIZES,
        default=None,
        help='Hash size (bits per side)'
    )

    parser.add_argument(
        '-a', '--algorithm',
        choices=_choices(HashAlgorithm),
        default=None,
        help='Perceptual hash algorithm'
    )

    parser.add_argument(
        '-f', '--filter',
        dest='resize_filter',
        choices=_choices(ResizeFilter),
        default=None,
        help='Resize filter used before hashing'
    )

    parser.add_argument(
        '-i', '--invariance',
        choices=_choices(GeometricInvariance),
        default=None,
        help='Match mirrored/flipped (and rotated) copies'
    )

    parser.add_argument(
        '--exclude-same-size',
        action='store_true',
        help='Never link two images with identical file sizes'
    )

    parser.add_argument(
        '-r', '--no-recursive',
        action='store_true',
        help='Do not scan subdirectories'
    )

    # Caching
    parser.add_argument(
        '--no-cache',
        action='store_true',
        help='Disable SQLite caching (hash all images fresh)'
    )

    parser.add_argument(
        '--clear-cache',
        action='store_true',
        help='Clear the hash cache before scanning'
    )

    # LSH control (mutually exclusive)
    lsh_group = parser.add_mutually_exclusive_group()
    lsh_group.add_argument(
        '--lsh',
        action='store_true',
        dest='force_lsh',
        help='Force bucketed comparison on'
    )
    lsh_group.add_argument(
        '--no-lsh',
        action='store_true',
        dest='no_lsh',
        help='Force brute-force comparison'
    )

    # Performance options
    parser.add_argument(
        '-w', '--workers',
        type=int,
        default=None,
        help='Number of parallel hashing workers'
    )

    # Export options
    parser.add_argument(
        '-e', '--export',
        type=Path,
        help='Export results to file'
    )

    parser.add_argument(
        '--export-format',
        choices=EXPORT_FORMATS,
        default='txt',
        help='Export format. Default: txt'
    )

    # Output options
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars (useful for piping output)'
    )

    return parser


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: List of argument strings (default: sys.argv)

    Examples:
        >>> args = parse_arguments(['/path/to/photos', '--threshold', '5'])
        >>> args.threshold
        5
    """
    parser = create_parser()
    return parser.parse_args(argv)


__all__ = [
    'create_parser',
    'parse_arguments',
]
