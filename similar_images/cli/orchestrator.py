"""
CLI workflow orchestration for Similar Images.

Provides the CLIOrchestrator class that coordinates the CLI workflow from
argument parsing through final reporting.
"""

from __future__ import annotations

import logging
import signal
import sqlite3
import threading
import time
from typing import Optional

from ..database import get_cache
from ..errors import ConfigError
from ..params import Parameters
from ..scanner import collect_candidates, find_image_files, search
from ..user_config import get_user_config
from ..utils.exporters import export_results
from ..utils.formatters import format_duration, format_rate
from .arg_parser import parse_arguments
from .reporting import print_similarity_report

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the CLI.

    Args:
        verbose: Enable verbose (DEBUG level) logging

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger(__name__)


class CLIOrchestrator:
    """
    Orchestrates the CLI workflow.

    Phases: parse arguments, validate them into Parameters, discover files,
    run the search (Ctrl+C cancels it), report and export.
    """

    def __init__(self, argv: Optional[list] = None):
        self.argv = argv
        self.logger = None
        self.args = None
        self.parameters = None
        self.cancel_event = threading.Event()
        self.entries = []
        self.failures = []
        self.info = None
        self.groups = []

    def run(self) -> int:
        """
        Execute the complete CLI workflow.

        Returns:
            Exit code: 0 for success, 1 for invalid input or config,
            130 if the search was cancelled
        """
        exit_code = self._setup_phase()
        if exit_code != EXIT_OK:
            return exit_code

        exit_code = self._validate_phase()
        if exit_code != EXIT_OK:
            return exit_code

        self._configure_phase()

        exit_code = self._scan_phase()
        if exit_code != EXIT_OK:
            return exit_code

        self._search_phase()
        self._report_phase()

        return EXIT_CANCELLED if self.info.cancelled else EXIT_OK

    def _setup_phase(self) -> int:
        """Parse arguments and setup logging."""
        self.args = parse_arguments(self.argv)
        self.logger = setup_logging(self.args.verbose)
        return EXIT_OK

    def _validate_phase(self) -> int:
        """Check the directory and build Parameters, merging user config defaults."""
        if not self.args.directory.is_dir():
            self.logger.error(f"Directory not found: {self.args.directory}")
            return EXIT_ERROR

        config = get_user_config()

        def pick(value, default):
            return default if value is None else value

        try:
            self.parameters = Parameters.create(
                similarity_threshold=pick(self.args.threshold, config.default_threshold),
                hash_size=pick(self.args.hash_size, config.default_hash_size),
                hash_algorithm=pick(self.args.algorithm, config.default_algorithm),
                resize_filter=pick(self.args.resize_filter, config.default_filter),
                exclude_same_size=self.args.exclude_same_size,
                geometric_invariance=pick(self.args.invariance, config.default_invariance),
            )
        except ConfigError as e:
            self.logger.error(f"Invalid configuration: {e}")
            return EXIT_ERROR

        self.workers = pick(self.args.workers, config.default_workers)
        if not isinstance(self.workers, int) or self.workers < 1:
            self.logger.error(f"Invalid worker count: {self.workers}")
            return EXIT_ERROR

        return EXIT_OK

    def _configure_phase(self) -> None:
        """Configure cache, LSH mode and progress display."""
        config = get_user_config()

        self.use_cache = not self.args.no_cache
        if self.args.no_cache:
            self.logger.info("Cache disabled - hashing all images fresh")
        else:
            try:
                cache = get_cache()
                if self.args.clear_cache:
                    cache.clear()
                    self.logger.info("Cache cleared")
                removed = cache.cleanup_stale(config.cache_max_age_days)
            except (sqlite3.Error, OSError) as e:
                self.logger.warning(f"Hash cache unavailable, hashing all images fresh: {e}")
                self.use_cache = False
            else:
                if removed:
                    self.logger.info(f"Removed {removed:,} stale cache entries")

        # Auto-select by default
        self.use_lsh = None
        if self.args.force_lsh:
            self.use_lsh = True
            self.logger.info("Bucketed comparison forced on")
        elif self.args.no_lsh:
            self.use_lsh = False
            self.logger.info("Bucketed comparison disabled (brute-force mode)")

        self.lsh_auto_threshold = config.lsh_auto_threshold
        self.show_progress = not self.args.no_progress

    def _scan_phase(self) -> int:
        """Discover image files."""
        self.logger.info(f"Scanning {self.args.directory} for images...")

        recursive = not self.args.no_recursive
        image_files = find_image_files(self.args.directory, recursive=recursive)
        self.entries, self.failures = collect_candidates(image_files)

        self.logger.info(f"Found {len(self.entries):,} image files")
        return EXIT_OK

    def _handle_interrupt(self, signum, frame) -> None:
        if self.cancel_event.is_set():
            raise KeyboardInterrupt
        self.logger.warning("Cancelling... (press Ctrl+C again to abort immediately)")
        self.cancel_event.set()

    def _search_phase(self) -> None:
        """Run the search; the first Ctrl+C requests cancellation."""
        previous_handler = signal.signal(signal.SIGINT, self._handle_interrupt)
        started = time.monotonic()
        try:
            self.info, self.groups = search(
                self.parameters,
                self.entries,
                cancel_event=self.cancel_event,
                use_cache=self.use_cache,
                max_workers=self.workers,
                use_lsh=self.use_lsh,
                lsh_auto_threshold=self.lsh_auto_threshold,
                show_progress=self.show_progress,
                logger=self.logger,
            )
        finally:
            signal.signal(signal.SIGINT, previous_handler)

        elapsed = time.monotonic() - started
        self.logger.info(
            f"Search finished in {format_duration(elapsed)} "
            f"({format_rate(self.info.initial_found_files, elapsed)})"
        )

        # Files that could not even be stat'ed count as skipped too
        if self.failures:
            self.info.skipped_files += len(self.failures)
            self.info.errors = sorted(self.info.errors + [str(f) for f in self.failures])

    def _report_phase(self) -> None:
        """Display the report and handle exports."""
        print_similarity_report(self.info, self.groups)

        if self.args.export:
            try:
                export_results(self.info, self.groups, self.args.export, self.args.export_format)
            except OSError as e:
                self.logger.error(f"Export failed: {e}")
            else:
                self.logger.info(f"Results exported to: {self.args.export}")


__all__ = ['CLIOrchestrator', 'setup_logging', 'EXIT_OK', 'EXIT_ERROR', 'EXIT_CANCELLED']
