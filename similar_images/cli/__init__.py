"""
CLI package for Similar Images.

Provides the command-line interface for finding groups of visually
similar images and exporting the results.

Public API:
- main: Entry point for CLI execution
- CLIOrchestrator: CLI workflow orchestration class
- print_similarity_report: Function to display results report
"""

from __future__ import annotations

from typing import Optional

from .orchestrator import CLIOrchestrator, setup_logging, EXIT_OK, EXIT_ERROR, EXIT_CANCELLED
from .arg_parser import create_parser, parse_arguments
from .reporting import print_similarity_report


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 1 for error, 130 if cancelled)
    """
    orchestrator = CLIOrchestrator(argv)
    return orchestrator.run()


__all__ = [
    # Main entry point
    'main',
    # Core classes
    'CLIOrchestrator',
    # Utilities
    'setup_logging',
    'create_parser',
    'parse_arguments',
    'print_similarity_report',
    'EXIT_OK',
    'EXIT_ERROR',
    'EXIT_CANCELLED',
]
