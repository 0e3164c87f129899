"""Shared CLI utilities and argument parser."""
from __future__ import annotations

import argparse

from .. import __version__

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_VALIDATION = 2


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="transcriptor",
        description="YouTube transcript extraction and management tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Fetch transcripts for every URL in ./youtube.md and link them into ./transcripts/
  transcriptor

  # Same, reading URLs from another file in the current directory
  transcriptor process --input-file videos.md

  # Show registry statistics
  transcriptor data

  # Remove transcripts added before November 1st, 2025
  transcriptor clean 2025-11-01

  # Remove specific transcripts
  transcriptor clean --id dQw4w9WgXcQ --id jNQXAC9IVRw

Environment:
  SCRAPE_CREATORS_API_KEY  API key for the transcript service (required by process)
  TRANSCRIPTOR_HOME        Central storage root (default: ~/.transcriptor)
  LOG_LEVEL                DEBUG, INFO or ERROR when no verbosity flag is given
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Show detailed operation logs")
    verbosity.add_argument(
        "--quiet", "-q", action="store_true", help="Suppress all output except errors"
    )
    parser.add_argument(
        "--json-output",
        action="store_true",
        help="Emit machine-readable JSON events to stderr and results to stdout",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    # No subcommand means process
    parser.set_defaults(command="process", input_file=None)

    # Process subcommand (default)
    process_parser = subparsers.add_parser(
        "process",
        help="Fetch transcripts for the URLs in the input file and link them (default)",
        description=(
            "Read YouTube URLs from the input file in the current directory, fetch missing "
            "transcripts into the central cache, and link each one into ./transcripts/"
        ),
    )
    process_parser.add_argument(
        "--input-file",
        "-i",
        help="Input file name inside the current directory (default: youtube.md)",
    )

    # Data subcommand
    subparsers.add_parser(
        "data",
        help="Display registry statistics",
        description="Show totals, size and date range of cached transcripts",
    )

    # Clean subcommand
    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove transcripts older than a date, or by ID",
        description=(
            "Delete cached transcripts added before DATE (exclusive), or the ones named "
            "with --id, together with every project link that points at them"
        ),
    )
    clean_parser.add_argument("date", nargs="?", help="Cutoff date in YYYY-MM-DD format")
    clean_parser.add_argument(
        "--id",
        dest="video_ids",
        action="append",
        metavar="VIDEO_ID",
        help="Video ID to delete (repeatable)",
    )

    return parser
