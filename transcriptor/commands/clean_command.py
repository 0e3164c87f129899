"""Clean command: delete transcripts by cutoff date or by ID."""
from __future__ import annotations

import argparse

from ..errors import InvalidVideoIdError
from .cli_utils import EXIT_FAILURE, EXIT_SUCCESS, EXIT_VALIDATION
from .container import Services

USAGE_HINT = "Usage: transcriptor clean YYYY-MM-DD  (e.g. transcriptor clean 2025-11-01)"


class CleanCommand:
    """Handle the clean subcommand.

    ``clean DATE`` removes entries added strictly before DATE. ``clean --id``
    removes the named entries. Each deleted entry loses its blob and every
    project link.
    """

    name = "clean"

    def __init__(self, services: Services):
        self.services = services
        self.logger = services.log_context.get_logger(__name__)

    def run(self, args: argparse.Namespace) -> int:
        console = self.services.console
        cutoff = getattr(args, "date", None)
        video_ids = getattr(args, "video_ids", None)

        if cutoff and video_ids:
            console.print_error("Give either a cutoff date or --id, not both")
            return EXIT_VALIDATION
        if not cutoff and not video_ids:
            console.print_error(f"Date argument required. {USAGE_HINT}")
            return EXIT_VALIDATION

        cleanup = self.services.cleanup
        self.services.registry_store.initialize()

        if cutoff:
            try:
                future = cleanup.is_future_cutoff(cutoff)
            except ValueError as e:
                console.print_error(str(e))
                return EXIT_VALIDATION
            if future:
                self.logger.warning(f"Cutoff date {cutoff} is in the future; all entries before it match")
            self.logger.info(f"Removing transcripts added before {cutoff}")
            result = cleanup.clean_before(cutoff)
        else:
            try:
                result = cleanup.clean_ids(video_ids)
            except InvalidVideoIdError as e:
                console.print_error(str(e))
                return EXIT_VALIDATION

        if result.deleted == 0 and result.failed == 0:
            self.logger.info("No transcripts matched")

        console.print_cleanup(result)
        return EXIT_FAILURE if result.failed else EXIT_SUCCESS
