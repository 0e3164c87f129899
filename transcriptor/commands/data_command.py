"""Data command: registry statistics."""
from __future__ import annotations

import argparse

from ..cache import calculate_statistics
from .cli_utils import EXIT_SUCCESS
from .container import Services


class DataCommand:
    """Handle the data subcommand.

    Reads registry metadata and blob file sizes only; transcript contents
    are never loaded.
    """

    name = "data"

    def __init__(self, services: Services):
        self.services = services
        self.logger = services.log_context.get_logger(__name__)

    def run(self, args: argparse.Namespace) -> int:
        store = self.services.registry_store
        store.initialize()

        self.logger.debug("Using cached metadata for statistics calculation")
        stats = calculate_statistics(store, self.services.blob_store)

        store_stats = store.stats() if self.services.log_context.is_verbose else None
        self.services.console.print_statistics(stats, store_stats)
        return EXIT_SUCCESS
