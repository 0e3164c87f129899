"""Process command: fetch, cache and link every video listed in the input file."""
from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Callable, Optional

from ..errors import ConfigurationError
from ..utils.urls import InputFileError, read_input_file
from .cli_utils import EXIT_FAILURE, EXIT_SUCCESS, EXIT_VALIDATION
from .container import Services


class ProcessCommand:
    """Handle the process subcommand (the default action).

    The project directory is the current working directory; links land in
    ``<cwd>/transcripts/``.
    """

    name = "process"

    def __init__(self, services: Services, cwd: Optional[Callable[[], str]] = None):
        self.services = services
        self._cwd = cwd or os.getcwd
        self.logger = services.log_context.get_logger(__name__)

    def run(self, args: argparse.Namespace) -> int:
        """Run the pipeline.

        Returns:
            0 when every item succeeded, 1 on any failed item or runtime
            error, 2 when the input file is missing or invalid
        """
        console = self.services.console
        project_dir = Path(self._cwd())
        input_file = getattr(args, "input_file", None) or self.services.config.input_file

        try:
            video_ids = read_input_file(project_dir, input_file)
        except InputFileError as e:
            console.print_error(str(e))
            return EXIT_VALIDATION

        if not video_ids:
            console.print_error(f"No valid YouTube URLs found in {input_file}")
            return EXIT_VALIDATION

        try:
            service = self.services.transcript_service()
        except ConfigurationError as e:
            console.print_error(str(e))
            return EXIT_FAILURE

        self.logger.debug(f"Processing {len(video_ids)} video(s) into {project_dir}")
        with console.batch():
            summary = service.process_batch(video_ids, project_dir, sink=console)

        if summary.failed:
            self.logger.warning(f"{summary.failed} of {summary.total} video(s) failed")
            return EXIT_FAILURE
        return EXIT_SUCCESS
