"""Command modules for the CLI.

``COMMANDS`` is the static dispatch table: subcommand name to command class.
Every class takes the service container in its constructor and exposes
``run(args) -> int``.
"""

from .clean_command import CleanCommand
from .cli_utils import EXIT_FAILURE, EXIT_SUCCESS, EXIT_VALIDATION, __version__, create_parser
from .container import Services, build_services
from .data_command import DataCommand
from .process_command import ProcessCommand

COMMANDS = {
    ProcessCommand.name: ProcessCommand,
    DataCommand.name: DataCommand,
    CleanCommand.name: CleanCommand,
}

__all__ = [
    "COMMANDS",
    "CleanCommand",
    "DataCommand",
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION",
    "ProcessCommand",
    "Services",
    "__version__",
    "build_services",
    "create_parser",
]
