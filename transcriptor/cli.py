"""Command-line entry point.

Builds the configuration, the run's ``LogContext`` and the service
container once, constructs every command eagerly and dispatches to the one
selected on the command line.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional

from .commands import COMMANDS, EXIT_FAILURE, Services, build_services, create_parser
from .config import TranscriptorConfig
from .errors import ConfigurationError, StorageError
from .services import Fetcher
from .ui.console import ConsoleManager
from .utils.logging_factory import LogContext, LogLevel


def build_log_context(args, config: TranscriptorConfig) -> LogContext:
    """Resolve verbosity from the flags, falling back to ``LOG_LEVEL``."""
    if args.quiet or args.verbose:
        level = LogLevel.from_flags(quiet=args.quiet, verbose=args.verbose)
    else:
        level = LogLevel.from_name(config.log_level)
    log_file = Path(config.log_file).expanduser() if config.log_file else None
    return LogContext(level=level, json_output=args.json_output, log_file=log_file)


def build_commands(services: Services) -> Dict[str, object]:
    return {name: command_cls(services) for name, command_cls in COMMANDS.items()}


def main(argv: Optional[List[str]] = None, fetcher: Optional[Fetcher] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Arguments (defaults to ``sys.argv[1:]``)
        fetcher: Fetch collaborator override, mainly for tests

    Returns:
        Exit code (0 success, 1 runtime or partial failure, 2 validation failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = TranscriptorConfig.from_environment()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    log_context = build_log_context(args, config)
    console = ConsoleManager(log_context, no_color=config.no_color, show_progress=config.show_progress)
    logger = console.setup_logging().getChild("cli")

    services: Optional[Services] = None
    try:
        services = build_services(config, log_context, console, fetcher=fetcher)
        commands = build_commands(services)
        logger.debug(f"Running command '{args.command}' with root {services.registry_store.paths.root}")
        return commands[args.command].run(args)
    except (ConfigurationError, StorageError) as e:
        console.print_error(str(e))
        if isinstance(e, StorageError) and e.path:
            logger.error(f"Check permissions and contents of {e.path}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.error("Operation cancelled by user")
        return EXIT_FAILURE
    finally:
        if services is not None:
            services.close()


if __name__ == "__main__":
    sys.exit(main())
