"""Logging context shared by every component of a run.

A single ``LogContext`` is built in ``cli.main`` from the verbosity flags and
handed to each component constructor. Components obtain their module logger
through it, so verbosity is decided once at process start and never mutated
while a run is in progress.

Usage:
    log_context = LogContext(level=LogLevel.VERBOSE)
    logger = log_context.get_logger(__name__)
    logger.debug("Registry loaded")
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "transcriptor"


class LogLevel(Enum):
    """Verbosity levels exposed on the command line."""

    QUIET = "quiet"  # errors only
    NORMAL = "normal"
    VERBOSE = "verbose"

    @property
    def logging_level(self) -> int:
        """Map the verbosity level to a standard logging level."""
        return {
            LogLevel.QUIET: logging.ERROR,
            LogLevel.NORMAL: logging.INFO,
            LogLevel.VERBOSE: logging.DEBUG,
        }[self]

    @classmethod
    def from_flags(cls, quiet: bool = False, verbose: bool = False) -> "LogLevel":
        """Resolve the level from the mutually exclusive CLI flags.

        Args:
            quiet: ``--quiet`` was given
            verbose: ``--verbose`` was given

        Returns:
            Matching LogLevel

        Raises:
            ValueError: If both flags are set
        """
        if quiet and verbose:
            raise ValueError("--quiet and --verbose are mutually exclusive")
        if quiet:
            return cls.QUIET
        if verbose:
            return cls.VERBOSE
        return cls.NORMAL

    @classmethod
    def from_name(cls, name: Optional[str]) -> "LogLevel":
        """Resolve a level from a ``LOG_LEVEL`` style string (DEBUG, INFO, ERROR...)."""
        if not name:
            return cls.NORMAL
        normalized = name.strip().upper()
        if normalized in ("DEBUG", "VERBOSE"):
            return cls.VERBOSE
        if normalized in ("ERROR", "CRITICAL", "QUIET"):
            return cls.QUIET
        return cls.NORMAL


@dataclass(frozen=True)
class LogContext:
    """Read-only logging configuration for one invocation.

    Attributes:
        level: Verbosity level for the run
        json_output: Whether console output is machine-readable JSON
        log_file: Optional file that receives a copy of every record
    """

    level: LogLevel = LogLevel.NORMAL
    json_output: bool = False
    log_file: Optional[Path] = None

    @property
    def is_verbose(self) -> bool:
        return self.level is LogLevel.VERBOSE

    @property
    def is_quiet(self) -> bool:
        return self.level is LogLevel.QUIET

    def get_logger(self, name: str) -> logging.Logger:
        """Get the logger for a module.

        Module names outside the ``transcriptor`` namespace (tests, scripts)
        are nested under it so the handler installed by the console applies.

        Args:
            name: Module name, typically ``__name__``

        Returns:
            Logger instance
        """
        if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
            name = f"{ROOT_LOGGER_NAME}.{name}"
        return logging.getLogger(name)

    def configure(self, handler: Optional[logging.Handler] = None) -> logging.Logger:
        """Attach handlers to the package root logger and set its level.

        Args:
            handler: Console handler to install (Rich or plain stream handler)

        Returns:
            The configured package root logger
        """
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(self.level.logging_level)

        if handler is not None:
            # A new run replaces the console handler of the previous one
            for existing in [h for h in root.handlers if type(h) is type(handler)]:
                root.removeHandler(existing)
            root.addHandler(handler)

        if self.log_file is not None:
            for existing in [h for h in root.handlers if isinstance(h, logging.FileHandler)]:
                root.removeHandler(existing)
                existing.close()
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file, encoding="utf-8")
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            root.addHandler(file_handler)

        # Keep records out of the root logger so they are not printed twice
        root.propagate = False
        return root


DEFAULT_LOG_CONTEXT = LogContext()
