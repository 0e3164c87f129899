"""Console rendering and the pipeline reporting sink."""

from .console import ConsoleManager

__all__ = ["ConsoleManager"]
