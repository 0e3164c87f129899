"""Console management with Rich integration.

This module provides a ConsoleManager that adapts output to:
- Rich-rendered panels, tables and a progress bar when in a TTY
- JSON-only output for machine-readable logs (CI/CD)
- Plain-text fallback for non-TTY environments

The manager also acts as the reporting sink of the processing pipeline.
"""

from __future__ import annotations

import html
import json
import logging
import re
import sys
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..cache.statistics import RegistryStatistics, format_size
from ..models import BatchSummary, CleanupResult, ItemResult, ItemStatus, MaintenanceResult
from ..utils.logging_factory import DEFAULT_LOG_CONTEXT, LogContext

_STATUS_STYLES = {
    ItemStatus.CACHED: ("cached", "cyan"),
    ItemStatus.FETCHED: ("fetched", "green"),
    ItemStatus.FAILED: ("failed", "red"),
}


class ThreadSafeConsole:
    """Thread-safe wrapper around Rich Console."""

    def __init__(self, console: Console):
        self._console = console
        self._lock = threading.RLock()

    @property
    def raw(self) -> Console:
        return self._console

    def print(self, *args, **kwargs):
        """Thread-safe print method."""
        with self._lock:
            self._console.print(*args, **kwargs)


class ConsoleManager:
    """Manages console output with Rich integration."""

    def __init__(
        self,
        log_context: LogContext = DEFAULT_LOG_CONTEXT,
        no_color: bool = False,
        console: Optional[Console] = None,
        show_progress: bool = True,
    ):
        self.log_context = log_context
        self.verbose = log_context.is_verbose
        self.quiet = log_context.is_quiet
        self.json_output = log_context.json_output
        self._json_max_field_length = 200
        self._json_max_nesting_depth = 10
        self.is_tty = sys.stderr.isatty()
        self.show_progress = show_progress

        if self.json_output:
            self.console = None
        else:
            raw_console = console or Console(stderr=True, no_color=no_color)
            self.console = ThreadSafeConsole(raw_console)

        self._progress: Optional[Progress] = None
        self._task_id: Any = None

    def setup_logging(self) -> logging.Logger:
        """Install the Rich handler (or a plain formatter in JSON mode) on the package logger."""
        if self.json_output:
            handler: logging.Handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter("%(message)s"))
        else:
            handler = RichHandler(
                console=self.console.raw if self.console else None,
                show_time=self.verbose,
                show_path=self.verbose,
                rich_tracebacks=True,
            )
        return self.log_context.configure(handler)

    # ------------------------------------------------------------------
    # Reporting sink
    # ------------------------------------------------------------------

    def on_maintenance(self, result: MaintenanceResult) -> None:
        if self.json_output:
            self._emit_event("maintenance", result.to_dict())
            return
        if not result.changed and not result.errors:
            if self.verbose:
                self._print(f"[dim]Registry verified: {result.checked} entries[/dim]")
            return
        lines = [f"Checked {result.checked} entries"]
        if result.orphaned:
            lines.append(f"Removed {result.orphaned} orphaned entries")
        if result.links_removed:
            lines.append(f"Pruned {result.links_removed} stale links")
        if result.links_failed:
            lines.append(f"[red]{result.links_failed} links could not be removed[/red]")
        self._print(Panel("\n".join(lines), title="Maintenance", style="yellow", padding=(0, 1)))

    def on_batch_start(self, total: int) -> None:
        if self.json_output:
            self._emit_event("batch_start", {"total": total})
            return
        if total == 0:
            return
        self._print(f"[bold]Processing {total} video(s)[/bold]")
        if self.show_progress and self.is_tty and self.console is not None and not self.quiet:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                console=self.console.raw,
                transient=True,
            )
            self._progress.start()
            self._task_id = self._progress.add_task("Transcripts", total=total)

    def on_item(self, item: ItemResult, index: int, total: int) -> None:
        if self.json_output:
            self._emit_event("item", item.to_dict())
            return
        label, color = _STATUS_STYLES[item.status]
        prefix = f"[{index}/{total}]"
        if item.status is ItemStatus.FAILED:
            kind = f" ({item.error_kind})" if item.error_kind else ""
            self._print(f"{prefix} [{color}]{label}[/{color}] {item.video_id}{kind}: {item.error}", force=True)
        elif not self.quiet:
            title = item.title or "unknown"
            link = "" if item.linked else " [yellow](not linked)[/yellow]"
            self._print(f"{prefix} [{color}]{label}[/{color}] {item.video_id} {title}{link}")
        if self._progress is not None:
            self._progress.update(self._task_id, advance=1)

    def on_summary(self, summary: BatchSummary) -> None:
        self._stop_progress()
        if self.json_output:
            self._emit_result("summary", summary.to_dict())
            return
        table = Table(title="Processing Summary")
        table.add_column("Total", style="bold")
        table.add_column("Cached", style="cyan")
        table.add_column("Fetched", style="green")
        table.add_column("Linked", style="blue")
        table.add_column("Failed", style="red")
        table.add_row(
            str(summary.total),
            str(summary.cached),
            str(summary.fetched),
            str(summary.linked),
            str(summary.failed),
        )
        self._print(table)

    # ------------------------------------------------------------------
    # Command output
    # ------------------------------------------------------------------

    def print_statistics(self, stats: RegistryStatistics, store_stats: Optional[dict] = None) -> None:
        if self.json_output:
            payload = stats.to_dict()
            if store_stats is not None:
                payload["store"] = store_stats
            self._emit_result("statistics", payload)
            return

        if stats.total == 0:
            self._print("No transcripts in registry", force=True)
            return

        table = Table(title="Transcripts")
        table.add_column("Video ID", style="cyan", no_wrap=True)
        table.add_column("Added", style="green")
        table.add_column("Channel")
        table.add_column("Title")
        table.add_column("Links", justify="right")
        table.add_column("Size", justify="right")
        for entry in stats.entries:
            size = format_size(entry.size_bytes) if entry.size_bytes is not None else "[red]missing[/red]"
            table.add_row(
                entry.video_id,
                entry.date_added,
                entry.channel,
                entry.title,
                str(entry.link_count),
                size,
            )
        self._print(table, force=True)

        lines = [
            f"Total entries: {stats.total}",
            f"Total size: {stats.size_display}",
            f"Oldest: {stats.oldest}",
            f"Newest: {stats.newest}",
        ]
        if stats.missing_blobs:
            lines.append(f"[red]Missing transcript files: {stats.missing_blobs}[/red]")
        if store_stats is not None:
            lines.append(
                f"Store: {store_stats['entry_hits']} hits, {store_stats['entry_misses']} misses, "
                f"{store_stats['document_reads']} reads, {store_stats['document_writes']} writes"
            )
        self._print(Panel("\n".join(lines), title="Registry", padding=(0, 1)), force=True)

    def print_cleanup(self, result: CleanupResult) -> None:
        if self.json_output:
            self._emit_result("cleanup", result.to_dict())
            return

        table = Table(title="Cleanup Summary")
        table.add_column("Deleted", style="green")
        table.add_column("Failed", style="red")
        table.add_column("Links removed", style="cyan")
        table.add_column("Links skipped", style="yellow")
        table.add_row(
            str(result.deleted), str(result.failed), str(result.links_removed), str(result.links_skipped)
        )
        self._print(table, force=True)
        for error in result.errors:
            self._print(f"[red]{error.target}: {error.message}[/red]", force=True)

    def print_error(self, message: str) -> None:
        """Print an error message on stderr."""
        if self.json_output:
            self._emit_event("error", {"message": message})
        elif self.console:
            self.console.print(f"[red]ERROR: {message}[/red]")
        else:
            print(f"ERROR: {message}", file=sys.stderr)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def batch(self):
        """Ensure a progress bar started by ``on_batch_start`` is stopped."""
        try:
            yield self
        finally:
            self._stop_progress()

    def _stop_progress(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task_id = None

    def _print(self, renderable: Any, force: bool = False) -> None:
        if self.console is None or (self.quiet and not force):
            return
        self.console.print(renderable)

    def _emit_event(self, event_type: str, data: dict) -> None:
        """JSON event line on stderr."""
        print(
            json.dumps(
                {
                    "timestamp": self._get_timestamp(),
                    "type": event_type,
                    "data": self._sanitize_json_value(data),
                }
            ),
            file=sys.stderr,
        )

    def _emit_result(self, result_type: str, data: dict) -> None:
        """JSON result document on stdout."""
        print(
            json.dumps(
                {
                    "timestamp": self._get_timestamp(),
                    "type": result_type,
                    "results": self._sanitize_json_value(data),
                }
            )
        )

    def _get_timestamp(self) -> str:
        """Get ISO timestamp for JSON output."""
        return datetime.now().isoformat()

    def _sanitize_json_value(self, value: Any, depth: int = 0) -> Any:
        """JSON value sanitization with depth limiting."""
        if depth > self._json_max_nesting_depth:
            return "[TRUNCATED: Max depth exceeded]"

        if isinstance(value, str):
            return self._sanitize_string_field(value)
        elif isinstance(value, bool):
            return value
        elif isinstance(value, (int, float)):
            return self._sanitize_numeric_field(value)
        elif isinstance(value, dict):
            return {
                self._sanitize_string_field(str(k)): self._sanitize_json_value(v, depth + 1)
                for k, v in value.items()
            }
        elif isinstance(value, (list, tuple)):
            return [self._sanitize_json_value(item, depth + 1) for item in value]
        elif value is None:
            return None
        else:
            return self._sanitize_string_field(str(value))

    def _sanitize_string_field(self, value: str) -> str:
        """Sanitize string values for JSON output."""
        # Remove control characters (except tab, newline, carriage return)
        value = re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", value)
        value = html.escape(value, quote=False)

        if len(value) > self._json_max_field_length:
            value = value[: self._json_max_field_length - 3] + "..."

        # Keep each JSON event on one line
        return re.sub(r"[\r\n]+", " ", value)

    def _sanitize_numeric_field(self, value: float) -> float:
        """Sanitize numeric values for JSON output."""
        if value != value:  # NaN check
            return 0.0
        if value == float("inf"):
            return 1e308
        if value == float("-inf"):
            return -1e308
        return value
