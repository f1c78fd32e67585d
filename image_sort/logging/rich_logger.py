"""Rich-based progress reporter implementation."""
from __future__ import annotations

import logging
import sys
import time
from collections import deque
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    Progress,
    ProgressColumn,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TimeRemainingColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
    TaskID,
    Task,
)
from rich.table import Table
from rich.panel import Panel
from rich.text import Text

from ..core.models import MetricsSnapshot, PerformanceSnapshot


MAX_ERROR_DETAILS = 10
MAX_PLACES_SHOWN = 5
MAX_DEVICES_SHOWN = 5


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route module loggers through a RichHandler on stderr.

    Args:
        verbose: Log DEBUG and above instead of WARNING and above.
        console: Console to write to; defaults to a stderr console.
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


class FilesPerSecondColumn(ProgressColumn):
    """Renders files per second as a rolling average."""

    def __init__(self, window_size: int = 10):
        """Initialize with rolling window size.

        Args:
            window_size: Number of samples for rolling average.
        """
        super().__init__()
        self._samples: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._last_completed = 0
        self._start_time: Optional[float] = None

    def render(self, task: Task) -> Text:
        """Render the speed column."""
        completed = int(task.completed)
        current_time = time.time()

        if self._start_time is None:
            self._start_time = current_time
            self._last_completed = completed
            return Text("-- f/s", style="magenta")

        if completed > self._last_completed:
            self._samples.append((current_time, completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]
            time_diff = newest_time - oldest_time
            if time_diff > 0:
                speed = (newest_completed - oldest_completed) / time_diff
                return Text(f"{speed:.1f} f/s", style="magenta")

        elapsed = current_time - self._start_time
        if elapsed > 0 and completed > 0:
            return Text(f"{completed / elapsed:.1f} f/s", style="magenta")

        return Text("-- f/s", style="magenta")


def _format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.2f}s"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{int(minutes)}m {seconds:.0f}s"
    hours, minutes = divmod(minutes, 60)
    return f"{int(hours)}h {int(minutes)}m {seconds:.0f}s"


class RichProgressReporter:
    """Progress reporter using Rich for terminal output.

    Implements the ProgressReporter protocol. Each source directory gets its
    own progress bar.
    """

    def __init__(
        self,
        verbose: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
    ):
        """Initialize the reporter.

        Args:
            verbose: Enable verbose output.
            quiet: Suppress all non-essential output.
            console: Console to print to; defaults to stderr.
        """
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._current_task_id: Optional[TaskID] = None

    # --- Phase Management ---

    def start_phase(self, name: str, total: int) -> None:
        """Start a progress bar for one directory."""
        if self._quiet:
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            FilesPerSecondColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            TextColumn("[cyan]•"),
            TimeRemainingColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._current_task_id = self._progress.add_task(name, total=total)

    def advance_phase(self, amount: int = 1) -> None:
        if self._progress and self._current_task_id is not None:
            self._progress.advance(self._current_task_id, amount)

    def end_phase(self) -> None:
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._current_task_id = None

    # --- Logging Methods ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[red]✗[/red] {message}", style="red")

    # --- Specialized Output ---

    def print_header(self, title: str) -> None:
        if self._quiet:
            return
        self._console.print(Panel(Text(title, style="bold cyan"), border_style="cyan"))

    def print_config(self, config_items: dict) -> None:
        """Print configuration as a table."""
        if self._quiet:
            return

        table = Table(title="Configuration", show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")
        for key, value in config_items.items():
            table.add_row(key, str(value))

        self._console.print(table)

    def print_report(self, snapshot: MetricsSnapshot) -> None:
        """Print the sorting report, followed by error details if any.

        Shown even in quiet mode: the report is the product of the run.
        """
        table = Table(title="Image Sorting Report", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")

        if snapshot.elapsed_seconds is not None:
            table.add_row("Execution Time", _format_duration(snapshot.elapsed_seconds))
        table.add_row("Directories Processed", str(snapshot.directories_processed))
        table.add_row("Images Processed", str(snapshot.images_processed))
        table.add_row(
            "Sorted",
            f"{snapshot.images_sorted} ({snapshot.percentage(snapshot.images_sorted):.1f}%)",
        )
        table.add_row(
            "Unsorted",
            f"{snapshot.images_unsorted} ({snapshot.percentage(snapshot.images_unsorted):.1f}%)",
        )
        table.add_row(
            "Errors",
            f"{snapshot.images_errored} ({snapshot.percentage(snapshot.images_errored):.1f}%)",
        )
        table.add_row("Duplicates Renamed", str(snapshot.duplicates_renamed))
        table.add_row("Not Images Skipped", str(snapshot.not_images_skipped))

        table.add_row("", "")
        table.add_row("Places", str(len(snapshot.places)))
        for place, count in snapshot.top_places(MAX_PLACES_SHOWN):
            table.add_row(f"  {place}", str(count))

        if snapshot.devices:
            devices = sorted(snapshot.devices)
            shown = ", ".join(devices[:MAX_DEVICES_SHOWN])
            if len(devices) > MAX_DEVICES_SHOWN:
                shown += f" (+{len(devices) - MAX_DEVICES_SHOWN} more)"
            table.add_row("Devices", shown)

        if snapshot.oldest_period and snapshot.newest_period:
            table.add_row("Date Range", f"{snapshot.oldest_period} to {snapshot.newest_period}")

        self._console.print(table)

        if snapshot.errors:
            self._print_errors(snapshot)

    def _print_errors(self, snapshot: MetricsSnapshot) -> None:
        errors = snapshot.errors
        if len(errors) > MAX_ERROR_DETAILS:
            title = f"Error Details (first {MAX_ERROR_DETAILS} of {len(errors)})"
        else:
            title = "Error Details"

        table = Table(title=title, show_header=True, header_style="bold red")
        table.add_column("File", style="white", overflow="fold")
        table.add_column("Reason", style="red", overflow="fold")
        for path, reason in errors[:MAX_ERROR_DETAILS]:
            table.add_row(str(path), reason)

        self._console.print(table)

    def print_performance(self, snapshot: PerformanceSnapshot) -> None:
        """Print operation counts and where the time went."""
        if self._quiet:
            return

        table = Table(title="Performance", show_header=True, header_style="bold")
        table.add_column("Operation", style="cyan")
        table.add_column("Count", style="green", justify="right")
        table.add_column("Total Time", justify="right")
        table.add_column("Details", style="white")

        table.add_row(
            "Metadata Reads",
            str(snapshot.metadata_reads),
            _format_duration(snapshot.total_metadata_time),
            "",
        )
        table.add_row(
            "Geocoding Lookups",
            str(snapshot.geocoding_lookups),
            _format_duration(snapshot.total_geocoding_time),
            f"{snapshot.cache_hit_rate:.1f}% cache hits",
        )

        throughput = ""
        if snapshot.total_file_copy_time > 0:
            throughput = f", {snapshot.megabytes_copied / snapshot.total_file_copy_time:.1f} MB/s"
        table.add_row(
            "File Copies",
            str(snapshot.file_copies),
            _format_duration(snapshot.total_file_copy_time),
            f"{snapshot.megabytes_copied:.1f} MB{throughput}",
        )
        table.add_row(
            "Directory Creations",
            str(snapshot.directory_creations),
            _format_duration(snapshot.total_directory_creation_time),
            "",
        )

        total = snapshot.total_measured_time
        if total > 0:
            breakdown = (
                ("Metadata", snapshot.total_metadata_time),
                ("Geocoding", snapshot.total_geocoding_time),
                ("Copies", snapshot.total_file_copy_time),
                ("Directories", snapshot.total_directory_creation_time),
            )
            table.add_row("", "", "", "")
            for label, seconds in breakdown:
                table.add_row(f"  {label}", "", f"{seconds / total * 100:.1f}%", "")

        self._console.print(table)

    # --- Context Managers ---

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        self.end_phase()


class QuietProgressReporter:
    """Minimal progress reporter that only shows errors."""

    def start_phase(self, name: str, total: int) -> None:
        pass

    def advance_phase(self, amount: int = 1) -> None:
        pass

    def end_phase(self) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)

    def print_header(self, title: str) -> None:
        pass

    def print_config(self, config_items: dict) -> None:
        pass

    def print_report(self, snapshot: MetricsSnapshot) -> None:
        print(
            f"{snapshot.images_sorted} sorted, {snapshot.images_unsorted} unsorted, "
            f"{snapshot.images_errored} errors, {snapshot.not_images_skipped} skipped",
            file=sys.stderr,
        )
        for path, reason in snapshot.errors[:MAX_ERROR_DETAILS]:
            print(f"ERROR: {path}: {reason}", file=sys.stderr)

    def print_performance(self, snapshot: PerformanceSnapshot) -> None:
        pass

    def __enter__(self) -> "QuietProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        pass
