"""Run metrics shared by all workers.

Simple tallies are independent counters, each with its own lock, so that
incrementing one never waits on another. The place map, device set, error
list and date range change together and share a single lock, held only for
the mutation itself.
"""
from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Optional

from ..core.models import UNKNOWN_DATE, MetricsSnapshot, PerformanceSnapshot


class AtomicCounter:
    """Integer counter safe to increment from any thread."""

    def __init__(self, value: int = 0):
        self._value = value
        self._lock = threading.Lock()

    def increment(self, amount: int = 1) -> int:
        with self._lock:
            self._value += amount
            return self._value

    @property
    def value(self) -> int:
        return self._value


class Timer:
    """Measure the duration of an operation."""

    def __init__(self):
        self._start = time.perf_counter()

    def elapsed(self) -> float:
        """Seconds since the timer was created."""
        return time.perf_counter() - self._start


class PerformanceMetrics:
    """Counts and cumulative durations of the expensive operations."""

    def __init__(self):
        self._lock = threading.Lock()
        self._metadata_reads = 0
        self._geocoding_lookups = 0
        self._geocoding_cache_hits = 0
        self._file_copies = 0
        self._directory_creations = 0
        self._metadata_time = 0.0
        self._geocoding_time = 0.0
        self._file_copy_time = 0.0
        self._directory_creation_time = 0.0
        self._bytes_copied = 0

    def record_metadata_read(self, duration: float) -> None:
        with self._lock:
            self._metadata_reads += 1
            self._metadata_time += duration

    def record_geocoding(self, duration: float, cache_hit: bool) -> None:
        with self._lock:
            self._geocoding_lookups += 1
            self._geocoding_time += duration
            if cache_hit:
                self._geocoding_cache_hits += 1

    def record_file_copy(self, duration: float, size: int) -> None:
        with self._lock:
            self._file_copies += 1
            self._file_copy_time += duration
            self._bytes_copied += size

    def record_directory_creation(self, duration: float) -> None:
        with self._lock:
            self._directory_creations += 1
            self._directory_creation_time += duration

    def snapshot(self) -> PerformanceSnapshot:
        with self._lock:
            return PerformanceSnapshot(
                metadata_reads=self._metadata_reads,
                geocoding_lookups=self._geocoding_lookups,
                geocoding_cache_hits=self._geocoding_cache_hits,
                file_copies=self._file_copies,
                directory_creations=self._directory_creations,
                total_metadata_time=self._metadata_time,
                total_geocoding_time=self._geocoding_time,
                total_file_copy_time=self._file_copy_time,
                total_directory_creation_time=self._directory_creation_time,
                total_bytes_copied=self._bytes_copied,
            )


class MetricsAggregator:
    """Thread-safe aggregation of per-file outcomes.

    One instance is shared by every worker of a run. Each `record_*` method
    is the single metrics update for the terminal state it names.
    """

    def __init__(self, performance: Optional[PerformanceMetrics] = None):
        """Initialize the aggregator.

        Args:
            performance: Timing collector; a fresh one is created if omitted.
        """
        self.performance = performance or PerformanceMetrics()

        self._directories = AtomicCounter()
        self._sorted = AtomicCounter()
        self._unsorted = AtomicCounter()
        self._errored = AtomicCounter()
        self._skipped = AtomicCounter()
        self._duplicates = AtomicCounter()

        self._lock = threading.Lock()
        self._places: dict[str, int] = {}
        self._devices: set[str] = set()
        self._errors: list[tuple[Path, str]] = []
        self._oldest: Optional[str] = None
        self._newest: Optional[str] = None
        self._start_time: Optional[float] = None

    def start_timer(self) -> None:
        self._start_time = time.monotonic()

    # --- Counters ---

    def directory_processed(self) -> None:
        self._directories.increment()

    def duplicate_renamed(self) -> None:
        self._duplicates.increment()

    def record_unsorted(self) -> None:
        self._unsorted.increment()

    def record_skipped(self) -> None:
        self._skipped.increment()

    # --- Composite updates ---

    def record_sorted(self, period: str, place: str, device: Optional[str] = None) -> None:
        """Count a sorted image and fold its classification into the report."""
        self._sorted.increment()
        with self._lock:
            self._places[place] = self._places.get(place, 0) + 1
            if device:
                self._devices.add(device)
            if period != UNKNOWN_DATE:
                self._extend_date_range(period)

    def record_error(self, path: Path, reason: str) -> None:
        self._errored.increment()
        with self._lock:
            self._errors.append((path, reason))

    def _extend_date_range(self, period: str) -> None:
        # "YYYY MM" sorts lexically in chronological order
        if self._oldest is None or period < self._oldest:
            self._oldest = period
        if self._newest is None or period > self._newest:
            self._newest = period

    # --- Read path ---

    def snapshot(self) -> MetricsSnapshot:
        """Take a consistent copy of every metric.

        Meant to be called once workers are done.
        """
        elapsed = None
        if self._start_time is not None:
            elapsed = time.monotonic() - self._start_time

        sorted_count = self._sorted.value
        unsorted_count = self._unsorted.value
        with self._lock:
            return MetricsSnapshot(
                directories_processed=self._directories.value,
                images_processed=sorted_count + unsorted_count,
                images_sorted=sorted_count,
                images_unsorted=unsorted_count,
                images_errored=self._errored.value,
                not_images_skipped=self._skipped.value,
                duplicates_renamed=self._duplicates.value,
                places=dict(self._places),
                devices=frozenset(self._devices),
                errors=tuple(self._errors),
                oldest_period=self._oldest,
                newest_period=self._newest,
                elapsed_seconds=elapsed,
            )
