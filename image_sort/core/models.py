"""Domain models - immutable data classes."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


# Sentinels used when metadata cannot name a bucket
UNKNOWN_DATE = "Unknown Date"
UNKNOWN_PLACE = "Unknown Place"
UNKNOWN_DEVICE = "Unknown Device"
NULL_ISLAND = "Null Island"


class FileOutcome(Enum):
    """Terminal state reached by a file."""
    SORTED = "sorted"
    UNSORTED = "unsorted"
    ERRORED = "errored"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class ImageMetadata:
    """Raw metadata read from one image, before sanitizing."""
    period: Optional[str] = None
    device: Optional[str] = None
    coordinates: Optional[tuple[float, float]] = None


@dataclass(frozen=True, slots=True)
class ClassificationKey:
    """Directory segments an image is filed under."""
    period: str
    place: str
    device: Optional[str] = None

    @property
    def segments(self) -> tuple[str, ...]:
        if self.device is None:
            return (self.period, self.place)
        return (self.period, self.place, self.device)


@dataclass(frozen=True, slots=True)
class ProcessingResult:
    """Result of processing a single file."""
    path: Path
    outcome: FileOutcome
    target_path: Optional[Path] = None
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    """Read-only view of the run metrics, taken once at the end."""
    directories_processed: int = 0
    images_processed: int = 0
    images_sorted: int = 0
    images_unsorted: int = 0
    images_errored: int = 0
    not_images_skipped: int = 0
    duplicates_renamed: int = 0
    places: dict[str, int] = field(default_factory=dict)
    devices: frozenset[str] = frozenset()
    errors: tuple[tuple[Path, str], ...] = ()
    oldest_period: Optional[str] = None
    newest_period: Optional[str] = None
    elapsed_seconds: Optional[float] = None

    @property
    def files_seen(self) -> int:
        """Every file that reached a terminal state."""
        return (
            self.images_sorted
            + self.images_unsorted
            + self.images_errored
            + self.not_images_skipped
        )

    def percentage(self, count: int) -> float:
        if self.images_processed == 0:
            return 0.0
        return count / self.images_processed * 100.0

    def top_places(self, limit: int = 5) -> list[tuple[str, int]]:
        return sorted(self.places.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]


@dataclass(frozen=True, slots=True)
class PerformanceSnapshot:
    """Operation counts and cumulative durations (seconds)."""
    metadata_reads: int = 0
    geocoding_lookups: int = 0
    geocoding_cache_hits: int = 0
    file_copies: int = 0
    directory_creations: int = 0
    total_metadata_time: float = 0.0
    total_geocoding_time: float = 0.0
    total_file_copy_time: float = 0.0
    total_directory_creation_time: float = 0.0
    total_bytes_copied: int = 0

    @property
    def total_measured_time(self) -> float:
        return (
            self.total_metadata_time
            + self.total_geocoding_time
            + self.total_file_copy_time
            + self.total_directory_creation_time
        )

    @property
    def cache_hit_rate(self) -> float:
        if self.geocoding_lookups == 0:
            return 0.0
        return self.geocoding_cache_hits / self.geocoding_lookups * 100.0

    @property
    def megabytes_copied(self) -> float:
        return self.total_bytes_copied / (1024 * 1024)
