"""Protocol definitions (interfaces) for dependency injection."""
from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Protocol, Optional

from .models import ImageMetadata, MetricsSnapshot, PerformanceSnapshot


class MetadataExtractor(Protocol):
    """Interface for reading the metadata used to classify an image.

    Implementations:
    - PillowMetadataExtractor: EXIF via Pillow
    """

    @abstractmethod
    def extract(self, path: Path) -> ImageMetadata:
        """Read metadata from a file.

        Raises:
            MetadataError: With a kind telling the caller how to recover.
        """
        ...


class PlaceSearch(Protocol):
    """Interface for nearest-place lookups."""

    @property
    @abstractmethod
    def thread_safe(self) -> bool:
        """Whether `search` may be called from several threads at once."""
        ...

    @abstractmethod
    def search(self, lat: float, long: float) -> Optional[str]:
        """Return the name of the nearest known place, or None."""
        ...


class ProgressReporter(Protocol):
    """Interface for progress reporting."""

    @abstractmethod
    def start_phase(self, name: str, total: int) -> None:
        """Start a new processing phase."""
        ...

    @abstractmethod
    def advance_phase(self, amount: int = 1) -> None:
        """Advance the current phase by an amount."""
        ...

    @abstractmethod
    def end_phase(self) -> None:
        """Complete current phase."""
        ...

    @abstractmethod
    def info(self, message: str) -> None:
        """Log an info message."""
        ...

    @abstractmethod
    def warning(self, message: str) -> None:
        """Log a warning message."""
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        """Log an error message."""
        ...

    @abstractmethod
    def print_report(self, snapshot: MetricsSnapshot) -> None:
        """Print the final sorting report."""
        ...

    @abstractmethod
    def print_performance(self, snapshot: PerformanceSnapshot) -> None:
        """Print the performance report."""
        ...
