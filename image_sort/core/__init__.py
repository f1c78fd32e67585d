"""Core domain models and protocols."""
from .protocols import (
    MetadataExtractor,
    PlaceSearch,
    ProgressReporter,
)
from .models import (
    FileOutcome,
    ImageMetadata,
    ClassificationKey,
    ProcessingResult,
    MetricsSnapshot,
    PerformanceSnapshot,
)
from .config import GlobalConfiguration
from .errors import (
    ImageSortError,
    MetadataError,
    MetadataErrorKind,
    PlacementError,
    DestinationIsDirectoryError,
    DuplicateExhaustedError,
)

__all__ = [
    # Protocols
    "MetadataExtractor",
    "PlaceSearch",
    "ProgressReporter",
    # Models
    "FileOutcome",
    "ImageMetadata",
    "ClassificationKey",
    "ProcessingResult",
    "MetricsSnapshot",
    "PerformanceSnapshot",
    # Config
    "GlobalConfiguration",
    # Errors
    "ImageSortError",
    "MetadataError",
    "MetadataErrorKind",
    "PlacementError",
    "DestinationIsDirectoryError",
    "DuplicateExhaustedError",
]
