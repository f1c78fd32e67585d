"""Image sorting package.

Copies a tree of images into folders by capture month and place, with
dependency injection between the extraction, geocoding and placement
services.
"""

__version__ = "1.0.0"

# Core exports
from .core.config import GlobalConfiguration
from .core.models import ClassificationKey, ImageMetadata, MetricsSnapshot, ProcessingResult
from .core.protocols import MetadataExtractor, PlaceSearch, ProgressReporter

# Engine exports
from .engines.metadata import PillowMetadataExtractor
from .engines.geocoder import ReverseGeocoderSearch

# Service exports
from .services.sorter import ImageSorter, SorterDependencies
from .services.geocode_cache import GeocodeCache
from .services.classifier import ClassificationEngine
from .services.directories import DirectoryCache
from .services.duplicates import DuplicateResolver
from .services.metrics import MetricsAggregator

# Logging exports
from .logging.rich_logger import RichProgressReporter

__all__ = [
    # Core
    "GlobalConfiguration",
    "ClassificationKey",
    "ImageMetadata",
    "MetricsSnapshot",
    "ProcessingResult",
    "MetadataExtractor",
    "PlaceSearch",
    "ProgressReporter",
    # Engines
    "PillowMetadataExtractor",
    "ReverseGeocoderSearch",
    # Services
    "ImageSorter",
    "SorterDependencies",
    "GeocodeCache",
    "ClassificationEngine",
    "DirectoryCache",
    "DuplicateResolver",
    "MetricsAggregator",
    # Logging
    "RichProgressReporter",
]
