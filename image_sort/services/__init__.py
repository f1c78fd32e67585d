"""Service layer - sorting logic and the state it shares across workers."""
from .classifier import ClassificationEngine, sanitize
from .directories import (
    DirectoryCache,
    create_sorted_images_dir,
    create_unsorted_images_dir,
    get_files_from_dir,
    get_subdirectories,
    get_subdirectories_recursive,
)
from .duplicates import DuplicateResolver
from .geocode_cache import GeocodeCache
from .metrics import AtomicCounter, MetricsAggregator, PerformanceMetrics, Timer
from .sorter import ImageSorter, SorterDependencies

__all__ = [
    "ClassificationEngine",
    "sanitize",
    "DirectoryCache",
    "create_sorted_images_dir",
    "create_unsorted_images_dir",
    "get_files_from_dir",
    "get_subdirectories",
    "get_subdirectories_recursive",
    "DuplicateResolver",
    "GeocodeCache",
    "AtomicCounter",
    "MetricsAggregator",
    "PerformanceMetrics",
    "Timer",
    "ImageSorter",
    "SorterDependencies",
]
