"""Filesystem directory helpers and the directory-creation cache."""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..core.config import (
    SORTED_IMAGES_DIRNAME_PREFIX,
    UNSORTED_IMAGES_SUBDIR_NAME,
)
from .metrics import PerformanceMetrics, Timer


logger = logging.getLogger(__name__)


def get_subdirectories(directory: Path) -> list[Path]:
    """Direct subdirectories of a directory, sorted by name."""
    return sorted(entry for entry in directory.iterdir() if entry.is_dir())


def get_subdirectories_recursive(top_directory: Path) -> list[Path]:
    """All subdirectories below a directory, at any depth."""
    logger.debug("Screening subdirectories of %s", top_directory)
    directories: list[Path] = []
    for sub_dir in get_subdirectories(top_directory):
        directories.append(sub_dir)
        directories.extend(get_subdirectories_recursive(sub_dir))
    return directories


def get_files_from_dir(directory: Path) -> list[Path]:
    """Files (not directories) directly inside a directory, sorted by name."""
    return sorted(entry for entry in directory.iterdir() if entry.is_file())


def create_sorted_images_dir(
    top_directory: Path,
    now: Optional[datetime] = None,
) -> Path:
    """Create the timestamped root that sorted images are copied under.

    The directory must not exist yet, so two runs never write into the
    same tree.

    Raises:
        OSError: If the directory exists or cannot be created.
    """
    now = now or datetime.now()
    dirname = f"{SORTED_IMAGES_DIRNAME_PREFIX}{now:%Y%m%d-%H%M%S}"
    path = top_directory / dirname
    logger.info("Creating target directory %s", path)
    path.mkdir(parents=False, exist_ok=False)
    return path


def create_unsorted_images_dir(parent_directory: Path) -> Path:
    """Create the bucket for images without usable metadata."""
    path = parent_directory / UNSORTED_IMAGES_SUBDIR_NAME
    path.mkdir(parents=True, exist_ok=True)
    return path


class DirectoryCache:
    """Remembers directories already created during the run.

    The cache is a set written after a successful mkdir, not a lock around
    it: two workers may create the same new directory concurrently, which
    `mkdir(exist_ok=True)` tolerates.
    """

    def __init__(self, performance: Optional[PerformanceMetrics] = None):
        self._created: set[Path] = set()
        self._lock = threading.Lock()
        self._performance = performance

    def __len__(self) -> int:
        with self._lock:
            return len(self._created)

    def ensure(self, parent: Path, child: Union[str, Path]) -> Path:
        """Return `parent / child`, creating it if needed.

        Raises:
            OSError: If the directory cannot be created.
        """
        path = parent / child

        with self._lock:
            if path in self._created:
                return path

        timer = Timer()
        path.mkdir(parents=True, exist_ok=True)
        if self._performance is not None:
            self._performance.record_directory_creation(timer.elapsed())

        with self._lock:
            self._created.add(path)

        return path
