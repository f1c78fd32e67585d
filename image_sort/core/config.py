"""Run configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


SORTED_IMAGES_DIRNAME_PREFIX = "Images-"
UNSORTED_IMAGES_SUBDIR_NAME = "Unsorted"
NOT_IMAGES_SUBDIR_NAME = "NotImages"

# Kept low so a single rotating disk is not thrashed
DEFAULT_WORKERS = 4


@dataclass(frozen=True, slots=True)
class GlobalConfiguration:
    """Configuration for one sorting run.

    Built once at startup from already-created directories and never
    mutated while workers are running.
    """
    source_directory: Path
    sorted_images_directory: Path
    unsorted_images_directory: Path
    not_images_directory: Path
    use_device: bool = False
    workers: int = DEFAULT_WORKERS
    copy_not_images: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.workers < 1:
            raise ValueError("Workers must be at least 1")

        if not self.source_directory.is_dir():
            raise ValueError(f"Source directory does not exist: {self.source_directory}")

    @classmethod
    def for_sorted_root(
        cls,
        source_directory: Path,
        sorted_images_directory: Path,
        **options,
    ) -> "GlobalConfiguration":
        """Derive the bucket directories from the sorted images root."""
        return cls(
            source_directory=source_directory,
            sorted_images_directory=sorted_images_directory,
            unsorted_images_directory=sorted_images_directory / UNSORTED_IMAGES_SUBDIR_NAME,
            not_images_directory=sorted_images_directory / NOT_IMAGES_SUBDIR_NAME,
            **options,
        )

    def relative_to_source(self, path: Path) -> Path:
        """Path of a source file relative to the source root.

        Falls back to the bare file name for paths outside the source tree.
        """
        try:
            return path.relative_to(self.source_directory)
        except ValueError:
            return Path(path.name)
