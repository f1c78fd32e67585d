"""Duplicate-safe placement of files at their destination."""
from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Optional

from ..core.errors import DestinationIsDirectoryError, DuplicateExhaustedError
from .metrics import MetricsAggregator


logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 1000
SUFFIX_RANGE = (100, 100_000)


class DuplicateResolver:
    """Finds a free destination path when the desired one is taken.

    A taken name `photo.jpg` is retried as `photo_duplicate_<n>.jpg` with a
    fresh random `n` on every attempt, up to a fixed number of attempts.
    """

    def __init__(
        self,
        metrics: Optional[MetricsAggregator] = None,
        rng: Optional[random.Random] = None,
        max_attempts: int = MAX_ATTEMPTS,
        suffix_range: tuple[int, int] = SUFFIX_RANGE,
    ):
        """Initialize the resolver.

        Args:
            metrics: Receives one "duplicate renamed" per renamed placement.
            rng: Random source for suffixes; seed it for reproducible names.
            max_attempts: Candidates tried before giving up.
            suffix_range: Inclusive bounds of the random suffix.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._metrics = metrics
        self._rng = rng or random.Random()
        self._max_attempts = max_attempts
        self._suffix_range = suffix_range

    def place(self, source_file: Path, desired_path: Path) -> Path:
        """Return a destination path for `source_file` that is free now.

        Args:
            source_file: File about to be copied.
            desired_path: Where it would go if nothing were in the way.

        Returns:
            `desired_path` when free, otherwise a renamed sibling.

        Raises:
            DestinationIsDirectoryError: `desired_path` is a directory.
            DuplicateExhaustedError: No free name within the attempt bound.
        """
        if desired_path.is_dir():
            raise DestinationIsDirectoryError(desired_path)

        if not desired_path.exists():
            return desired_path

        logger.debug("%s already exists, renaming %s", desired_path, source_file)
        stem = desired_path.stem
        suffix = desired_path.suffix
        low, high = self._suffix_range

        for _ in range(self._max_attempts):
            number = self._rng.randint(low, high)
            candidate = desired_path.with_name(f"{stem}_duplicate_{number}{suffix}")
            if not candidate.exists():
                if self._metrics is not None:
                    self._metrics.duplicate_renamed()
                return candidate

        raise DuplicateExhaustedError(desired_path, self._max_attempts)
