"""Error taxonomy for the sorting pipeline."""
from __future__ import annotations

from enum import Enum
from pathlib import Path


class ImageSortError(Exception):
    """Base class for all errors raised by image_sort."""


class MetadataErrorKind(Enum):
    """Why metadata could not be read from a file."""
    NOT_AN_IMAGE = "not_an_image"  # skipped
    NO_METADATA = "no_metadata"    # copied to the unsorted bucket
    DECODING = "decoding"          # copied to the unsorted bucket
    IO = "io"                      # counted as an error


class MetadataError(ImageSortError):
    """Metadata extraction failed.

    Callers branch on `kind`; every kind must be handled.
    """

    def __init__(self, kind: MetadataErrorKind, path: Path, detail: str = ""):
        self.kind = kind
        self.path = path
        self.detail = detail
        message = f"{kind.value}: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class PlacementError(ImageSortError):
    """No destination could be found for a file."""


class DestinationIsDirectoryError(PlacementError):
    """The desired destination path is an existing directory."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Destination is an existing directory: {path}")


class DuplicateExhaustedError(PlacementError):
    """Every generated duplicate name was already taken."""

    def __init__(self, path: Path, attempts: int):
        self.path = path
        self.attempts = attempts
        super().__init__(f"No free name for {path} after {attempts} attempts")