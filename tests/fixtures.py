"""Test doubles and image builders shared by the test modules.

The stubs stand in for the metadata extractor and the place search so that
sorting tests need neither real EXIF data nor the geocoding data set.
"""
from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional, Union

from PIL import ExifTags, Image

from image_sort.core.errors import MetadataError, MetadataErrorKind
from image_sort.core.models import ImageMetadata, MetricsSnapshot, PerformanceSnapshot


AREZZO = (43.4633, 11.8800)


class StubPlaceSearch:
    """Place search answering from a fixed table and counting calls."""

    def __init__(self, places: Optional[dict] = None, thread_safe: bool = False):
        self._places = places or {}
        self._thread_safe = thread_safe
        self._lock = threading.Lock()
        self.calls: list[tuple[float, float]] = []

    @property
    def thread_safe(self) -> bool:
        return self._thread_safe

    def search(self, lat: float, long: float) -> Optional[str]:
        with self._lock:
            self.calls.append((lat, long))
        return self._places.get((lat, long))


class StubMetadataExtractor:
    """Extractor keyed by file name.

    A value is either the metadata to return or the kind of error to raise.
    Names not in the table raise NOT_AN_IMAGE.
    """

    def __init__(self, table: dict[str, Union[ImageMetadata, MetadataErrorKind]]):
        self._table = table

    def extract(self, path: Path) -> ImageMetadata:
        entry = self._table.get(path.name, MetadataErrorKind.NOT_AN_IMAGE)
        if isinstance(entry, MetadataErrorKind):
            raise MetadataError(entry, path, "stubbed")
        return entry


class RecordingReporter:
    """Progress reporter that remembers what it was told."""

    def __init__(self):
        self.phases: list[tuple[str, int]] = []
        self.advanced = 0
        self.ended = 0
        self.messages: list[tuple[str, str]] = []
        self.report: Optional[MetricsSnapshot] = None
        self.performance: Optional[PerformanceSnapshot] = None

    def start_phase(self, name: str, total: int) -> None:
        self.phases.append((name, total))

    def advance_phase(self, amount: int = 1) -> None:
        self.advanced += amount

    def end_phase(self) -> None:
        self.ended += 1

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def print_report(self, snapshot: MetricsSnapshot) -> None:
        self.report = snapshot

    def print_performance(self, snapshot: PerformanceSnapshot) -> None:
        self.performance = snapshot


def write_file(path: Path, content: bytes = b"image data") -> Path:
    """Write a small placeholder file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


def build_exif(
    datetime_text: Optional[str] = None,
    model: Optional[str] = None,
    exif_ifd: Optional[dict] = None,
    gps_ifd: Optional[dict] = None,
) -> Image.Exif:
    """EXIF block with IFD0 DateTime and Model, and Exif or GPS sub-IFDs when given."""
    exif = Image.Exif()
    if datetime_text is not None:
        exif[ExifTags.Base.DateTime] = datetime_text
    if model is not None:
        exif[ExifTags.Base.Model] = model
    if exif_ifd:
        exif[ExifTags.IFD.Exif] = exif_ifd
    if gps_ifd:
        exif[ExifTags.IFD.GPSInfo] = gps_ifd
    return exif


def make_jpeg(
    path: Path,
    datetime_text: Optional[str] = None,
    model: Optional[str] = None,
    color: str = "red",
    size: tuple[int, int] = (32, 24),
    exif_ifd: Optional[dict] = None,
    gps_ifd: Optional[dict] = None,
) -> Path:
    """Create a JPEG carrying the given EXIF tags."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, color=color)

    exif = build_exif(datetime_text, model, exif_ifd, gps_ifd)
    if len(exif):
        img.save(path, "JPEG", exif=exif)
    else:
        img.save(path, "JPEG")
    return path
