"""EXIF metadata extraction using Pillow."""
from __future__ import annotations

import logging
import math
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from PIL import ExifTags, Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from ..core.errors import MetadataError, MetadataErrorKind
from ..core.models import ImageMetadata


logger = logging.getLogger(__name__)

# "YYYY:MM:DD HH:MM:SS" -> "YYYY:MM"
PERIOD_LENGTH = 7

# Tried in order until one is present
DATETIME_TAGS = (
    (ExifTags.IFD.Exif, ExifTags.Base.DateTimeOriginal),
    (ExifTags.IFD.Exif, ExifTags.Base.DateTimeDigitized),
    (None, ExifTags.Base.DateTime),
)

POSITIVE_REFS = frozenset({"N", "E"})

# Lets Image.open read HEIC/HEIF files
register_heif_opener()

# Guards the process-wide pixel limit while it is lifted
_PIXEL_LIMIT_LOCK = threading.Lock()


def _text(value: Any) -> Optional[str]:
    """Normalize an ASCII EXIF value, dropping padding."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).replace("\x00", "").strip()
    return text or None


def dms_to_decimal(dms: Any) -> float:
    """Convert (degrees, minutes, seconds) rationals to decimal degrees.

    Raises:
        ValueError: If the value is not three finite numbers.
    """
    try:
        degrees, minutes, seconds = (float(part) for part in dms)
    except (TypeError, ValueError, ZeroDivisionError) as e:
        raise ValueError(f"Coords {dms!r} can't be processed") from e

    decimal = degrees + minutes / 60.0 + seconds / 3600.0
    if not math.isfinite(decimal):
        raise ValueError(f"Coords {dms!r} can't be processed")
    return decimal


def coordinate_from_gps(gps: dict, value_tag: int, ref_tag: int) -> float:
    """Signed decimal coordinate from a GPS IFD.

    A missing value or reference yields 0.0, the Null Island coordinate.
    """
    value = gps.get(value_tag)
    if value is None:
        return 0.0

    decimal = dms_to_decimal(value)
    ref = _text(gps.get(ref_tag))
    if ref is None:
        logger.debug("GPS reference tag %s missing", ref_tag)
        return 0.0
    return decimal if ref.upper() in POSITIVE_REFS else -decimal


def parse_gps(gps: dict) -> Optional[tuple[float, float]]:
    """Decimal (latitude, longitude) from a GPS IFD, or None without one."""
    if not gps:
        return None
    lat = coordinate_from_gps(gps, ExifTags.GPS.GPSLatitude, ExifTags.GPS.GPSLatitudeRef)
    long = coordinate_from_gps(gps, ExifTags.GPS.GPSLongitude, ExifTags.GPS.GPSLongitudeRef)
    return lat, long


@contextmanager
def _pixel_limit_lifted() -> Iterator[None]:
    """Disable Pillow's decompression bomb check for header-only reads."""
    with _PIXEL_LIMIT_LOCK:
        limit = Image.MAX_IMAGE_PIXELS
        Image.MAX_IMAGE_PIXELS = None
        try:
            yield
        finally:
            Image.MAX_IMAGE_PIXELS = limit


def _read_exif(path: Path) -> tuple[Image.Exif, dict]:
    # Pixels are never decoded, only the header and EXIF block
    with Image.open(path) as img:
        exif = img.getexif()
        sub_ifds = {
            ExifTags.IFD.Exif: exif.get_ifd(ExifTags.IFD.Exif),
            ExifTags.IFD.GPSInfo: exif.get_ifd(ExifTags.IFD.GPSInfo),
        }
    return exif, sub_ifds


def _has_digits(text: str) -> bool:
    return any(char.isdigit() for char in text)


class PillowMetadataExtractor:
    """Metadata extractor reading EXIF through Pillow.

    Implements the MetadataExtractor protocol. Reads every format Pillow
    opens, plus HEIC/HEIF through pillow-heif. Stateless, so one instance
    can be shared by every worker thread.
    """

    def extract(self, path: Path) -> ImageMetadata:
        """Read capture period, camera model and GPS position.

        Raises:
            MetadataError: NOT_AN_IMAGE, NO_METADATA, DECODING or IO.
        """
        try:
            try:
                exif, sub_ifds = _read_exif(path)
            except Image.DecompressionBombError:
                logger.debug("%s is above the pixel limit, reading EXIF without it", path)
                with _pixel_limit_lifted():
                    exif, sub_ifds = _read_exif(path)
        except UnidentifiedImageError as e:
            raise MetadataError(MetadataErrorKind.NOT_AN_IMAGE, path, str(e)) from e
        except OSError as e:
            raise MetadataError(MetadataErrorKind.IO, path, str(e)) from e
        except (SyntaxError, ValueError) as e:
            # Pillow reports malformed EXIF blocks this way
            raise MetadataError(MetadataErrorKind.NO_METADATA, path, str(e)) from e

        if not exif:
            raise MetadataError(MetadataErrorKind.NO_METADATA, path, "No Exif Data in the image")

        period = self._period(exif, sub_ifds)
        if period is None:
            logger.warning("%s: DateTimeOriginal, DateTimeDigitized and DateTime are missing", path)

        device = _text(exif.get(ExifTags.Base.Model))
        if device is None:
            logger.warning("%s: Model tag is missing", path)

        try:
            coordinates = parse_gps(sub_ifds[ExifTags.IFD.GPSInfo])
        except ValueError as e:
            raise MetadataError(MetadataErrorKind.DECODING, path, str(e)) from e

        return ImageMetadata(period=period, device=device, coordinates=coordinates)

    @staticmethod
    def _period(exif: Image.Exif, sub_ifds: dict) -> Optional[str]:
        for ifd, tag in DATETIME_TAGS:
            source = exif if ifd is None else sub_ifds[ifd]
            timestamp = _text(source.get(tag))
            # Unknown dates are written as "    :  :     :  :  "
            if timestamp and _has_digits(timestamp):
                logger.debug("EXIF timestamp = %s", timestamp)
                return timestamp[:PERIOD_LENGTH]
        return None
