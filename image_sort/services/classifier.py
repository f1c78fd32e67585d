"""Classification of images into directory segments."""
from __future__ import annotations

import re
from typing import Optional

from ..core.models import (
    UNKNOWN_DATE,
    UNKNOWN_DEVICE,
    UNKNOWN_PLACE,
    ClassificationKey,
    ImageMetadata,
)
from .geocode_cache import GeocodeCache


_UNSAFE_CHARS = re.compile(r"[^\w]", re.ASCII)


def sanitize(text: str) -> str:
    """Make text safe to use as a single path segment.

    Each character outside [A-Za-z0-9_] becomes one space, so the result
    has the same length as the input.
    """
    return _UNSAFE_CHARS.sub(" ", text)


def _segment(value: Optional[str], sentinel: str) -> str:
    if value is None:
        return sentinel
    segment = sanitize(value)
    # Nothing but punctuation, e.g. the EXIF blank date "    :  :  "
    if not segment.strip():
        return sentinel
    return segment


class ClassificationEngine:
    """Turns image metadata into a classification key.

    The key is (period, place) or (period, place, device) when devices are
    part of the layout.
    """

    def __init__(self, geocoder: GeocodeCache, use_device: bool = False):
        self._geocoder = geocoder
        self._use_device = use_device

    def classify(self, metadata: ImageMetadata) -> ClassificationKey:
        period = _segment(metadata.period, UNKNOWN_DATE)

        # Missing GPS is treated as (0, 0)
        lat, long = metadata.coordinates or (0.0, 0.0)
        place = _segment(self._geocoder.resolve(lat, long), UNKNOWN_PLACE)

        device = None
        if self._use_device:
            device = self.device_segment(metadata)

        return ClassificationKey(period=period, place=place, device=device)

    @staticmethod
    def device_segment(metadata: ImageMetadata) -> str:
        return _segment(metadata.device, UNKNOWN_DEVICE)
