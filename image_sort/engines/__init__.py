"""Adapters over third-party metadata and geocoding libraries."""
from .metadata import PillowMetadataExtractor, dms_to_decimal, parse_gps
from .geocoder import ReverseGeocoderSearch

__all__ = [
    "PillowMetadataExtractor",
    "ReverseGeocoderSearch",
    "dms_to_decimal",
    "parse_gps",
]
