"""LRU cache in front of the nearest-place search."""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Optional

from ..core.models import NULL_ISLAND, UNKNOWN_PLACE
from ..core.protocols import PlaceSearch
from .metrics import PerformanceMetrics, Timer


logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 1000

# 4 decimal places is roughly an 11 m grid cell
QUANTIZATION = 10_000


def quantize(lat: float, long: float) -> tuple[int, int]:
    """Cache key for a coordinate pair."""
    return round(lat * QUANTIZATION), round(long * QUANTIZATION)


class GeocodeCache:
    """Memoizes place names for quantized coordinates.

    Nearby shots (same ~11 m cell) share one search. The cache is bounded
    and evicts the least recently used cell. A single lock guards lookup and
    insert; the search itself runs outside the lock only when the search
    declares itself thread-safe.
    """

    def __init__(
        self,
        search: PlaceSearch,
        capacity: int = DEFAULT_CAPACITY,
        performance: Optional[PerformanceMetrics] = None,
    ):
        """Initialize the cache.

        Args:
            search: Nearest-place search called on a miss.
            capacity: Maximum number of cached cells.
            performance: Optional timing collector.
        """
        if capacity < 1:
            raise ValueError("Capacity must be at least 1")
        self._search = search
        self._capacity = capacity
        self._performance = performance
        self._entries: OrderedDict[tuple[int, int], str] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def resolve(self, lat: float, long: float) -> str:
        """Return the place name for a coordinate pair.

        (0, 0) is what images without GPS data report, so it short-circuits
        to the Null Island sentinel without a lookup.
        """
        if lat == 0.0 and long == 0.0:
            return NULL_ISLAND

        timer = Timer()
        key = quantize(lat, long)

        with self._lock:
            place = self._get(key)
            if place is not None:
                self._record(timer, cache_hit=True)
                return place

            if not self._search.thread_safe:
                place = self._lookup(lat, long)
                self._put(key, place)
                self._record(timer, cache_hit=False)
                return place

        place = self._lookup(lat, long)
        with self._lock:
            self._put(key, place)
        self._record(timer, cache_hit=False)
        return place

    def _get(self, key: tuple[int, int]) -> Optional[str]:
        place = self._entries.get(key)
        if place is not None:
            self._entries.move_to_end(key)
        return place

    def _put(self, key: tuple[int, int], place: str) -> None:
        self._entries[key] = place
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted geocode cell %s", evicted)

    def _lookup(self, lat: float, long: float) -> str:
        place = self._search.search(lat, long)
        if not place:
            logger.warning("No place found for %s, %s", lat, long)
            return UNKNOWN_PLACE
        logger.debug("Place from reverse geocoding = %s", place)
        return place

    def _record(self, timer: Timer, cache_hit: bool) -> None:
        if self._performance is not None:
            self._performance.record_geocoding(timer.elapsed(), cache_hit)
