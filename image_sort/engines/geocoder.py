"""Offline nearest-place search backed by `reverse_geocoder`."""
from __future__ import annotations

import logging
import threading
from typing import Any, Optional


logger = logging.getLogger(__name__)


class ReverseGeocoderSearch:
    """Nearest city lookup on the bundled GeoNames data set.

    The data set takes a few seconds to load, so it is loaded once, on the
    first search, and shared afterwards. Lookups go through one k-d tree
    instance and are not declared thread-safe; the geocode cache serializes
    them.
    """

    thread_safe = False

    def __init__(self):
        self._geocoder: Optional[Any] = None
        self._load_lock = threading.Lock()

    def _load(self) -> Any:
        with self._load_lock:
            if self._geocoder is None:
                import reverse_geocoder

                logger.info("Loading reverse geocoding data...")
                # mode=1: single process; workers are already threads
                self._geocoder = reverse_geocoder.RGeocoder(mode=1, verbose=False)
            return self._geocoder

    def search(self, lat: float, long: float) -> Optional[str]:
        """Return the name of the nearest place, or None."""
        results = self._load().query([(lat, long)])
        if not results:
            return None
        record = results[0]
        logger.debug("Record %s", record)
        return record.get("name") or None
