from __future__ import annotations
import threading
from collections import deque
from typing import Deque, List, Optional, Tuple

from .types import SensorEvent


DEFAULT_MARKER_CAPACITY = 50

LatLng = Tuple[float, float]


class HotspotTracker:
    """Tracks the latest geolocated event and a capped trail of recent markers.

    The hotspot is simply the most recent location; no clustering is done.
    """

    def __init__(self, marker_capacity: int = DEFAULT_MARKER_CAPACITY):
        if marker_capacity <= 0:
            raise ValueError(f"marker_capacity must be positive, got {marker_capacity}")
        self._markers: Deque[LatLng] = deque(maxlen=marker_capacity)
        self._current: Optional[LatLng] = None
        self._lock = threading.Lock()

    def observe(self, event: SensorEvent) -> bool:
        if event.location is None:
            return False
        point = event.location.as_tuple()
        with self._lock:
            self._markers.append(point)
            self._current = point
        return True

    def hotspot(self) -> Optional[LatLng]:
        with self._lock:
            return self._current

    def recent_markers(self) -> List[LatLng]:
        with self._lock:
            return list(self._markers)
