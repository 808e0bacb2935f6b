from __future__ import annotations
import threading
from collections import Counter, deque
from typing import Deque, Iterable, List, Optional

from .types import SensorEvent


DEFAULT_CAPACITY = 500


class EventLog:
    """Bounded FIFO of sensor events.

    Appends and reads share one lock; reads always hand back a copied list so
    callers never hold a reference that a later append could mutate.
    Timestamps are kept non-decreasing: an event older than the tail is
    raised to the tail's timestamp on append.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, events: Optional[Iterable[SensorEvent]] = None):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._events: Deque[SensorEvent] = deque()
        self._ids: Counter = Counter()
        self._lock = threading.Lock()
        self.total_appended = 0
        for ev in events or []:
            self.append(ev)

    def _append_locked(self, event: SensorEvent) -> None:
        if self._events and event.ts_ms < self._events[-1].ts_ms:
            event.ts_ms = self._events[-1].ts_ms
        self._events.append(event)
        self._ids[event.id] += 1
        self.total_appended += 1
        if len(self._events) > self.capacity:
            evicted = self._events.popleft()
            self._ids[evicted.id] -= 1
            if self._ids[evicted.id] <= 0:
                del self._ids[evicted.id]

    def append(self, event: SensorEvent) -> None:
        with self._lock:
            self._append_locked(event)

    def append_unique(self, event: SensorEvent) -> bool:
        """Append unless the id is already retained. Check and append are atomic."""
        with self._lock:
            if event.id in self._ids:
                return False
            self._append_locked(event)
            return True

    def recent(self, n: int) -> List[SensorEvent]:
        if n < 0:
            raise ValueError(f"window size must be non-negative, got {n}")
        if n == 0:
            return []
        with self._lock:
            items = list(self._events)
        return items[-n:]

    def all(self) -> List[SensorEvent]:
        with self._lock:
            return list(self._events)

    def contains(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
