from __future__ import annotations
import re
import threading
import time
from contextlib import contextmanager
from typing import Dict


class Metrics:
    """Thread-safe in-memory counters and timers for engine observability."""

    def __init__(self, prefix: str = "battlegrid") -> None:
        self.prefix = prefix
        self.counters: Dict[str, float] = {}
        self.timings: Dict[str, float] = {}
        self._lock = threading.Lock()

    def inc(self, name: str, value: float = 1) -> None:
        with self._lock:
            self.counters[name] = self.counters.get(name, 0) + value

    def get(self, name: str) -> float:
        with self._lock:
            return self.counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start
            with self._lock:
                self.timings[name] = self.timings.get(name, 0) + duration
                self.counters[f"{name}_count"] = self.counters.get(f"{name}_count", 0) + 1

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {"counters": dict(self.counters), "timings": dict(self.timings)}

    def to_prometheus(self) -> str:
        snap = self.snapshot()
        lines = []
        for name, value in sorted(snap["counters"].items()):
            metric = f"{self.prefix}_{_metric_name(name)}_total"
            lines.append(f"# TYPE {metric} counter")
            lines.append(f"{metric} {value:g}")
        for name, value in sorted(snap["timings"].items()):
            metric = f"{self.prefix}_{_metric_name(name)}_seconds_total"
            lines.append(f"# TYPE {metric} counter")
            lines.append(f"{metric} {value:.6f}")
        return "\n".join(lines) + "\n"


def _metric_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_]", "_", name)
