from __future__ import annotations

import copy
import random
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import yaml

from ..types import IngestResult
from ..utils import now_ms

if TYPE_CHECKING:
    from ..engine import Engine


def _resolve_path(path: str) -> Path:
    p = Path(path)
    if p.is_absolute() or p.exists():
        return p
    project_root = Path(__file__).resolve().parents[3]
    candidate = project_root / p
    if candidate.exists():
        return candidate
    return p


def load_scenarios(path: str) -> Dict[str, List[Dict[str, Any]]]:
    with _resolve_path(path).open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    scenarios = raw.get("scenarios", {})
    if not isinstance(scenarios, dict):
        raise ValueError(f"'scenarios' in {path} must be a mapping of name -> event templates")
    return {str(name): list(templates or []) for name, templates in scenarios.items()}


class ScenarioFeed:
    """Demo producer: replays random templates from one scenario.

    Every emitted event gets a fresh id suffix and timestamp, then goes
    through the same `Engine.ingest` contract as any other producer.
    """

    def __init__(self, templates: List[Dict[str, Any]], rng: Optional[random.Random] = None, clock: Callable[[], int] = now_ms):
        if not templates:
            raise ValueError("scenario has no event templates")
        self.templates = templates
        self.rng = rng or random.Random()
        self.clock = clock
        self.seq = 0

    def next_event(self) -> Dict[str, Any]:
        base = self.rng.choice(self.templates)
        ev = copy.deepcopy(base)
        self.seq += 1
        ev["id"] = f"{base.get('id', 'evt')}-{self.seq:05d}"
        ev["ts_ms"] = self.clock()
        return ev

    def collect(self, engine: "Engine", count: int = 1) -> List[IngestResult]:
        return [engine.ingest(self.next_event()) for _ in range(count)]


def run_feed(
    engine: "Engine",
    feed: ScenarioFeed,
    count: int,
    hz: float = 0.0,
    sleep: Callable[[float], None] = time.sleep,
) -> List[IngestResult]:
    """Ingest `count` events; with hz > 0, pace them at that rate (clamped to 0.1..10)."""
    results: List[IngestResult] = []
    interval = 1.0 / min(10.0, max(0.1, hz)) if hz else 0.0
    for i in range(count):
        results.extend(feed.collect(engine, 1))
        if interval and i < count - 1:
            sleep(interval)
    return results
