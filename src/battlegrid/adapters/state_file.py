from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import orjson

from ..missions import mission_from_dict
from ..services.ingest import parse_event
from ..types import Mission, SensorEvent


class StateFile:
    """Persists the event log and mission store as a single JSON document.

    Writes go to a sibling temp file first and are renamed into place, so a
    crash mid-write leaves the previous state intact.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def save(self, events: Sequence[SensorEvent], missions: Sequence[Mission]) -> None:
        doc = {
            "events": [ev.to_dict() for ev in events],
            "missions": [m.to_dict() for m in missions],
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        with tmp.open("wb") as f:
            f.write(orjson.dumps(doc))
        os.replace(tmp, self.path)

    def load(self) -> Tuple[List[SensorEvent], List[Mission]]:
        if not self.path.exists():
            return [], []
        doc: Dict[str, Any] = orjson.loads(self.path.read_bytes())
        events = [parse_event(raw) for raw in doc.get("events", [])]
        missions = [mission_from_dict(raw) for raw in doc.get("missions", [])]
        return events, missions
