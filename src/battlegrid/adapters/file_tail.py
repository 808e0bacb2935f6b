from __future__ import annotations
import json
import time
from pathlib import Path
from typing import TYPE_CHECKING, List

from .base import IngestAdapter
from ..types import IngestResult

if TYPE_CHECKING:
    from ..engine import Engine


class FileTailAdapter(IngestAdapter):
    """Polls a file for newline-delimited JSON sensor events.

    Keeps a byte offset between calls so each line is ingested once; a
    trailing partial line is left for the next poll.
    """

    def __init__(self, path: str, max_items: int = 100, poll_interval: float = 0.0):
        self.path = Path(path)
        self.max_items = max_items
        self.poll_interval = poll_interval
        self.offset = 0

    def collect(self, engine: "Engine") -> List[IngestResult]:
        results: List[IngestResult] = []
        if not self.path.exists():
            return results

        with self.path.open("rb") as f:
            f.seek(self.offset)
            while len(results) < self.max_items:
                line = f.readline()
                if not line or not line.endswith(b"\n"):
                    break
                self.offset += len(line)
                text = line.decode("utf-8").strip()
                if not text:
                    continue
                try:
                    obj = json.loads(text)
                except json.JSONDecodeError as exc:
                    engine.ctx.metrics.inc("events_rejected")
                    engine.ctx.audit.write("ingest_tail_error", {"error": str(exc), "offset": self.offset})
                    results.append(IngestResult(accepted=False, reason="malformed_event", detail=str(exc)))
                    continue
                results.append(engine.ingest(obj))

        if self.poll_interval:
            time.sleep(self.poll_interval)
        engine.ctx.audit.write(
            "ingest_tail",
            {"path": str(self.path), "count": len(results), "accepted": sum(1 for r in results if r.accepted)},
        )
        return results
