from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence
import datetime
import os

import numpy as np
from jsonschema import ValidationError

from .base import Service, ServiceContext
from ..alerts import confidence_for
from ..types import Mission, RiskAssessment, SensorEvent
from ..utils import now_ms, pretty_json, validate_json


EXPORT_SCHEMA = "analytics_export.schema.json"
EXPORT_FILENAME = "battlegrid_analytics.json"


def event_trend(events: Sequence[SensorEvent], now: int, buckets: int = 30, bucket_seconds: int = 60) -> List[int]:
    """Per-bucket event counts, oldest bucket first; the last bucket is the current one."""
    if not events:
        return [0] * buckets
    ts = np.asarray([ev.ts_ms for ev in events], dtype=np.int64)
    ages = (now - ts) // (bucket_seconds * 1000)
    ages = ages[(ages >= 0) & (ages < buckets)]
    counts = np.bincount(buckets - 1 - ages, minlength=buckets)
    return [int(c) for c in counts]


def resupply_days(missions_count: int, supply_units: float, burn_units_per_day: float) -> int:
    pace = max(1, missions_count)
    return max(1, round(supply_units / (pace * burn_units_per_day)))


def build_snapshot(
    events: Sequence[SensorEvent],
    missions: Sequence[Mission],
    assessment: RiskAssessment,
    hotspot: Optional[tuple],
    markers: Sequence[tuple],
    counters: Dict[str, float],
    export_cfg: Dict[str, Any],
    schema_version: str = "0.1",
    now: Optional[int] = None,
) -> Dict[str, Any]:
    now = now if now is not None else now_ms()
    staffed = sum(1 for m in missions if m.personnel)
    return {
        "schema_version": schema_version,
        "generated_at": datetime.datetime.fromtimestamp(now / 1000, datetime.timezone.utc).isoformat(),
        "kpis": {
            "events_retained": len(events),
            "events_ingested": int(counters.get("events_ingested", 0)),
            "events_rejected": int(counters.get("events_rejected", 0)),
            "risk": assessment.risk,
            "confidence": confidence_for(assessment.risk),
            "summary": assessment.summary,
            "hotspot": list(hotspot) if hotspot else None,
            "markers": len(markers),
            "staffed_missions": staffed,
        },
        "trend": event_trend(
            events,
            now,
            buckets=int(export_cfg.get("trend_buckets", 30)),
            bucket_seconds=int(export_cfg.get("bucket_seconds", 60)),
        ),
        "missions_count": len(missions),
        "resupply_days": resupply_days(
            len(missions),
            float(export_cfg.get("supply_units", 100)),
            float(export_cfg.get("burn_units_per_day", 5)),
        ),
    }


class ExportService(Service):
    name = "export"
    version = "0.1"

    def run(self, inp: Dict[str, Any], ctx: ServiceContext) -> Dict[str, str]:
        out_dir = inp["out_dir"]
        obj = inp["snapshot"]
        os.makedirs(out_dir, exist_ok=True)

        export_cfg = ctx.config.get("export", {})
        formats = export_cfg.get("formats", ["json"])

        try:
            validate_json(EXPORT_SCHEMA, obj)
        except ValidationError as exc:
            ctx.audit.write("export_schema_error", {"error": exc.message})

        result_paths: Dict[str, str] = {}

        if "json" in formats:
            path = os.path.join(out_dir, export_cfg.get("filename", EXPORT_FILENAME))
            with open(path, "w", encoding="utf-8") as f:
                f.write(pretty_json(obj))
            result_paths["json"] = path
            ctx.metrics.inc("export_json_writes")

        if "stdout" in formats:
            print(pretty_json(obj))
            result_paths["stdout"] = "stdout"

        ctx.audit.write("export_done", {"paths": result_paths, "missions_count": obj.get("missions_count")})
        return result_paths
