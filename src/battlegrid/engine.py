from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional, Sequence
import os
import yaml

from .adapters.state_file import StateFile
from .alerts import build_assessment, render_alert_preview
from .audit import AuditLogger
from .event_log import DEFAULT_CAPACITY, EventLog
from .hotspot import DEFAULT_MARKER_CAPACITY, HotspotTracker, LatLng
from .metrics import Metrics
from .missions import DEFAULT_DUE_HOURS, MissionStore, missions_from_config
from .rules_engine import FusionRules, RulesEngine
from .services.base import ServiceContext
from .services.exporter import ExportService, build_snapshot
from .services.ingest import MalformedEvent, normalize_event
from .types import IngestResult, Mission, RiskAssessment, SensorEvent
from .utils import sha256_json


SCHEMA_VERSION = "0.1"
DEFAULT_WINDOW = 10


def load_config(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_rules(config: Dict[str, Any]) -> RulesEngine:
    return RulesEngine(FusionRules.from_config(config.get("fusion")))


class Engine:
    """Owns the event log and mission store and exposes the engine's operations.

    Each store carries its own lock; nothing here holds both at once. Audit
    writes and persistence happen after the store call has returned.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        ctx: ServiceContext,
        events: Optional[Sequence[SensorEvent]] = None,
        missions: Optional[Sequence[Mission]] = None,
    ):
        self.config = config
        self.ctx = ctx
        engine_cfg = config.get("engine", {})
        self.window_size = int(engine_cfg.get("window_size", DEFAULT_WINDOW))
        self.events = EventLog(capacity=int(engine_cfg.get("event_capacity", DEFAULT_CAPACITY)))
        self.hotspots = HotspotTracker(marker_capacity=int(engine_cfg.get("marker_capacity", DEFAULT_MARKER_CAPACITY)))
        self.missions = MissionStore(
            missions=missions,
            default_due_hours=float(config.get("missions", {}).get("default_due_hours", DEFAULT_DUE_HOURS)),
        )
        self.rules = load_rules(config)
        for ev in events or []:
            self.events.append(ev)
            self.hotspots.observe(ev)

    # -- ingestion -------------------------------------------------------

    def ingest(self, event: SensorEvent | Mapping[str, Any]) -> IngestResult:
        try:
            ev = normalize_event(event)
        except MalformedEvent as exc:
            raw_id = event.id if isinstance(event, SensorEvent) else (event.get("id") if isinstance(event, Mapping) else None)
            return self._reject(raw_id, exc.reason, exc.detail)

        if not self.events.append_unique(ev):
            return self._reject(ev.id, "duplicate_id", "id already present in the retained window")
        self.hotspots.observe(ev)
        self.ctx.metrics.inc("events_ingested")
        return IngestResult(accepted=True, event_id=ev.id)

    def _reject(self, event_id: Any, reason: str, detail: str) -> IngestResult:
        event_id = str(event_id) if event_id is not None else None
        self.ctx.metrics.inc("events_rejected")
        self.ctx.metrics.inc(f"events_rejected_{reason}")
        self.ctx.audit.write("ingest_rejected", {"id": event_id, "reason": reason, "detail": detail})
        return IngestResult(accepted=False, event_id=event_id, reason=reason, detail=detail)

    # -- queries ---------------------------------------------------------

    def recent_events(self, n: Optional[int] = None) -> List[SensorEvent]:
        return self.events.recent(self.window_size if n is None else n)

    def classify(self, window: Optional[Sequence[SensorEvent]] = None) -> RiskAssessment:
        """Assess the given window, or the most recent `window_size` events."""
        if window is None:
            window = self.events.recent(self.window_size)
        with self.ctx.metrics.timer("classify"):
            signals = self.rules.apply(window)
            assessment = build_assessment(signals, window)
        self.ctx.metrics.inc("classifications")
        return assessment

    def alert_preview(self) -> str:
        window = self.events.recent(self.window_size)
        return render_alert_preview(self.classify(window) if window else None)

    def hotspot(self) -> Optional[LatLng]:
        return self.hotspots.hotspot()

    def recent_markers(self) -> List[LatLng]:
        return self.hotspots.recent_markers()

    # -- missions --------------------------------------------------------

    def create_mission(
        self,
        title: str = "",
        description: str = "",
        due: Optional[str] = None,
        priority: str = "Medium",
        personnel: Sequence[str] | str | None = None,
        equipment: Sequence[str] | str | None = None,
    ) -> Mission:
        mission = self.missions.create(title, description, due, priority, personnel, equipment)
        self.ctx.metrics.inc("missions_created")
        self.ctx.audit.write("mission_created", {"id": mission.id, "priority": mission.priority, "personnel": mission.personnel})
        return mission

    def list_missions(self) -> List[Mission]:
        return self.missions.list()

    def optimize_allocation(self) -> List[Mission]:
        with self.ctx.metrics.timer("allocation"):
            missions = self.missions.optimize()
        self.ctx.metrics.inc("allocation_runs")
        self.ctx.audit.write(
            "allocation_optimized",
            {"missions": len(missions), "assignments": {m.id: m.personnel for m in missions}},
        )
        return missions

    # -- export & persistence -------------------------------------------

    def export_snapshot(self, now: Optional[int] = None) -> Dict[str, Any]:
        events = self.events.all()
        return build_snapshot(
            events=events,
            missions=self.missions.list(),
            assessment=self.classify(events[-self.window_size:] if self.window_size else []),
            hotspot=self.hotspots.hotspot(),
            markers=self.hotspots.recent_markers(),
            counters=self.ctx.metrics.snapshot()["counters"],
            export_cfg=self.config.get("export", {}),
            schema_version=str(self.config.get("battlegrid", {}).get("schema_version", SCHEMA_VERSION)),
            now=now,
        )

    def export(self, out_dir: str, now: Optional[int] = None) -> Dict[str, str]:
        with self.ctx.metrics.timer("export"):
            return ExportService().run({"out_dir": out_dir, "snapshot": self.export_snapshot(now)}, self.ctx)

    def save_state(self, path: Optional[str] = None) -> Optional[str]:
        path = path or self.config.get("engine", {}).get("state_path")
        if not path:
            return None
        StateFile(path).save(self.events.all(), self.missions.list())
        self.ctx.audit.write("state_saved", {"path": path, "events": len(self.events), "missions": len(self.missions)})
        return path


def build_engine(config: Dict[str, Any], out_dir: str) -> Engine:
    """Wire audit, metrics and stores from config; restore persisted state if configured."""
    os.makedirs(out_dir, exist_ok=True)
    audit_cfg = config.get("audit", {})
    audit = AuditLogger(
        os.path.join(out_dir, "audit_log.jsonl"),
        actor=audit_cfg.get("actor", "engine"),
        sign_secret=audit_cfg.get("sign_secret"),
        verify_on_start=bool(audit_cfg.get("verify_on_start", False)),
    )
    ctx = ServiceContext(config=config, audit=audit, metrics=Metrics())

    engine_cfg = config.setdefault("engine", {})
    state_path = engine_cfg.get("state_path")
    if state_path and not os.path.isabs(state_path):
        engine_cfg["state_path"] = state_path = os.path.join(out_dir, state_path)

    events: List[SensorEvent] = []
    missions: List[Mission] = []
    if state_path:
        events, missions = StateFile(state_path).load()
        if events or missions:
            audit.write("state_restored", {"path": state_path, "events": len(events), "missions": len(missions)})
    if not missions:
        missions = missions_from_config(config.get("missions", {}).get("seed", []))

    engine = Engine(config, ctx, events=events, missions=missions)
    audit.write(
        "engine_start",
        {
            "schema_version": SCHEMA_VERSION,
            "config_hash": sha256_json(config),
            "event_capacity": engine.events.capacity,
            "window_size": engine.window_size,
            "missions": len(missions),
        },
    )
    return engine
