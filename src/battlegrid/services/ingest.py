from __future__ import annotations
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .base import Service, ServiceContext
from ..types import (
    Detection,
    DetectionPayload,
    GeoPoint,
    LogPayload,
    PAYLOAD_TYPES,
    Payload,
    SOURCES,
    SensorEvent,
    StatusPayload,
    TelemetryPayload,
)
from ..utils import now_ms, schema_error


EVENT_SCHEMA = "sensor_event.schema.json"


class MalformedEvent(ValueError):
    def __init__(self, reason: str, detail: str = ""):
        super().__init__(f"{reason}: {detail}" if detail else reason)
        self.reason = reason
        self.detail = detail


def _present(raw: Mapping[str, Any], key: str) -> bool:
    value = raw.get(key)
    return value is not None and str(value).strip() != ""


def _check_identity(raw: Mapping[str, Any]) -> None:
    if not _present(raw, "id"):
        raise MalformedEvent("missing_id")
    if not _present(raw, "source"):
        raise MalformedEvent("missing_source")
    if not _present(raw, "sensor_id"):
        raise MalformedEvent("missing_sensor_id")
    if raw["source"] not in SOURCES:
        raise MalformedEvent("unknown_source", str(raw["source"]))
    if raw.get("payload_type") not in PAYLOAD_TYPES:
        raise MalformedEvent("unknown_payload_type", str(raw.get("payload_type")))


def _build_payload(payload_type: str, raw: Dict[str, Any]) -> Payload:
    if payload_type == "detection":
        return DetectionPayload(
            detections=[Detection(cls=str(d["class"]), confidence=float(d["confidence"])) for d in raw.get("detections", [])],
            notes=str(raw.get("notes", "")),
        )
    if payload_type == "telemetry":
        return TelemetryPayload(values={str(k): float(v) for k, v in raw.items()})
    if payload_type == "log":
        return LogPayload(message=str(raw["message"]), level=str(raw.get("level", "info")))
    if payload_type == "status":
        return StatusPayload(change_detected=bool(raw["change_detected"]), area=str(raw.get("area", "")))
    raise MalformedEvent("unknown_payload_type", payload_type)


def parse_event(raw: Mapping[str, Any], default_ts_ms: Optional[int] = None) -> SensorEvent:
    """Validate a wire-form event and build a SensorEvent.

    Raises MalformedEvent with a machine-readable reason on any defect.
    """
    if not isinstance(raw, Mapping):
        raise MalformedEvent("malformed_event", f"expected a mapping, got {type(raw).__name__}")
    _check_identity(raw)
    if not isinstance(raw.get("payload"), Mapping):
        raise MalformedEvent("malformed_payload", f"payload for '{raw['payload_type']}' must be an object")

    err = schema_error(EVENT_SCHEMA, dict(raw))
    if err is not None:
        path = list(err.absolute_path)
        where = "/".join(str(p) for p in path)
        detail = f"{where}: {err.message}" if where else err.message
        reason = "malformed_payload" if path and path[0] == "payload" else "malformed_event"
        raise MalformedEvent(reason, detail)

    loc = raw.get("location")
    ts_ms = raw.get("ts_ms")
    return SensorEvent(
        id=str(raw["id"]),
        source=str(raw["source"]),
        sensor_id=str(raw["sensor_id"]),
        payload_type=str(raw["payload_type"]),
        payload=_build_payload(raw["payload_type"], dict(raw["payload"])),
        ts_ms=int(ts_ms) if ts_ms else (default_ts_ms if default_ts_ms is not None else now_ms()),
        location=GeoPoint(lat=float(loc["lat"]), lng=float(loc["lng"])) if loc else None,
    )


def normalize_event(event: SensorEvent | Mapping[str, Any], default_ts_ms: Optional[int] = None) -> SensorEvent:
    """Accept either a SensorEvent or its wire form; always returns a fresh copy."""
    if isinstance(event, SensorEvent):
        try:
            raw = event.to_dict()
        except TypeError as exc:
            raise MalformedEvent("malformed_payload", str(exc)) from exc
        return parse_event(raw, default_ts_ms)
    return parse_event(event, default_ts_ms)


class IngestService(Service):
    """Loads a batch of wire-form events from a YAML or JSON document.

    Malformed items are audited and skipped; the rest are returned in order.
    """

    name = "ingest"
    version = "0.1"

    def run(self, inp: Dict[str, Any], ctx: ServiceContext) -> List[SensorEvent]:
        path = inp["path"]
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        items = raw.get("events", []) if isinstance(raw, dict) else raw
        events: List[SensorEvent] = []
        for item in items:
            try:
                events.append(parse_event(item))
            except MalformedEvent as exc:
                ctx.metrics.inc("events_rejected")
                ctx.audit.write("ingest_rejected", {"id": (item or {}).get("id") if isinstance(item, Mapping) else None, "reason": exc.reason, "detail": exc.detail})
        ctx.audit.write("ingest_batch_done", {"count": len(events), "path": str(path)})
        return events
