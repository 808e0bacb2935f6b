from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


SOURCES = ("drone", "ground", "access", "sat", "radio")
PAYLOAD_TYPES = ("detection", "telemetry", "log", "status")
LOG_LEVELS = ("info", "warn", "error")
RISK_LEVELS = ("LOW", "MEDIUM", "HIGH")
PRIORITIES = ("Low", "Medium", "High")


@dataclass
class Detection:
    cls: str
    confidence: float


@dataclass
class DetectionPayload:
    detections: List[Detection] = field(default_factory=list)
    notes: str = ""


@dataclass
class TelemetryPayload:
    values: Dict[str, float] = field(default_factory=dict)


@dataclass
class LogPayload:
    message: str
    level: str = "info"


@dataclass
class StatusPayload:
    change_detected: bool
    area: str = ""


Payload = Union[DetectionPayload, TelemetryPayload, LogPayload, StatusPayload]

PAYLOAD_CLASSES = {
    "detection": DetectionPayload,
    "telemetry": TelemetryPayload,
    "log": LogPayload,
    "status": StatusPayload,
}


@dataclass
class GeoPoint:
    lat: float
    lng: float

    def as_tuple(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


@dataclass
class SensorEvent:
    id: str
    source: str
    sensor_id: str
    payload_type: str
    payload: Payload
    ts_ms: int = 0
    location: Optional[GeoPoint] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire form, the same shape ingestion accepts."""
        return {
            "id": self.id,
            "source": self.source,
            "sensor_id": self.sensor_id,
            "payload_type": self.payload_type,
            "payload": payload_to_dict(self.payload),
            "ts_ms": self.ts_ms,
            "location": {"lat": self.location.lat, "lng": self.location.lng} if self.location else None,
        }


def payload_to_dict(payload: Payload) -> Dict[str, Any]:
    if isinstance(payload, DetectionPayload):
        return {
            "detections": [{"class": d.cls, "confidence": d.confidence} for d in payload.detections],
            "notes": payload.notes,
        }
    if isinstance(payload, TelemetryPayload):
        return dict(payload.values)
    if isinstance(payload, LogPayload):
        return {"message": payload.message, "level": payload.level}
    if isinstance(payload, StatusPayload):
        return {"change_detected": payload.change_detected, "area": payload.area}
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


@dataclass
class FusionSignals:
    person_detected: bool = False
    vehicle_detected: bool = False
    max_motion: float = 0.0
    access_denied: bool = False
    risk: str = "LOW"


@dataclass
class RiskAssessment:
    summary: str
    risk: str
    actions: List[str] = field(default_factory=list)
    evidence: List[str] = field(default_factory=list)
    signals: Optional[FusionSignals] = None


@dataclass
class Mission:
    id: str
    title: str
    description: str
    due: str  # ISO-8601
    priority: str
    personnel: List[str] = field(default_factory=list)
    equipment: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "due": self.due,
            "priority": self.priority,
            "personnel": list(self.personnel),
            "equipment": list(self.equipment),
        }


@dataclass
class IngestResult:
    accepted: bool
    event_id: Optional[str] = None
    reason: Optional[str] = None
    detail: Optional[str] = None
