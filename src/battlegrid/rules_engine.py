from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .types import (
    DetectionPayload,
    FusionSignals,
    LogPayload,
    SensorEvent,
    StatusPayload,
    TelemetryPayload,
)


@dataclass
class FusionRules:
    person_classes: List[str] = field(default_factory=lambda: ["person"])
    vehicle_classes: List[str] = field(default_factory=lambda: ["pickup_truck", "vehicle"])
    motion_field: str = "motion_index"
    motion_threshold: float = 5.0
    denial_keyword: str = "denied"

    @classmethod
    def from_config(cls, section: Dict[str, Any] | None) -> "FusionRules":
        section = section or {}
        defaults = cls()
        return cls(
            person_classes=list(section.get("person_classes", defaults.person_classes)),
            vehicle_classes=list(section.get("vehicle_classes", defaults.vehicle_classes)),
            motion_field=str(section.get("motion_field", defaults.motion_field)),
            motion_threshold=float(section.get("motion_threshold", defaults.motion_threshold)),
            denial_keyword=str(section.get("denial_keyword", defaults.denial_keyword)),
        )


class RulesEngine:
    """Rule-based fusion of a window of sensor events into a risk level.

    Stateless between calls: the same window always yields the same signals.
    """

    def __init__(self, rules: FusionRules | None = None):
        self.rules = rules or FusionRules()

    def apply(self, window: Sequence[SensorEvent]) -> FusionSignals:
        signals = FusionSignals()
        keyword = self.rules.denial_keyword.lower()
        for ev in window:
            payload = ev.payload
            if isinstance(payload, DetectionPayload):
                for det in payload.detections:
                    if det.cls in self.rules.person_classes:
                        signals.person_detected = True
                    if det.cls in self.rules.vehicle_classes:
                        signals.vehicle_detected = True
            elif isinstance(payload, TelemetryPayload):
                motion = payload.values.get(self.rules.motion_field)
                if motion is not None and motion > signals.max_motion:
                    signals.max_motion = float(motion)
            elif isinstance(payload, LogPayload):
                if keyword in payload.message.lower():
                    signals.access_denied = True
            elif isinstance(payload, StatusPayload):
                # Change detection is surfaced as evidence only; it carries no fusion weight.
                pass
            else:
                raise TypeError(f"Unhandled payload for event {ev.id}: {type(payload).__name__}")

        signals.risk = self._risk(signals)
        return signals

    def _risk(self, signals: FusionSignals) -> str:
        risk = "LOW"
        if (signals.person_detected or signals.vehicle_detected) and signals.max_motion > self.rules.motion_threshold:
            risk = "MEDIUM"
        # A denial only escalates an already elevated window.
        if signals.access_denied and risk != "LOW":
            risk = "HIGH"
        return risk
