"""Small constructors for sensor events used across the test suite."""
from battlegrid.types import (
    Detection,
    DetectionPayload,
    GeoPoint,
    LogPayload,
    SensorEvent,
    StatusPayload,
    TelemetryPayload,
)


def detection(event_id, *classes, loc=(28.6149, 77.2080), sensor_id="drone-alpha-2", ts_ms=1):
    return SensorEvent(
        id=event_id,
        source="drone",
        sensor_id=sensor_id,
        payload_type="detection",
        payload=DetectionPayload(detections=[Detection(cls=c, confidence=0.9) for c in classes], notes="pass"),
        ts_ms=ts_ms,
        location=GeoPoint(*loc) if loc else None,
    )


def telemetry(event_id, loc=None, ts_ms=1, **values):
    return SensorEvent(
        id=event_id,
        source="ground",
        sensor_id="ms-22",
        payload_type="telemetry",
        payload=TelemetryPayload(values={k: float(v) for k, v in values.items()}),
        ts_ms=ts_ms,
        location=GeoPoint(*loc) if loc else None,
    )


def log_event(event_id, message, level="warn", loc=None, ts_ms=1):
    return SensorEvent(
        id=event_id,
        source="access",
        sensor_id="gate-north-03",
        payload_type="log",
        payload=LogPayload(message=message, level=level),
        ts_ms=ts_ms,
        location=GeoPoint(*loc) if loc else None,
    )


def status(event_id, change_detected=True, area="bridge-segment-12", loc=None, ts_ms=1):
    return SensorEvent(
        id=event_id,
        source="sat",
        sensor_id="sat-geo-5",
        payload_type="status",
        payload=StatusPayload(change_detected=change_detected, area=area),
        ts_ms=ts_ms,
        location=GeoPoint(*loc) if loc else None,
    )


def raw_event(event_id="evt-1", **overrides):
    raw = {
        "id": event_id,
        "source": "drone",
        "sensor_id": "drone-alpha-2",
        "payload_type": "detection",
        "payload": {"detections": [{"class": "person", "confidence": 0.91}], "notes": "north pass"},
        "location": {"lat": 28.6149, "lng": 77.2080},
    }
    raw.update(overrides)
    return raw
