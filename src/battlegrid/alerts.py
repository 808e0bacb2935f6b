from __future__ import annotations
from typing import List, Sequence

from .types import FusionSignals, RiskAssessment, SensorEvent


EVIDENCE_LIMIT = 5
SUMMARY_FRAGMENT_LIMIT = 3
NO_SIGNALS = "no significant signals"

LOW_RISK_ACTIONS = (
    "Monitor area and keep logging.",
    "Tune sensor thresholds if recurrent.",
)

ELEVATED_RISK_ACTIONS = (
    "Alert on-site team and share live feed.",
    "Issue pre-recorded audio warning.",
    "Temporarily lock secondary gates (10m).",
    "Archive & tag footage.",
)

CONFIDENCE_BY_RISK = {"HIGH": 0.86, "MEDIUM": 0.72, "LOW": 0.41}


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def summarize(signals: FusionSignals) -> str:
    parts: List[str] = []
    if signals.person_detected:
        parts.append("person detected")
    if signals.vehicle_detected:
        parts.append("vehicle detected")
    if signals.max_motion > 0:
        parts.append(f"motion {_format_number(signals.max_motion)}")
    if signals.access_denied:
        parts.append("recent access denial")
    if not parts:
        parts.append(NO_SIGNALS)
    return ", ".join(parts[:SUMMARY_FRAGMENT_LIMIT]) + "."


def recommended_actions(risk: str) -> List[str]:
    if risk == "LOW":
        return list(LOW_RISK_ACTIONS)
    return list(ELEVATED_RISK_ACTIONS)


def render_evidence(event: SensorEvent) -> str:
    text = f"{event.source}:{event.sensor_id} {event.payload_type}"
    if event.location is not None:
        text += f" @({event.location.lat:.5f},{event.location.lng:.5f})"
    return text


def build_assessment(signals: FusionSignals, window: Sequence[SensorEvent]) -> RiskAssessment:
    return RiskAssessment(
        summary=summarize(signals),
        risk=signals.risk,
        actions=recommended_actions(signals.risk),
        evidence=[render_evidence(ev) for ev in list(window)[:EVIDENCE_LIMIT]],
        signals=signals,
    )


def confidence_for(risk: str) -> float:
    return CONFIDENCE_BY_RISK[risk]


def render_analysis(assessment: RiskAssessment) -> str:
    """Plain-text analysis block used by the CLI and operator consoles."""
    lines = [
        f"Summary: {assessment.summary}",
        f"Risk: {assessment.risk}",
        "",
        "Recommended:",
    ]
    lines.extend(f"- {a}" for a in assessment.actions)
    lines.extend(["", "Evidence:"])
    lines.extend(f"- {e}" for e in assessment.evidence)
    return "\n".join(lines)


def render_alert_preview(assessment: RiskAssessment | None) -> str:
    if assessment is None or not assessment.evidence:
        return "No recent events."
    pct = round(confidence_for(assessment.risk) * 100)
    lines = [
        "AUTO-ALERT",
        f"Risk: {assessment.risk}  (confidence {pct}%)",
        f"Summary: {assessment.summary}",
        "Actions:",
    ]
    lines.extend(f"- {a}" for a in assessment.actions)
    return "\n".join(lines)
