from battlegrid.alerts import (
    ELEVATED_RISK_ACTIONS,
    LOW_RISK_ACTIONS,
    build_assessment,
    confidence_for,
    render_alert_preview,
    render_analysis,
    render_evidence,
    summarize,
)
from battlegrid.rules_engine import RulesEngine
from battlegrid.types import FusionSignals
from builders import detection, log_event, status, telemetry


def assess(window):
    return build_assessment(RulesEngine().apply(window), window)


def test_empty_window_assessment():
    a = assess([])
    assert a.risk == "LOW"
    assert a.summary == "no significant signals."
    assert a.evidence == []
    assert a.actions == list(LOW_RISK_ACTIONS)


def test_summary_fragments_in_priority_order_capped_at_three():
    signals = FusionSignals(person_detected=True, vehicle_detected=True, max_motion=8.9, access_denied=True)
    assert summarize(signals) == "person detected, vehicle detected, motion 8.9."


def test_summary_includes_denial_when_room():
    signals = FusionSignals(person_detected=True, max_motion=8.9, access_denied=True)
    assert summarize(signals) == "person detected, motion 8.9, recent access denial."


def test_summary_formats_whole_motion_without_decimal():
    assert summarize(FusionSignals(max_motion=9.0)) == "motion 9."


def test_actions_tables():
    assert len(LOW_RISK_ACTIONS) == 2
    assert len(ELEVATED_RISK_ACTIONS) == 4
    assert "Temporarily lock secondary gates (10m)." in ELEVATED_RISK_ACTIONS
    a = assess([detection("d1", "person"), telemetry("t1", motion_index=8.9)])
    assert a.risk == "MEDIUM"
    assert a.actions == [
        "Alert on-site team and share live feed.",
        "Issue pre-recorded audio warning.",
        "Temporarily lock secondary gates (10m).",
        "Archive & tag footage.",
    ]


def test_evidence_with_location():
    ev = detection("d1", "person", loc=(28.61390, 77.20900))
    assert render_evidence(ev) == "drone:drone-alpha-2 detection @(28.61390,77.20900)"


def test_evidence_without_location_omits_suffix():
    assert render_evidence(telemetry("t1", motion_index=1)) == "ground:ms-22 telemetry"


def test_evidence_limited_to_first_five_in_order():
    window = [telemetry(f"t{i}", motion_index=i) for i in range(7)]
    window[0] = status("s0", loc=(28.6239, 77.229))
    a = assess(window)
    assert len(a.evidence) == 5
    assert a.evidence[0] == "sat:sat-geo-5 status @(28.62390,77.22900)"


def test_confidence_mapping():
    assert confidence_for("HIGH") == 0.86
    assert confidence_for("MEDIUM") == 0.72
    assert confidence_for("LOW") == 0.41


def test_analysis_text_layout():
    a = assess([log_event("l1", "Access denied at north gate")])
    text = render_analysis(a)
    assert text.splitlines() == [
        "Summary: recent access denial.",
        "Risk: LOW",
        "",
        "Recommended:",
        "- Monitor area and keep logging.",
        "- Tune sensor thresholds if recurrent.",
        "",
        "Evidence:",
        "- access:gate-north-03 log",
    ]


def test_alert_preview():
    window = [detection("d1", "person"), telemetry("t1", motion_index=8.9), log_event("l1", "Access denied")]
    text = render_alert_preview(assess(window))
    lines = text.splitlines()
    assert lines[0] == "AUTO-ALERT"
    assert lines[1] == "Risk: HIGH  (confidence 86%)"
    assert lines[2] == "Summary: person detected, motion 8.9, recent access denial."
    assert lines[3] == "Actions:"
    assert len(lines) == 8


def test_alert_preview_without_events():
    assert render_alert_preview(None) == "No recent events."
    assert render_alert_preview(assess([])) == "No recent events."
