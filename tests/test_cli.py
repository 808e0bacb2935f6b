import json

from battlegrid.cli import main
from conftest import ROOT
from builders import raw_event


def test_simulate_writes_export_and_audit(tmp_path, capsys):
    out = tmp_path / "out"
    code = main([
        "simulate",
        "--config", str(ROOT / "configs" / "default.yaml"),
        "--out", str(out),
        "--scenario", "perimeter_intrusion",
        "--count", "12",
        "--hz", "0",
        "--seed", "7",
    ])
    assert code == 0
    printed = capsys.readouterr().out
    assert printed.startswith("Summary: ")
    assert "AUTO-ALERT" in printed
    export = json.loads((out / "battlegrid_analytics.json").read_text(encoding="utf-8"))
    assert export["kpis"]["events_ingested"] == 12
    kinds = [json.loads(line)["kind"] for line in (out / "audit_log.jsonl").read_text(encoding="utf-8").splitlines()]
    assert kinds[0] == "engine_start"
    assert kinds[-1] == "simulate_done"


def test_simulate_unknown_scenario(tmp_path, capsys):
    code = main(["simulate", "--config", str(ROOT / "configs" / "default.yaml"), "--out", str(tmp_path), "--scenario", "nope"])
    assert code == 2
    assert "unknown scenario" in capsys.readouterr().err


def test_analyze_event_file(tmp_path, capsys):
    events = [
        raw_event("d1"),
        raw_event("t1", source="ground", sensor_id="ms-22", payload_type="telemetry", payload={"motion_index": 8.9}, location=None),
        raw_event("l1", source="access", sensor_id="gate-north-03", payload_type="log", payload={"message": "Access denied at north gate", "level": "warn"}, location=None),
    ]
    path = tmp_path / "events.json"
    path.write_text(json.dumps({"events": events}), encoding="utf-8")
    code = main(["analyze", "--events", str(path), "--config", str(ROOT / "configs" / "default.yaml"), "--out", str(tmp_path / "out")])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Summary: person detected, motion 8.9, recent access denial."
    assert lines[1] == "Risk: HIGH"
    assert "- drone:drone-alpha-2 detection @(28.61490,77.20800)" in lines


def test_optimize_missions_file(tmp_path):
    path = tmp_path / "missions.json"
    missions = [
        {"id": f"m{i}", "title": f"M{i}", "due": "2026-10-18T12:00:00+00:00", "priority": "Low", "personnel": []}
        for i in range(5)
    ]
    path.write_text(json.dumps(missions), encoding="utf-8")
    assert main(["optimize", "--missions", str(path), "--write"]) == 0
    updated = json.loads(path.read_text(encoding="utf-8"))
    assert [m["personnel"] for m in updated] == [["Alpha"], ["Bravo"], ["Charlie"], ["Delta"], ["Alpha"]]
