from __future__ import annotations
import argparse
import json
import os
import random
import sys

from .alerts import build_assessment, render_alert_preview, render_analysis
from .allocator import optimize
from .audit import AuditLogger
from .engine import DEFAULT_WINDOW, build_engine, load_config, load_rules
from .metrics import Metrics
from .missions import mission_from_dict
from .services.base import ServiceContext
from .services.ingest import IngestService
from .simulators.scenario_feed import ScenarioFeed, load_scenarios, run_feed


def cmd_simulate(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    sim_cfg = cfg.get("simulate", {})
    scenarios = load_scenarios(sim_cfg.get("scenarios_path", "examples/scenarios.yaml"))
    name = args.scenario or sim_cfg.get("scenario", "perimeter_intrusion")
    if name not in scenarios:
        print(f"unknown scenario '{name}'; available: {', '.join(sorted(scenarios))}", file=sys.stderr)
        return 2

    engine = build_engine(cfg, args.out)
    seed = args.seed if args.seed is not None else sim_cfg.get("seed")
    feed = ScenarioFeed(scenarios[name], rng=random.Random(seed))
    count = args.count if args.count is not None else int(sim_cfg.get("count", 20))
    hz = args.hz if args.hz is not None else float(sim_cfg.get("hz", 0))
    results = run_feed(engine, feed, count, hz)

    assessment = engine.classify()
    print(render_analysis(assessment))
    print()
    print(render_alert_preview(assessment))
    paths = engine.export(args.out)
    engine.save_state()
    engine.ctx.audit.write(
        "simulate_done",
        {
            "scenario": name,
            "emitted": len(results),
            "accepted": sum(1 for r in results if r.accepted),
            "risk": assessment.risk,
            "paths": paths,
        },
    )
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    os.makedirs(args.out, exist_ok=True)
    ctx = ServiceContext(config=cfg, audit=AuditLogger(os.path.join(args.out, "audit_log.jsonl")), metrics=Metrics())
    events = IngestService().run({"path": args.events}, ctx)
    window_size = args.window if args.window is not None else int(cfg.get("engine", {}).get("window_size", DEFAULT_WINDOW))
    if window_size < 0:
        print("--window must be non-negative", file=sys.stderr)
        return 2
    window = events[-window_size:] if window_size else []
    print(render_analysis(build_assessment(load_rules(cfg).apply(window), window)))
    return 0


def cmd_optimize(args: argparse.Namespace) -> int:
    with open(args.missions, "r", encoding="utf-8") as f:
        raw = json.load(f)
    missions = optimize([mission_from_dict(m) for m in raw])
    text = json.dumps([m.to_dict() for m in missions], indent=2)
    if args.write:
        with open(args.missions, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        print(text)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    from .http_api import run_server

    cfg = load_config(args.config)
    http_cfg = cfg.get("http", {})
    run_server(build_engine(cfg, args.out), args.host or http_cfg.get("host", "127.0.0.1"), args.port or int(http_cfg.get("port", 8080)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="battlegrid")
    sub = p.add_subparsers(dest="cmd", required=True)

    sim = sub.add_parser("simulate", help="Replay a demo scenario and print the resulting alert.")
    sim.add_argument("--config", default="configs/default.yaml", help="Path to config YAML.")
    sim.add_argument("--out", required=True, help="Output directory.")
    sim.add_argument("--scenario", default=None, help="Scenario name from the scenario library.")
    sim.add_argument("--count", type=int, default=None, help="Number of events to emit.")
    sim.add_argument("--hz", type=float, default=None, help="Emission rate; 0 disables pacing.")
    sim.add_argument("--seed", type=int, default=None, help="Random seed for template selection.")
    sim.set_defaults(func=cmd_simulate)

    ana = sub.add_parser("analyze", help="Classify the tail of an event file (YAML or JSON).")
    ana.add_argument("--events", required=True, help="Event file: a list, or a mapping with an 'events' list.")
    ana.add_argument("--config", default="configs/default.yaml", help="Path to config YAML.")
    ana.add_argument("--out", default="out", help="Directory for the audit log.")
    ana.add_argument("--window", type=int, default=None, help="Window size (defaults to engine.window_size).")
    ana.set_defaults(func=cmd_analyze)

    opt = sub.add_parser("optimize", help="Run personnel allocation over a missions JSON file.")
    opt.add_argument("--missions", required=True, help="JSON list of missions.")
    opt.add_argument("--write", action="store_true", help="Rewrite the file in place instead of printing.")
    opt.set_defaults(func=cmd_optimize)

    srv = sub.add_parser("serve", help="Run the HTTP API over a live engine.")
    srv.add_argument("--config", default="configs/default.yaml", help="Path to config YAML.")
    srv.add_argument("--out", default="out", help="Directory for audit log, exports and state.")
    srv.add_argument("--host", default=None)
    srv.add_argument("--port", type=int, default=None)
    srv.set_defaults(func=cmd_serve)
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
