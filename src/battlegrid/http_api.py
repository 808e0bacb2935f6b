from __future__ import annotations
"""Lightweight HTTP surface over a live Engine.

Serves:
- GET  /api/events?n=N        : most recent events (default: window size)
- POST /api/events            : ingest one event (202 accepted, 422 rejected)
- GET  /api/assessment        : risk assessment of the current window
- GET  /api/alert             : auto-alert preview text
- GET  /api/hotspot           : current hotspot and recent markers
- GET  /api/missions          : mission list
- POST /api/missions          : create a mission
- POST /api/missions/optimize : run personnel allocation
- GET  /api/export            : analytics snapshot
- GET  /api/metrics           : Prometheus text exposition

Usage:
  python -m battlegrid.http_api --config configs/default.yaml --out out --host 127.0.0.1 --port 8080

This is intentionally simple and uses only the standard library.
"""

import argparse
import json
import urllib.parse
from dataclasses import asdict
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict

from .alerts import confidence_for
from .engine import Engine, build_engine, load_config


class BattleGridAPIHandler(BaseHTTPRequestHandler):
    engine: Engine

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        self.engine.ctx.metrics.inc("http_requests")

    def _set_headers(self, status: int = 200, content_type: str = "application/json") -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()

    def _json_response(self, obj: Any, status: int = 200) -> None:
        self._set_headers(status)
        self.wfile.write(json.dumps(obj).encode("utf-8"))

    def _read_json(self) -> Dict[str, Any] | None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        try:
            data = json.loads(body.decode("utf-8") or "null")
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None
        return data if isinstance(data, dict) else None

    def _serve_events(self, query: urllib.parse.ParseResult) -> None:
        params = urllib.parse.parse_qs(query.query)
        n = None
        if "n" in params:
            try:
                n = max(0, min(self.engine.events.capacity, int(params["n"][0])))
            except ValueError:
                self._json_response({"error": "n must be an integer"}, status=400)
                return
        events = self.engine.recent_events(n)
        self._json_response({"events": [ev.to_dict() for ev in events]})

    def _serve_assessment(self) -> None:
        assessment = self.engine.classify()
        body = asdict(assessment)
        body["confidence"] = confidence_for(assessment.risk)
        self._json_response(body)

    def _serve_hotspot(self) -> None:
        hotspot = self.engine.hotspot()
        self._json_response(
            {
                "hotspot": list(hotspot) if hotspot else None,
                "markers": [list(p) for p in self.engine.recent_markers()],
            }
        )

    def _serve_metrics(self) -> None:
        self._set_headers(200, "text/plain; version=0.0.4")
        self.wfile.write(self.engine.ctx.metrics.to_prometheus().encode("utf-8"))

    def _ingest(self) -> None:
        data = self._read_json()
        if data is None:
            self._json_response({"error": "body must be a JSON object"}, status=400)
            return
        result = self.engine.ingest(data)
        self._json_response(asdict(result), status=202 if result.accepted else 422)

    def _create_mission(self) -> None:
        data = self._read_json()
        if data is None:
            self._json_response({"error": "body must be a JSON object"}, status=400)
            return
        try:
            mission = self.engine.create_mission(
                title=str(data.get("title") or ""),
                description=str(data.get("description") or ""),
                due=data.get("due"),
                priority=str(data.get("priority") or "Medium"),
                personnel=data.get("personnel"),
                equipment=data.get("equipment"),
            )
        except ValueError as exc:
            self._json_response({"error": str(exc)}, status=400)
            return
        self._json_response({"mission": mission.to_dict()}, status=201)

    def do_GET(self) -> None:  # noqa: N802
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path == "/api/events":
            return self._serve_events(parsed)
        if parsed.path == "/api/assessment":
            return self._serve_assessment()
        if parsed.path == "/api/alert":
            self._set_headers(200, "text/plain")
            self.wfile.write(self.engine.alert_preview().encode("utf-8"))
            return None
        if parsed.path == "/api/hotspot":
            return self._serve_hotspot()
        if parsed.path == "/api/missions":
            return self._json_response({"missions": [m.to_dict() for m in self.engine.list_missions()]})
        if parsed.path == "/api/export":
            return self._json_response(self.engine.export_snapshot())
        if parsed.path == "/api/metrics":
            return self._serve_metrics()
        return self._json_response({"error": f"unknown route {parsed.path}"}, status=404)

    def do_POST(self) -> None:  # noqa: N802
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path == "/api/events":
            return self._ingest()
        if parsed.path == "/api/missions":
            return self._create_mission()
        if parsed.path == "/api/missions/optimize":
            missions = self.engine.optimize_allocation()
            return self._json_response({"missions": [m.to_dict() for m in missions]})
        return self._json_response({"error": f"unknown route {parsed.path}"}, status=404)


def run_server(engine: Engine, host: str, port: int) -> None:
    handler = BattleGridAPIHandler
    handler.engine = engine
    httpd = ThreadingHTTPServer((host, port), handler)
    print(f"BattleGrid API running at http://{host}:{port}")
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        print("Stopping server")
    finally:
        httpd.server_close()
        engine.save_state()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="BattleGrid engine HTTP API")
    parser.add_argument("--config", dest="config_path", default="configs/default.yaml", help="Engine config path")
    parser.add_argument("--out", dest="out_dir", default="out", help="Directory for audit log, exports and state")
    parser.add_argument("--host", dest="host", default=None)
    parser.add_argument("--port", dest="port", type=int, default=None)
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    cfg = load_config(args.config_path)
    http_cfg = cfg.get("http", {})
    run_server(
        build_engine(cfg, args.out_dir),
        args.host or http_cfg.get("host", "127.0.0.1"),
        args.port or int(http_cfg.get("port", 8080)),
    )
