"""Command-line entry point: live standings feed or one-shot snapshot run."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
import time
from typing import Any, TextIO

from standings.cfg import APP_NAME, APP_VERSION, Cfg, load_cfg
from standings.irsdk.sessioninfo_parser import parse_session_info
from standings.irsdk.standings_service import StandingsService
from standings.log import Logger, make_logger
from standings.pipeline import build_standings, view_to_dict, waiting_to_dict


_LOG = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="iwas-standings",
        description="Live iRacing standings with recomputed class positions and rating estimates.",
    )
    parser.add_argument(
        "--snapshot",
        default="",
        help="JSON file with 'telemetry' and 'session_info'; runs the pipeline once and exits",
    )
    parser.add_argument("--once", action="store_true", help="Emit a single live tick and exit")
    parser.add_argument("--config", default="config/defaults.ini", help="INI file relative to the project root")
    parser.add_argument("--project-root", default="", help="Directory holding config/ and _logs/ (default: cwd)")
    parser.add_argument("--render-interval-ms", type=int, default=None, help="Override the render period")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Level for module loggers on stderr",
    )
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    args = parser.parse_args(argv)
    if args.render_interval_ms is not None and args.render_interval_ms <= 0:
        parser.error("--render-interval-ms must be positive")
    if args.snapshot:
        snapshot_path = Path(args.snapshot)
        if not snapshot_path.is_file():
            parser.error(f"snapshot file not found: {snapshot_path}")
        try:
            args.snapshot_data = load_snapshot_file(snapshot_path)
        except ValueError as exc:
            parser.error(str(exc))
    return args


def load_snapshot_file(path: Path) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
    """Read ``{"telemetry": {...}, "session_info": {...} | "<yaml>"}``."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"cannot read snapshot {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"snapshot {path} must be a JSON object")

    telemetry = data.get("telemetry")
    session_info = data.get("session_info")
    if isinstance(session_info, str):
        session_info = parse_session_info(session_info)
    return (
        telemetry if isinstance(telemetry, dict) else None,
        session_info if isinstance(session_info, dict) else None,
    )


def render_tick(
    telemetry: dict[str, Any] | None,
    session_info: dict[str, Any] | None,
) -> dict[str, Any]:
    view = build_standings(telemetry, session_info)
    return view_to_dict(view) if view is not None else waiting_to_dict()


def _emit(payload: dict[str, Any], out: TextIO) -> None:
    out.write(json.dumps(payload, ensure_ascii=False) + "\n")
    out.flush()


def run_snapshot(snapshot: tuple[dict[str, Any] | None, dict[str, Any] | None], out: TextIO) -> int:
    telemetry, session_info = snapshot
    _emit(render_tick(telemetry, session_info), out)
    return 0


def run_live(
    cfg: Cfg,
    log: Logger,
    out: TextIO,
    *,
    render_interval_ms: int,
    once: bool = False,
    service: StandingsService | None = None,
) -> int:
    service = service or StandingsService(
        telemetry_interval_ms=cfg.telemetry_interval_ms,
        session_info_interval_ms=cfg.session_info_interval_ms,
        reconnect_interval_ms=cfg.reconnect_interval_ms,
    )
    interval = render_interval_ms / 1000.0
    if once:
        # One synchronous poll instead of racing the background thread.
        service.poll_once()
    else:
        service.start()
    try:
        while True:
            telemetry, session_info = service.get_snapshot()
            payload = render_tick(telemetry, session_info)
            _emit(payload, out)
            log.tick(payload)
            if once:
                return 0
            time.sleep(interval)
    except KeyboardInterrupt:
        log.msg("interrupted")
        return 0
    finally:
        service.stop()
        log.kv("service_status", json.dumps(service.get_status()))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.snapshot:
        return run_snapshot(args.snapshot_data, sys.stdout)

    project_root = Path(args.project_root).resolve() if args.project_root else Path.cwd()
    cfg = load_cfg(project_root, args.config)
    log = make_logger(project_root)
    render_interval_ms = args.render_interval_ms or cfg.render_interval_ms

    log.msg(f"{APP_NAME} {APP_VERSION} start")
    log.kv("config_file", str(cfg.config_file))
    log.kv("telemetry_interval_ms", cfg.telemetry_interval_ms)
    log.kv("session_info_interval_ms", cfg.session_info_interval_ms)
    log.kv("render_interval_ms", render_interval_ms)
    _LOG.info("standings feed started (render every %d ms)", render_interval_ms)

    return run_live(cfg, log, sys.stdout, render_interval_ms=render_interval_ms, once=args.once)


if __name__ == "__main__":
    raise SystemExit(main())
