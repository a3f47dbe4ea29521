from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from standings import app_entry
from standings.cfg import load_cfg
from standings.log import make_logger
from tests.helpers import make_driver, make_session_info, make_telemetry


def _write_snapshot(path: Path, telemetry, session_info) -> Path:
    path.write_text(json.dumps({"telemetry": telemetry, "session_info": session_info}), encoding="utf-8")
    return path


def test_snapshot_mode_prints_one_json_document(tmp_path: Path, capsys, race_telemetry, race_session_info) -> None:
    snapshot = _write_snapshot(tmp_path / "snap.json", race_telemetry, race_session_info)

    assert app_entry.main(["--snapshot", str(snapshot)]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["state"] == "live"
    assert [car["slot_id"] for car in payload["cars"]] == [1, 2]


def test_snapshot_mode_accepts_yaml_session_info(tmp_path: Path, capsys) -> None:
    yaml_text = (
        "SessionInfo:\n Sessions:\n - SessionType: Race\n   SessionLaps: 10\n"
        "DriverInfo:\n Drivers:\n - CarIdx: 0\n   UserName: Solo\n   IRating: 1200\n"
    )
    telemetry = make_telemetry(CarIdxLapDistPct=[0.25], CarIdxPosition=[1])
    snapshot = _write_snapshot(tmp_path / "snap.json", telemetry, yaml_text)

    app_entry.main(["--snapshot", str(snapshot)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["cars"][0]["name"] == "Solo"
    assert payload["cars"][0]["rating_delta"] is None
    assert payload["summary"]["lap_limit"] == 10


def test_snapshot_without_session_info_is_waiting(tmp_path: Path, capsys) -> None:
    snapshot = _write_snapshot(tmp_path / "snap.json", make_telemetry(), None)

    app_entry.main(["--snapshot", str(snapshot)])

    assert json.loads(capsys.readouterr().out)["state"] == "waiting"


def test_missing_snapshot_file_is_a_usage_error(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        app_entry.parse_args(["--snapshot", str(tmp_path / "nope.json")])

    assert excinfo.value.code == 2


def test_malformed_snapshot_file_is_a_usage_error(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2", encoding="utf-8")

    with pytest.raises(SystemExit):
        app_entry.parse_args(["--snapshot", str(bad)])


def test_render_tick_switches_between_waiting_and_live(race_telemetry, race_session_info) -> None:
    assert app_entry.render_tick(None, None)["state"] == "waiting"
    assert app_entry.render_tick(race_telemetry, race_session_info)["state"] == "live"


class _StubService:
    def __init__(self, telemetry, session_info) -> None:
        self.snapshot = (telemetry, session_info)
        self.polled = 0
        self.started = False
        self.stopped = False

    def poll_once(self, now=None) -> bool:
        self.polled += 1
        return True

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def get_snapshot(self):
        return self.snapshot

    def get_status(self) -> dict:
        return {"running": False}


def test_run_live_once_polls_synchronously(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("IWAS_STANDINGS_LOG_FILE", raising=False)
    session_info = make_session_info([make_driver(0, IRating=1600), make_driver(1, IRating=1400)])
    telemetry = make_telemetry(CarIdxLapDistPct=[0.5, 0.4], CarIdxPosition=[2, 1])
    service = _StubService(telemetry, session_info)
    out = io.StringIO()
    log = make_logger(tmp_path)

    code = app_entry.run_live(load_cfg(tmp_path), log, out, render_interval_ms=500, once=True, service=service)

    assert code == 0
    assert service.polled == 1
    assert service.started is False
    assert service.stopped is True
    payload = json.loads(out.getvalue())
    assert [car["slot_id"] for car in payload["cars"]] == [1, 0]
    assert "service_status=" in log.log_file.read_text(encoding="utf-8")
