from __future__ import annotations

from pathlib import Path

from standings.cfg import load_cfg
from standings.log import format_tick_line, make_logger
from standings.pipeline import waiting_to_dict


def test_load_cfg_reads_standings_section(tmp_path: Path) -> None:
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "defaults.ini").write_text(
        "[standings]\ntelemetry_interval_ms = 50\nrender_interval_ms = 250\nreconnect_interval_ms = -3\n",
        encoding="utf-8",
    )

    cfg = load_cfg(tmp_path)

    assert cfg.root == tmp_path.resolve()
    assert cfg.telemetry_interval_ms == 50
    assert cfg.render_interval_ms == 250
    assert cfg.session_info_interval_ms == 1000
    assert cfg.reconnect_interval_ms == 1000


def test_load_cfg_defaults_when_file_missing(tmp_path: Path) -> None:
    cfg = load_cfg(tmp_path, "config/absent.ini")

    assert cfg.telemetry_interval_ms == 100
    assert cfg.render_interval_ms == 500


def test_load_cfg_ignores_garbage_values(tmp_path: Path) -> None:
    (tmp_path / "custom.ini").write_text("[standings]\nrender_interval_ms = fast\n", encoding="utf-8")

    cfg = load_cfg(tmp_path, "custom.ini")

    assert cfg.render_interval_ms == 500


def test_logger_writes_kv_and_skips_repeated_ticks(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv("IWAS_STANDINGS_LOG_FILE", raising=False)
    log = make_logger(tmp_path, name="unit")

    log.kv("render_interval_ms", 500)
    log.tick(waiting_to_dict())
    log.tick(waiting_to_dict())
    log.msg("done")

    assert log.log_file.parent == tmp_path.resolve() / "_logs"
    assert log.log_file.name.endswith("_unit.txt")
    lines = log.log_file.read_text(encoding="utf-8").splitlines()
    assert lines == ["render_interval_ms=500", "tick state=waiting", "done"]


def test_logger_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    target = tmp_path / "elsewhere" / "run.txt"
    monkeypatch.setenv("IWAS_STANDINGS_LOG_FILE", str(target))

    log = make_logger(tmp_path)
    log.msg("hello")

    assert target.read_text(encoding="utf-8") == "hello\n"


def test_format_tick_line_for_live_payload() -> None:
    payload = {
        "state": "live",
        "summary": {"session_type": "Race", "player_lap": 3, "lap_limit": 25, "flag": "green", "car_count": 2},
        "cars": [{"car_number": "44"}, {"car_number": "7"}],
    }

    assert format_tick_line(payload) == "tick state=live session=Race lap=3/25 flag=green cars=2 leader=#44"
