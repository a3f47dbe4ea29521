from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path

APP_VERSION = "0.1.0"

APP_NAME = "iWAS Standings"

_SECTION = "standings"


@dataclass(frozen=True)
class Cfg:
    root: Path
    config_file: Path
    telemetry_interval_ms: int = 100
    session_info_interval_ms: int = 1000
    render_interval_ms: int = 500
    reconnect_interval_ms: int = 1000


def load_cfg(project_root: str | Path, config_file: str | Path = "config/defaults.ini") -> Cfg:
    root = Path(project_root).resolve()
    cfg_path = (root / config_file).resolve()

    cp = configparser.ConfigParser()
    # A missing file simply leaves every key at its default.
    cp.read(cfg_path, encoding="utf-8")

    return Cfg(
        root=root,
        config_file=cfg_path,
        telemetry_interval_ms=_get_positive_int(cp, _SECTION, "telemetry_interval_ms", 100),
        session_info_interval_ms=_get_positive_int(cp, _SECTION, "session_info_interval_ms", 1000),
        render_interval_ms=_get_positive_int(cp, _SECTION, "render_interval_ms", 500),
        reconnect_interval_ms=_get_positive_int(cp, _SECTION, "reconnect_interval_ms", 1000),
    )


def _get_int(cp: configparser.ConfigParser, section: str, key: str, default: int) -> int:
    try:
        return int(cp.get(section, key, fallback=str(default)).strip())
    except Exception:
        return int(default)


def _get_positive_int(cp: configparser.ConfigParser, section: str, key: str, default: int) -> int:
    value = _get_int(cp, section, key, default)
    return value if value > 0 else int(default)
