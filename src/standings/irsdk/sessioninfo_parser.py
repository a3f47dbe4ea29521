from __future__ import annotations

import re
from typing import Any

import yaml

from standings.models import RosterEntry, _to_int_or_none


def parse_session_info(session_info_yaml: str | None) -> dict[str, Any] | None:
    text = str(session_info_yaml or "")
    if not text.strip():
        return None
    parsed = _safe_yaml_parse(text)
    return parsed if isinstance(parsed, dict) else None


def extract_roster(session_info: dict[str, Any] | None) -> list[RosterEntry]:
    driver_info = _as_dict(_as_dict(session_info).get("DriverInfo"))
    roster: list[RosterEntry] = []
    for item in _as_list(driver_info.get("Drivers")):
        entry = RosterEntry.from_dict(item if isinstance(item, dict) else None)
        if entry is not None:
            roster.append(entry)
    return roster


def extract_sessions(session_info: dict[str, Any] | None) -> list[dict[str, Any]]:
    sessions_info = _as_dict(_as_dict(session_info).get("SessionInfo"))
    return [item for item in _as_list(sessions_info.get("Sessions")) if isinstance(item, dict)]


def extract_driver_car_idx(session_info: dict[str, Any] | None) -> int | None:
    driver_info = _as_dict(_as_dict(session_info).get("DriverInfo"))
    return _to_int_or_none(driver_info.get("DriverCarIdx"))


def normalize_session_type(raw_session_type: Any) -> str:
    raw = str(raw_session_type or "").strip()
    if not raw:
        return "unknown"

    key = re.sub(r"[^a-z0-9]+", " ", raw.lower()).strip()
    if not key:
        return "unknown"
    if any(token in key for token in ("qualify", "qualification", "qualifying")):
        return "qualify"
    if "race" in key:
        return "race"
    if any(token in key for token in ("practice", "warmup", "warm up", "test")):
        return "practice"
    return "unknown"


def _safe_yaml_parse(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError:
        return None


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
