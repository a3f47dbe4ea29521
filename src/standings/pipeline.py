"""Per-tick standings pipeline: merge, classify, rank, estimate, summarize.

``build_standings`` is a pure function of one telemetry snapshot and one
parsed session-info document. It reads both once into locals and never keeps
a reference to either after returning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Mapping

from standings.classify import classify_cars
from standings.irsdk.channels import channel_names
from standings.irsdk.sessioninfo_parser import extract_driver_car_idx, extract_roster, extract_sessions
from standings.merge import CAR_LAP_DIST_PCT, CAR_POSITION, index_roster, merge_cars
from standings.models import CarRecord, _to_int_or_none
from standings.ranking import rank_cars
from standings.rating import estimate_rating_deltas, estimate_sr_delta
from standings.session_summary import SessionSummary, interpret_gap, summarize_session


_LOG = logging.getLogger(__name__)


@dataclass
class StandingsView:
    cars: list[CarRecord] = field(default_factory=list)
    summary: SessionSummary = field(default_factory=SessionSummary)
    multi_class: bool = False
    player: CarRecord | None = None


def _first_present(telemetry: Mapping[str, Any], channel: str) -> Any:
    for name in channel_names(channel):
        value = telemetry.get(name)
        if value is not None:
            return value
    return None


def _player_slot_id(telemetry: Mapping[str, Any], session_info: dict[str, Any]) -> int | None:
    slot_id = _to_int_or_none(telemetry.get("PlayerCarIdx"))
    if slot_id is None:
        slot_id = extract_driver_car_idx(session_info)
    if slot_id is None or slot_id < 0:
        return None
    return slot_id


def build_standings(
    telemetry: Mapping[str, Any] | None,
    session_info: Mapping[str, Any] | None,
) -> StandingsView | None:
    """Return the ranked view for one tick, or ``None`` while waiting for data."""
    if not telemetry or not session_info:
        return None

    tel = dict(telemetry)
    info = dict(session_info)
    roster = index_roster(extract_roster(info))
    sessions = extract_sessions(info)

    cars = merge_cars(tel, roster)
    cars = classify_cars(cars, _player_slot_id(tel, info))
    ranked = rank_cars(cars)
    cars = estimate_rating_deltas(ranked.cars)

    player = next((car for car in cars if car.is_player), None)
    sr_delta = None
    if player is not None:
        incidents = _to_int_or_none(_first_present(tel, "PlayerCarMyIncidentCount")) or 0
        sr_delta = estimate_sr_delta(player.laps_completed, incidents)

    summary = summarize_session(
        tel,
        sessions,
        cars,
        multi_class=ranked.multi_class,
        player_sr_delta=sr_delta,
    )
    if not cars:
        _LOG.debug("standings empty: %s", describe_empty_snapshot(tel, info, sessions, len(roster)))
    return StandingsView(cars=cars, summary=summary, multi_class=ranked.multi_class, player=player)


def describe_empty_snapshot(
    telemetry: Mapping[str, Any],
    session_info: Mapping[str, Any],
    sessions: list[dict[str, Any]],
    roster_count: int,
) -> dict[str, Any]:
    """Collect the fields worth checking when no car made it into the standings."""
    dist_pct = telemetry.get(CAR_LAP_DIST_PCT)
    positions = telemetry.get(CAR_POSITION)
    dist_pct = list(dist_pct) if isinstance(dist_pct, (list, tuple)) else []
    positions = list(positions) if isinstance(positions, (list, tuple)) else []
    return {
        "session_num": telemetry.get("SessionNum"),
        "sessions_count": len(sessions),
        "drivers_count": roster_count,
        "lap_dist_pct_present": sum(1 for value in dist_pct if value is not None),
        "position_present": sum(1 for value in positions if (_to_int_or_none(value) or 0) > 0),
        "lap_dist_pct_head": dist_pct[:10],
        "position_head": positions[:10],
        "session_info_keys": sorted(str(key) for key in session_info.keys()),
    }


def view_to_dict(view: StandingsView) -> dict[str, Any]:
    return {
        "state": "live",
        "summary": view.summary.to_dict(),
        "multi_class": bool(view.multi_class),
        "player_slot_id": view.player.slot_id if view.player is not None else None,
        "cars": [_car_to_dict(car) for car in view.cars],
    }


def waiting_to_dict() -> dict[str, Any]:
    return {"state": "waiting", "summary": None, "multi_class": False, "player_slot_id": None, "cars": []}


def _car_to_dict(car: CarRecord) -> dict[str, Any]:
    data = car.to_dict()
    data["gap_interpreted"] = interpret_gap(car.gap, car.overall_position).to_dict()
    return data
