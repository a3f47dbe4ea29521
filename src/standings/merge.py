from __future__ import annotations

from typing import Any, Iterable, Mapping

from standings.models import CarRecord, RosterEntry, _to_float_or_none, _to_int, _to_int_or_none

# Per-car telemetry arrays, all indexed by CarIdx.
CAR_POSITION = "CarIdxPosition"
CAR_CLASS_POSITION = "CarIdxClassPosition"
CAR_LAP = "CarIdxLap"
CAR_LAP_DIST_PCT = "CarIdxLapDistPct"
CAR_LAST_LAP_TIME = "CarIdxLastLapTime"
CAR_BEST_LAP_TIME = "CarIdxBestLapTime"
CAR_F2_TIME = "CarIdxF2Time"


def _as_array(value: Any) -> list[Any] | tuple[Any, ...]:
    if isinstance(value, (list, tuple)):
        return value
    return ()


def array_value(telemetry: Mapping[str, Any], channel: str, slot_id: int) -> Any:
    """Return ``telemetry[channel][slot_id]`` or ``None`` when absent.

    A short array, a missing channel and a ``None`` element all read as absent.
    """
    values = _as_array(telemetry.get(channel))
    if slot_id < 0 or slot_id >= len(values):
        return None
    return values[slot_id]


def index_roster(entries: Iterable[RosterEntry]) -> dict[int, RosterEntry]:
    roster: dict[int, RosterEntry] = {}
    for entry in entries:
        # A later record for the same slot replaces the earlier one.
        roster[entry.slot_id] = entry
    return roster


def _clamp_fraction(value: float) -> float:
    return max(0.0, min(1.0, value))


def merge_cars(telemetry: Mapping[str, Any], roster: Mapping[int, RosterEntry]) -> list[CarRecord]:
    """Join roster entries to telemetry slots.

    Cars come out in ascending slot order. The pace car and slots without a
    lap fraction yet are left out; missing optional numbers stay ``None``.
    """
    cars: list[CarRecord] = []
    for slot_id in sorted(roster):
        entry = roster[slot_id]
        if entry.is_pace_car:
            continue

        lap_fraction = _to_float_or_none(array_value(telemetry, CAR_LAP_DIST_PCT, slot_id))
        if lap_fraction is None:
            continue

        cars.append(
            CarRecord(
                slot_id=slot_id,
                overall_position=max(0, _to_int(array_value(telemetry, CAR_POSITION, slot_id), 0)),
                class_position=_to_int_or_none(array_value(telemetry, CAR_CLASS_POSITION, slot_id)),
                name=entry.name,
                car_number=entry.car_number,
                class_label=entry.class_label,
                laps_completed=_to_int(array_value(telemetry, CAR_LAP, slot_id), 0),
                lap_fraction=_clamp_fraction(lap_fraction),
                last_lap_time=_to_float_or_none(array_value(telemetry, CAR_LAST_LAP_TIME, slot_id)),
                best_lap_time=_to_float_or_none(array_value(telemetry, CAR_BEST_LAP_TIME, slot_id)),
                gap=_to_float_or_none(array_value(telemetry, CAR_F2_TIME, slot_id)),
                rating=entry.rating,
            )
        )
    return cars
