"""Data models shared by the standings pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except Exception:
        try:
            return int(float(value))
        except Exception:
            return int(default)


def _to_int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except Exception:
        try:
            return int(float(value))
        except Exception:
            return None


def _to_float_or_none(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except Exception:
        return None


def round_half_up(value: float) -> int:
    # 2.5 -> 3 and -2.5 -> -2, unlike round() which rounds halves to even.
    return int(math.floor(value + 0.5))


def _is_pace_car_flag(value: Any) -> bool:
    # Only the value 1 marks a pace car; YAML may hand it over as 1, "1", 1.0 or True.
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() == "true":
        return True
    return _to_float_or_none(value) == 1.0


@dataclass(frozen=True)
class RosterEntry:
    slot_id: int
    name: str
    car_number: str
    class_label: str = ""
    rating: int = 0
    is_pace_car: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "RosterEntry | None":
        """Build an entry from one ``DriverInfo.Drivers`` record.

        Returns ``None`` when the record carries no usable ``CarIdx``.
        """
        data = d if isinstance(d, dict) else {}
        slot_id = _to_int_or_none(data.get("CarIdx"))
        if slot_id is None or slot_id < 0:
            return None

        name = data.get("UserName")
        car_number = data.get("CarNumber")
        class_label = data.get("CarClassShortName")
        return cls(
            slot_id=slot_id,
            name=str(name) if name is not None else f"Car #{slot_id}",
            car_number=str(car_number) if car_number is not None else str(slot_id),
            class_label=str(class_label) if class_label is not None else "",
            rating=max(0, _to_int(data.get("IRating"), 0)),
            is_pace_car=_is_pace_car_flag(data.get("CarIsPaceCar")),
        )


@dataclass
class CarRecord:
    """One row of the standings, rebuilt on every tick."""

    slot_id: int
    overall_position: int = 0
    class_position: int | None = None
    name: str = ""
    car_number: str = ""
    class_label: str = ""
    laps_completed: int = 0
    lap_fraction: float = 0.0
    last_lap_time: float | None = None
    best_lap_time: float | None = None
    gap: float | None = None
    stalled: bool = False
    is_player: bool = False
    rating: int = 0
    rating_delta: int | None = None

    @property
    def progress(self) -> float:
        return float(self.laps_completed) + float(self.lap_fraction)

    @property
    def is_positioned(self) -> bool:
        return self.overall_position > 0

    @property
    def is_personal_best_lap(self) -> bool:
        last = self.last_lap_time
        best = self.best_lap_time
        return last is not None and best is not None and last > 0 and best > 0 and last == best

    def to_dict(self) -> dict[str, Any]:
        return {
            "slot_id": int(self.slot_id),
            "overall_position": int(self.overall_position),
            "class_position": self.class_position,
            "name": str(self.name),
            "car_number": str(self.car_number),
            "class_label": str(self.class_label),
            "laps_completed": int(self.laps_completed),
            "lap_fraction": float(self.lap_fraction),
            "last_lap_time": self.last_lap_time,
            "best_lap_time": self.best_lap_time,
            "gap": self.gap,
            "stalled": bool(self.stalled),
            "is_player": bool(self.is_player),
            "is_personal_best_lap": self.is_personal_best_lap,
            "rating": int(self.rating),
            "rating_delta": self.rating_delta,
        }
