from __future__ import annotations

from typing import Sequence

from standings.models import CarRecord

# A car sitting on the start/finish line with laps on the board has stopped mid-lap.
STALLED_LAP_FRACTION = 0.001


def is_stalled(lap_fraction: float | None, laps_completed: int | None) -> bool:
    if lap_fraction is None or laps_completed is None:
        return False
    return lap_fraction < STALLED_LAP_FRACTION and laps_completed > 0


def classify_cars(cars: Sequence[CarRecord], player_slot_id: int | None) -> list[CarRecord]:
    """Set the stalled and player flags on every car."""
    out: list[CarRecord] = []
    for car in cars:
        car.stalled = is_stalled(car.lap_fraction, car.laps_completed)
        car.is_player = player_slot_id is not None and car.slot_id == player_slot_id
        out.append(car)
    return out
