from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from standings.models import CarRecord

# Cars without a class label are counted together under this key.
_DEFAULT_CLASS_KEY = "__default__"


@dataclass
class RankedField:
    cars: list[CarRecord] = field(default_factory=list)
    multi_class: bool = False


def class_key(car: CarRecord) -> str:
    return car.class_label or _DEFAULT_CLASS_KEY


def _sort_key(car: CarRecord) -> tuple[int, float]:
    if car.is_positioned:
        return (0, float(car.overall_position))
    # Practice and qualifying leave CarIdxPosition at 0; fall back to lap progress.
    return (1, -car.progress)


def order_cars(cars: Sequence[CarRecord]) -> list[CarRecord]:
    # sorted() is stable, so cars with equal keys keep their source order.
    return sorted(cars, key=_sort_key)


def assign_class_positions(ordered: Sequence[CarRecord]) -> None:
    """Overwrite ``class_position`` from the running order.

    CarIdxClassPosition mirrors the overall position in single-class races and
    is unreliable in multi-class and non-race sessions, so it is never kept.
    """
    counters: dict[str, int] = {}
    for car in ordered:
        key = class_key(car)
        counters[key] = counters.get(key, 0) + 1
        car.class_position = counters[key]


def rank_cars(cars: Sequence[CarRecord]) -> RankedField:
    ordered = order_cars(cars)
    assign_class_positions(ordered)
    classes = {class_key(car) for car in ordered}
    return RankedField(cars=ordered, multi_class=len(classes) > 1)
