from __future__ import annotations

from standings.merge import array_value, index_roster, merge_cars
from standings.models import RosterEntry
from tests.helpers import make_driver, make_telemetry


def _roster(*drivers):
    return index_roster(RosterEntry.from_dict(d) for d in drivers)


def test_array_value_treats_short_arrays_and_none_as_absent() -> None:
    telemetry = {"CarIdxLap": [3, None]}

    assert array_value(telemetry, "CarIdxLap", 0) == 3
    assert array_value(telemetry, "CarIdxLap", 1) is None
    assert array_value(telemetry, "CarIdxLap", 5) is None
    assert array_value(telemetry, "CarIdxPosition", 0) is None
    assert array_value({"CarIdxLap": 7}, "CarIdxLap", 0) is None


def test_merge_skips_slots_without_lap_fraction() -> None:
    roster = _roster(make_driver(0), make_driver(1), make_driver(2))
    telemetry = make_telemetry(CarIdxLapDistPct=[0.2, None])

    cars = merge_cars(telemetry, roster)

    assert [car.slot_id for car in cars] == [0]


def test_merge_excludes_pace_car_in_every_representation() -> None:
    roster = _roster(
        make_driver(0, CarIsPaceCar=1),
        make_driver(1, CarIsPaceCar="1"),
        make_driver(2, CarIsPaceCar=True),
        make_driver(3, CarIsPaceCar="0"),
        make_driver(4, CarIsPaceCar=0),
        make_driver(5, CarIsPaceCar=2),
        make_driver(6, CarIsPaceCar="yes"),
        make_driver(7, CarIsPaceCar="true"),
    )
    telemetry = make_telemetry(CarIdxLapDistPct=[0.1] * 8)

    cars = merge_cars(telemetry, roster)

    assert [car.slot_id for car in cars] == [3, 4, 5, 6]


def test_merge_keeps_missing_optional_numbers_absent() -> None:
    roster = _roster(make_driver(0))
    telemetry = make_telemetry(CarIdxLapDistPct=[0.4])

    (car,) = merge_cars(telemetry, roster)

    assert car.overall_position == 0
    assert car.laps_completed == 0
    assert car.class_position is None
    assert car.last_lap_time is None
    assert car.best_lap_time is None
    assert car.gap is None


def test_merge_copies_roster_identity_and_clamps_fraction() -> None:
    roster = _roster(make_driver(1, UserName="Alice", CarNumber="7", CarClassShortName="LMP2", IRating="2450"))
    telemetry = make_telemetry(
        CarIdxLapDistPct=[None, 1.2],
        CarIdxPosition=[0, 3],
        CarIdxLap=[0, 9],
        CarIdxF2Time=[0.0, 12.5],
    )

    (car,) = merge_cars(telemetry, roster)

    assert car.name == "Alice"
    assert car.car_number == "7"
    assert car.class_label == "LMP2"
    assert car.rating == 2450
    assert car.overall_position == 3
    assert car.laps_completed == 9
    assert car.lap_fraction == 1.0
    assert car.gap == 12.5


def test_merge_does_not_mutate_inputs() -> None:
    roster = _roster(make_driver(0))
    distances = [0.5]
    telemetry = make_telemetry(CarIdxLapDistPct=distances)
    before = dict(telemetry)

    merge_cars(telemetry, roster)

    assert telemetry == before
    assert distances == [0.5]


def test_roster_defaults_and_duplicate_slots() -> None:
    first = RosterEntry.from_dict({"CarIdx": 4})
    assert first is not None
    assert first.name == "Car #4"
    assert first.car_number == "4"
    assert first.class_label == ""
    assert first.rating == 0

    assert RosterEntry.from_dict({"UserName": "no slot"}) is None
    assert RosterEntry.from_dict({"CarIdx": "x"}) is None

    roster = _roster(make_driver(4, UserName="Old"), make_driver(4, UserName="New"))
    assert roster[4].name == "New"
