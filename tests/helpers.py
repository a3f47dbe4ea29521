from __future__ import annotations

from typing import Any


def make_driver(slot_id: int, **fields: Any) -> dict[str, Any]:
    """Return one ``DriverInfo.Drivers`` record with sensible defaults."""

    driver: dict[str, Any] = {
        "CarIdx": slot_id,
        "UserName": f"Driver {slot_id}",
        "CarNumber": str(slot_id + 10),
        "CarClassShortName": "GT3",
        "IRating": 1500,
        "CarIsPaceCar": 0,
    }
    driver.update(fields)
    return driver


def make_session_info(
    drivers: list[dict[str, Any]],
    sessions: list[dict[str, Any]] | None = None,
    **driver_info: Any,
) -> dict[str, Any]:
    info: dict[str, Any] = {"Drivers": list(drivers)}
    info.update(driver_info)
    return {
        "WeekendInfo": {"TrackDisplayName": "Lime Rock Park"},
        "SessionInfo": {
            "Sessions": sessions
            if sessions is not None
            else [{"SessionNum": 0, "SessionType": "Race", "SessionLaps": "25"}]
        },
        "DriverInfo": info,
    }


def make_telemetry(**channels: Any) -> dict[str, Any]:
    telemetry: dict[str, Any] = {
        "SessionNum": 0,
        "PlayerCarIdx": -1,
        "SessionFlags": 0x4,
        "SessionTimeRemain": 604800.0,
        "Lap": 1,
    }
    telemetry.update(channels)
    return telemetry
