from __future__ import annotations

from typing import Any

import pytest

from tests.helpers import make_driver, make_session_info, make_telemetry


@pytest.fixture
def race_session_info() -> dict[str, Any]:
    return make_session_info(
        [
            make_driver(0, UserName="Pace Car", CarIsPaceCar=1, IRating=0),
            make_driver(1, UserName="Alice", IRating=2000),
            make_driver(2, UserName="Bob", IRating=1800),
        ]
    )


@pytest.fixture
def race_telemetry() -> dict[str, Any]:
    return make_telemetry(
        PlayerCarIdx=2,
        CarIdxPosition=[0, 1, 2],
        CarIdxClassPosition=[0, 1, 2],
        CarIdxLap=[0, 5, 5],
        CarIdxLapDistPct=[None, 0.52, 0.31],
        CarIdxLastLapTime=[-1.0, 61.234, 62.1],
        CarIdxBestLapTime=[-1.0, 61.234, 61.9],
        CarIdxF2Time=[0.0, 0.0, 4.2],
        PlayerCarMyIncidentCount=2,
    )
