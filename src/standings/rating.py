"""Rating change estimates for a running session.

iRating delta: pairwise logistic model over every classified car. For each
pair (A, B) the chance that A beats B is

    P(A beats B) = 1 / (1 + exp((iR_B - iR_A) / 1500))

The expected wins are the sum of P over all opponents, the actual wins the
number of classified cars A is ahead of. The difference scaled by 200 / n
approximates the change iRacing awards. The official formula is not public;
this is the community approximation and is kept as-is.

SR delta: +0.12 per clean lap and -1.0 per incident point, again an
approximation of the unpublished safety-rating formula.
"""

from __future__ import annotations

import math
from typing import Sequence

from standings.models import CarRecord, round_half_up

RATING_SCALE = 1500.0
RATING_POOL = 200.0

SR_PER_LAP = 0.12
SR_PER_INCIDENT = 1.0


def win_probability(rating: float, opponent_rating: float) -> float:
    return 1.0 / (1.0 + math.exp((opponent_rating - rating) / RATING_SCALE))


def is_classified(car: CarRecord) -> bool:
    return car.overall_position > 0 and car.rating > 0


def estimate_rating_deltas(cars: Sequence[CarRecord]) -> list[CarRecord]:
    """Fill ``rating_delta`` on classified cars; everyone else keeps ``None``."""
    out = list(cars)
    classified = [car for car in out if is_classified(car)]
    n = len(classified)
    if n < 2:
        return out

    k = RATING_POOL / n
    for car in classified:
        expected = 0.0
        actual = 0
        for opponent in classified:
            if opponent is car:
                continue
            expected += win_probability(car.rating, opponent.rating)
            if car.overall_position < opponent.overall_position:
                actual += 1
        car.rating_delta = round_half_up((actual - expected) * k)
    return out


def estimate_sr_delta(laps: int | float, incidents: int | float) -> float:
    return round(float(laps) * SR_PER_LAP - float(incidents) * SR_PER_INCIDENT, 2)
