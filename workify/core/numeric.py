from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float = 0, upper: float = 100) -> float:
    return max(lower, min(upper, value))


def clamp_score(value: float) -> int:
    # clamp first so infinities land on the bounds before int conversion
    if math.isnan(value):
        raise ValueError("score is NaN")
    return round_half_up(clamp(value))
