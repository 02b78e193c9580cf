from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from nhs_analytics.models import TrustObservation

Direction = Literal["up", "down", "stable"]

STABLE_BAND_PCT = 0.1


@dataclass(frozen=True)
class TrendResult:
    change: float
    direction: Direction
    is_positive: bool


def calculate_trend(
    current: float | None,
    previous: float | None,
    higher_is_better: bool = True,
) -> TrendResult | None:
    """Classify the month-on-month change of a metric.

    ``change`` is the absolute percentage change; the sign lives in
    ``direction``. Changes within +/-0.1% are "stable" and never positive.
    Returns None when either value is missing or ``previous`` is zero.
    """
    if current is None or previous is None or previous == 0:
        return None

    change = (current - previous) / previous * 100.0
    if change > STABLE_BAND_PCT:
        direction: Direction = "up"
    elif change < -STABLE_BAND_PCT:
        direction = "down"
    else:
        direction = "stable"

    if direction == "stable":
        is_positive = False
    else:
        is_positive = (direction == "up") == higher_is_better
    return TrendResult(change=abs(change), direction=direction, is_positive=is_positive)


def _month_index(observation: TrustObservation) -> int:
    return observation.period.year * 12 + observation.period.month


def find_previous_period_observation(
    series: Sequence[TrustObservation],
    current_index: int = -1,
) -> TrustObservation | None:
    """Return the observation exactly one calendar month before ``series[current_index]``."""
    if not series:
        return None
    if current_index < 0:
        current_index += len(series)
    if not 0 <= current_index < len(series):
        return None

    target = _month_index(series[current_index]) - 1
    for index in range(current_index - 1, -1, -1):
        if _month_index(series[index]) == target:
            return series[index]
    return None


def trend_for_series(
    series: Sequence[TrustObservation],
    field: str,
    higher_is_better: bool = True,
    current_index: int = -1,
) -> TrendResult | None:
    if not series:
        return None
    previous = find_previous_period_observation(series, current_index)
    if previous is None:
        return None
    return calculate_trend(series[current_index].get(field), previous.get(field), higher_is_better)
