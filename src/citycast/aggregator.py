# forecast aggregation: collapse 3-hour observations into per-day summaries
# pure functions only, no i/o and no state between calls
# two passes: accumulate (fold) then finalize (freeze)

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List

from .models import DaySummary, DetailRow, Observation

DEFAULT_TIME_FORMAT = "%H:%M"


@dataclass
class DayAccumulator:
    # mutable, in-progress state for one calendar date
    date: date
    temp_max: float = float("-inf")
    temp_min: float = float("inf")
    condition_counts: Dict[str, int] = field(default_factory=dict)
    rain_total: float = 0.0
    snow_total: float = 0.0
    details: List[DetailRow] = field(default_factory=list)

    def add(self, obs: Observation, time_format: str = DEFAULT_TIME_FORMAT) -> None:
        self.temp_max = max(self.temp_max, obs.temp_max)
        self.temp_min = min(self.temp_min, obs.temp_min)
        self.condition_counts[obs.condition] = self.condition_counts.get(obs.condition, 0) + 1
        self.rain_total += obs.rain_3h
        self.snow_total += obs.snow_3h
        self.details.append(
            DetailRow(
                time=obs.timestamp.strftime(time_format),
                temp=obs.temp,
                condition=obs.condition,
                humidity=obs.humidity,
                wind_speed=obs.wind_speed,
                pressure=obs.pressure,
            )
        )


def dominant_condition(counts: Dict[str, int]) -> str:
    # highest count wins, ties go to the label seen first
    # dict preserves insertion order, so a strict '>' scan keeps the first-seen label
    best_label = ""
    best_count = 0
    for label, count in counts.items():
        if count > best_count:
            best_label, best_count = label, count
    return best_label


def accumulate(
    observations: Iterable[Observation], time_format: str = DEFAULT_TIME_FORMAT
) -> Dict[date, DayAccumulator]:
    # group by local calendar date in first-seen order, never by date value
    days: Dict[date, DayAccumulator] = {}
    for obs in observations:
        key = obs.timestamp.date()
        acc = days.get(key)
        if acc is None:
            acc = days[key] = DayAccumulator(date=key)
        acc.add(obs, time_format)
    return days


def finalize(acc: DayAccumulator) -> DaySummary:
    return DaySummary(
        date=acc.date,
        temp_max=acc.temp_max,
        temp_min=acc.temp_min,
        condition_counts=dict(acc.condition_counts),
        dominant_condition=dominant_condition(acc.condition_counts),
        rain_total=acc.rain_total,
        snow_total=acc.snow_total,
        details=tuple(acc.details),
    )


def aggregate(
    observations: Iterable[Observation], time_format: str = DEFAULT_TIME_FORMAT
) -> List[DaySummary]:
    # empty input is a valid empty forecast, not an error
    return [finalize(acc) for acc in accumulate(observations, time_format).values()]
