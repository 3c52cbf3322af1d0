# models to keep data shapes explicit and reusable across the app
# everything the renderer receives is an immutable value object

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Observation:
    # one 3-hour forecast slot, already validated by the parsing boundary
    timestamp: datetime  # local time of the forecast location
    temp: float
    temp_min: float
    temp_max: float
    condition: str
    humidity: float
    wind_speed: float
    pressure: float
    rain_3h: float = 0.0
    snow_3h: float = 0.0


@dataclass(frozen=True)
class DetailRow:
    # display row for a single slot inside a day
    time: str
    temp: float
    condition: str
    humidity: float
    wind_speed: float
    pressure: float


@dataclass(frozen=True)
class DaySummary:
    date: date
    temp_max: float
    temp_min: float
    condition_counts: Dict[str, int] = field(hash=False)
    dominant_condition: str
    rain_total: float
    snow_total: float
    details: Tuple[DetailRow, ...] = ()

    @property
    def precipitation_total(self) -> float:
        return self.rain_total + self.snow_total

    @property
    def has_precipitation(self) -> bool:
        return self.precipitation_total > 0


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class CityRecord:
    # missing upstream fields stay None, never 0 or ""
    name: str
    country: Optional[str] = None
    timezone: Optional[str] = None
    population: Optional[int] = None
    coordinates: Optional[Coordinates] = None

    @property
    def forecast_path(self) -> Optional[str]:
        # navigation link to the forecast view, only when we know where the city is
        if self.coordinates is None:
            return None
        return f"/weather/{self.coordinates.latitude}/{self.coordinates.longitude}"


@dataclass(frozen=True)
class ForecastLocation:
    # passes through to the renderer untouched
    name: Optional[str]
    country: Optional[str]
    coordinates: Optional[Coordinates]
    timezone_offset: int = 0  # seconds east of UTC


@dataclass(frozen=True)
class Forecast:
    location: ForecastLocation
    observations: Tuple[Observation, ...] = ()


@dataclass(frozen=True)
class ForecastView:
    # what the renderer gets for one city
    location: ForecastLocation
    days: Tuple[DaySummary, ...] = ()


@dataclass(frozen=True)
class ListingRequest:
    query: str
    page_offset: int
    sequence: int


@dataclass(frozen=True)
class ListingResult:
    cities: Tuple[CityRecord, ...] = ()
    has_more: bool = True
    applied: bool = True  # False when the response arrived stale and was dropped
    request: Optional[ListingRequest] = field(default=None, compare=False)
