# orchestration and boundary rules
# transform raw provider payloads into our small, typed value objects and check shape
# nothing optional leaks past this module as a missing key: it becomes None or a default

from __future__ import annotations
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from .aggregator import DEFAULT_TIME_FORMAT, aggregate
from .client import OpenWeatherClient
from .errors import ForecastUnavailable, MalformedObservation
from .models import (
    CityRecord,
    Coordinates,
    Forecast,
    ForecastLocation,
    ForecastView,
    Observation,
)

logger = logging.getLogger(__name__)

DT_TXT_FORMAT = "%Y-%m-%d %H:%M:%S"


def _required_number(container: Any, key: str, where: str) -> float:
    if not isinstance(container, dict) or container.get(key) is None:
        raise MalformedObservation(f"missing {where}.{key}")
    value = container[key]
    if isinstance(value, bool):
        raise MalformedObservation(f"{where}.{key} is not a number: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedObservation(f"{where}.{key} is not a number: {value!r}") from exc
    # nan would vanish silently in the min/max fold
    if not math.isfinite(number):
        raise MalformedObservation(f"{where}.{key} is not finite: {value!r}")
    return number


def _precipitation(item: Dict[str, Any], kind: str) -> float:
    # absent block or absent 3h volume means no precipitation
    block = item.get(kind)
    if not isinstance(block, dict) or block.get("3h") is None:
        return 0.0
    amount = _required_number(block, "3h", kind)
    if amount < 0:
        raise MalformedObservation(f"{kind}.3h is negative: {amount}")
    return amount


def _timestamp(item: Dict[str, Any], tz: Optional[timezone]) -> datetime:
    # prefer the unix time shifted into the location's own offset; dt_txt is a UTC wall clock
    # with an offset every slot ends up aware and local, without one dt_txt stays naive
    dt = item.get("dt")
    has_dt = isinstance(dt, (int, float)) and not isinstance(dt, bool)
    dt_txt = item.get("dt_txt")
    try:
        if tz is not None and has_dt:
            return datetime.fromtimestamp(dt, tz)
        if isinstance(dt_txt, str):
            wall = datetime.strptime(dt_txt, DT_TXT_FORMAT)
            if tz is not None:
                return wall.replace(tzinfo=timezone.utc).astimezone(tz)
            return wall
        if has_dt:
            return datetime.fromtimestamp(dt, timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise MalformedObservation(f"bad timestamp dt={dt!r} dt_txt={dt_txt!r}: {exc}") from exc
    raise MalformedObservation("missing dt and dt_txt")


def _utc_offset(city: Any) -> Optional[int]:
    # seconds east of UTC, or None when missing or not a usable offset
    if not isinstance(city, dict):
        return None
    offset = city.get("timezone")
    if offset is None:
        return None
    if isinstance(offset, bool) or not isinstance(offset, (int, float)) or not math.isfinite(offset):
        return None
    seconds = int(offset)
    if not -86400 < seconds < 86400:
        return None
    return seconds


def parse_observation(item: Any, tz: Optional[timezone] = None) -> Observation:
    # openweather shape: item["main"]["temp_max"], item["weather"][0]["description"], ...
    if not isinstance(item, dict):
        raise MalformedObservation(f"forecast slot is not an object: {item!r}")

    main = item.get("main")
    weather = item.get("weather")
    if not isinstance(weather, list) or not weather or not isinstance(weather[0], dict):
        raise MalformedObservation("missing weather[0]")
    condition = weather[0].get("description")
    if not isinstance(condition, str) or not condition:
        raise MalformedObservation("missing weather[0].description")

    return Observation(
        timestamp=_timestamp(item, tz),
        temp=_required_number(main, "temp", "main"),
        temp_min=_required_number(main, "temp_min", "main"),
        temp_max=_required_number(main, "temp_max", "main"),
        condition=condition,
        humidity=_required_number(main, "humidity", "main"),
        wind_speed=_required_number(item.get("wind"), "speed", "wind"),
        pressure=_required_number(main, "pressure", "main"),
        rain_3h=_precipitation(item, "rain"),
        snow_3h=_precipitation(item, "snow"),
    )


def _coordinates(lat: Any, lon: Any) -> Optional[Coordinates]:
    try:
        if lat is None or lon is None:
            return None
        return Coordinates(latitude=float(lat), longitude=float(lon))
    except (TypeError, ValueError):
        return None


def parse_location(city: Any) -> ForecastLocation:
    if not isinstance(city, dict):
        return ForecastLocation(name=None, country=None, coordinates=None)
    coord = city.get("coord") if isinstance(city.get("coord"), dict) else {}
    offset = _utc_offset(city)
    return ForecastLocation(
        name=city.get("name") or None,
        country=city.get("country") or None,
        coordinates=_coordinates(coord.get("lat"), coord.get("lon")),
        timezone_offset=offset if offset is not None else 0,
    )


def parse_forecast(data: Any, strict: bool = False) -> Forecast:
    if not isinstance(data, dict) or not isinstance(data.get("list"), list):
        raise ForecastUnavailable("Unsupported payload shape for parse_forecast()")

    city = data.get("city")
    location = parse_location(city)
    # only shift into local time when the provider told us a usable offset
    offset = _utc_offset(city)
    tz = timezone(timedelta(seconds=offset)) if offset is not None else None
    if offset is None and isinstance(city, dict) and city.get("timezone") is not None:
        logger.warning("Ignoring unusable city.timezone %r, using UTC wall clock", city["timezone"])

    observations: List[Observation] = []
    skipped = 0
    for index, item in enumerate(data["list"]):
        try:
            observations.append(parse_observation(item, tz))
        except MalformedObservation as exc:
            if strict:
                raise ForecastUnavailable(f"Malformed forecast slot #{index}: {exc}") from exc
            skipped += 1
            logger.debug("Skipping forecast slot #%d: %s", index, exc)

    if skipped:
        logger.warning("Skipped %d malformed forecast slot(s) out of %d", skipped, len(data["list"]))
    return Forecast(location=location, observations=tuple(observations))


def parse_city_record(record: Any) -> Optional[CityRecord]:
    # opendatasoft shape: record["fields"]["cou_name_en"], coordinates as [lat, lon]
    if not isinstance(record, dict):
        return None
    fields = record.get("fields")
    if not isinstance(fields, dict):
        return None
    name = fields.get("name")
    if not isinstance(name, str) or not name:
        return None

    coordinates = None
    point = fields.get("coordinates")
    if isinstance(point, (list, tuple)) and len(point) == 2:
        coordinates = _coordinates(point[0], point[1])
    if coordinates is None:
        # geojson geometry is [lon, lat]
        geometry = record.get("geometry")
        geo = geometry.get("coordinates") if isinstance(geometry, dict) else None
        if isinstance(geo, (list, tuple)) and len(geo) == 2:
            coordinates = _coordinates(geo[1], geo[0])

    population = fields.get("population")
    try:
        population = int(population) if population is not None and not isinstance(population, bool) else None
    except (TypeError, ValueError):
        population = None

    return CityRecord(
        name=name,
        country=fields.get("cou_name_en") or None,
        timezone=fields.get("timezone") or None,
        population=population,
        coordinates=coordinates,
    )


def parse_city_records(data: Any) -> List[CityRecord]:
    records = data.get("records") if isinstance(data, dict) else None
    if not records:
        return []
    cities: List[CityRecord] = []
    for record in records:
        city = parse_city_record(record)
        if city is None:
            logger.debug("Dropping city record without a name: %r", record)
            continue
        cities.append(city)
    return cities


def sort_by_country(cities: Iterable[CityRecord]) -> List[CityRecord]:
    # missing country sorts as "", sorted() is stable so ties keep provider order
    return sorted(cities, key=lambda c: (c.country or "").casefold())


# single city path: fetch -> parse -> aggregate
def load_forecast(
    client: OpenWeatherClient,
    lat: float,
    lon: float,
    time_format: str = DEFAULT_TIME_FORMAT,
) -> ForecastView:
    payload = client.get_forecast(lat, lon)
    forecast = parse_forecast(payload)
    days = aggregate(forecast.observations, time_format=time_format)
    logger.info(
        "Forecast for %s: %d observation(s) over %d day(s)",
        forecast.location.name or f"({lat}, {lon})",
        len(forecast.observations),
        len(days),
    )
    return ForecastView(location=forecast.location, days=tuple(days))
