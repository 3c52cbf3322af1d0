# connects input (search text or coordinates) to the services and prints the result
# this is the renderer: it only ever sees CityRecord, ForecastLocation and DaySummary values

from __future__ import annotations
import argparse
import sys
from typing import Iterable, List, Optional, Sequence

from .aggregator import DEFAULT_TIME_FORMAT
from .client import CityDirectoryClient, OpenWeatherClient
from .config import load_settings
from .errors import ConfigError, FetchError
from .listing import ListingProvider
from .logger import setup_logger
from .models import CityRecord, DaySummary, ForecastView
from .service import load_forecast


def _cell(value) -> str:
    # missing values render blank instead of "None"
    return "" if value is None else str(value)


def render_cities(cities: Iterable[CityRecord]) -> List[str]:
    lines = [f"{'City Name':<30} {'Country':<30} {'Timezone':<25} {'Population':>10}  Forecast"]
    for c in cities:
        lines.append(
            f"{c.name:<30} {_cell(c.country):<30} {_cell(c.timezone):<25} "
            f"{_cell(c.population):>10}  {_cell(c.forecast_path)}"
        )
    return lines


def render_day(day: DaySummary) -> List[str]:
    lines = [
        day.date.isoformat(),
        f"  High (°C): {day.temp_max}",
        f"  Low (°C): {day.temp_min}",
        f"  Weather: {day.dominant_condition}",
        f"  Precipitation: {'Yes' if day.has_precipitation else 'No'}",
        f"  {'Time':<6} {'Temp (°C)':>9} {'Weather':<22} {'Hum (%)':>7} {'Wind (m/s)':>10} {'Press (hPa)':>11}",
    ]
    for d in day.details:
        lines.append(
            f"  {d.time:<6} {d.temp:>9} {d.condition:<22} {d.humidity:>7} {d.wind_speed:>10} {d.pressure:>11}"
        )
    return lines


def render_forecast(view: ForecastView) -> List[str]:
    loc = view.location
    lines = [f"Weather Forecast for {_cell(loc.name)}", _cell(loc.country)]
    if loc.coordinates is not None:
        # the map of the browser version is reduced to its marker position
        lines.append(f"Marker: {loc.coordinates.latitude}, {loc.coordinates.longitude}")
    lines.append("")
    lines.append("Daily Forecast")
    if not view.days:
        lines.append("No forecast data.")
    for day in view.days:
        lines.extend(render_day(day))
        lines.append("")
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="citycast", description="Browse world cities and their forecasts.")
    sub = parser.add_subparsers(dest="command", required=True)

    cities = sub.add_parser("cities", help="list cities, sorted by country")
    cities.add_argument("--search", default="", help="free-text search; disables paging")
    cities.add_argument("--pages", type=int, default=1, help="pages to load when not searching")

    forecast = sub.add_parser("forecast", help="daily forecast for a coordinate pair")
    forecast.add_argument("lat", type=float)
    forecast.add_argument("lon", type=float)
    forecast.add_argument("--time-format", default=DEFAULT_TIME_FORMAT)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    logger = setup_logger(settings.log_level)

    if args.command == "cities":
        provider = ListingProvider(CityDirectoryClient.from_settings(settings), page_size=settings.page_size)
        try:
            result = provider.search(args.search, 0)
            for _ in range(1, max(args.pages, 1)):
                if not result.has_more:
                    break
                result = provider.load_more()
        except FetchError as exc:
            logger.debug("listing failure: %s", exc)
            print("Failed to fetch cities", file=sys.stderr)
            return 1
        for line in render_cities(result.cities):
            print(line)
        return 0

    try:
        client = OpenWeatherClient.from_settings(settings)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    try:
        view = load_forecast(client, args.lat, args.lon, time_format=args.time_format)
    except FetchError as exc:
        logger.debug("forecast failure: %s", exc)
        print("Failed to fetch weather data", file=sys.stderr)
        return 1
    for line in render_forecast(view):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
