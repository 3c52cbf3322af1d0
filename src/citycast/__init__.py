# browse world cities and collapse their 3-hour forecasts into daily summaries

from .aggregator import aggregate
from .errors import CitycastError, FetchError, ForecastUnavailable, ListingUnavailable
from .listing import ListingProvider
from .service import load_forecast

__all__ = [
    "aggregate",
    "CitycastError",
    "FetchError",
    "ForecastUnavailable",
    "ListingUnavailable",
    "ListingProvider",
    "load_forecast",
]
