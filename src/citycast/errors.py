# error types shared by the fetch boundary, the parsers and the cli

from __future__ import annotations


class CitycastError(RuntimeError):
    pass


class ConfigError(CitycastError):
    # missing key or a setting that does not parse
    pass


class FetchError(CitycastError):
    # transport failure, non-success status, invalid json or unexpected payload shape
    pass


class ForecastUnavailable(FetchError):
    pass


class ListingUnavailable(FetchError):
    pass


class MalformedObservation(ValueError):
    # a forecast slot missing a required scalar; never reaches the aggregator
    pass
