# OOP boundary for external i/o
# all http/keys/timeouts live here, so the rest of the code is pure and testable
# use a thread-local session per ThreadPoolExecutor worker

from __future__ import annotations
import logging
import threading
from typing import Any, Dict, Optional, Type

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import CITIES_BASE_URL, CITIES_DATASET, OPENWEATHER_BASE_URL, Settings
from .errors import ConfigError, FetchError, ForecastUnavailable, ListingUnavailable

logger = logging.getLogger(__name__)

USER_AGENT = "citycast/0.1"


class _JSONClient:
    # shared session handling; subclasses pick the url, params and error type
    DEFAULT_TIMEOUT = 10.0
    error_type: Type[FetchError] = FetchError

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = 0,
        backoff_factor: float = 0.5,
        user_agent: str = USER_AGENT,
    ):
        self.timeout = timeout
        self.user_agent = user_agent

        # each worker thread lazily obtains its own session through _session()
        self._local = threading.local()

        # zero retries by default: a failed fetch is terminal for that request
        self._retry = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=("GET",),
            raise_on_status=False,
        )

    def _build_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"User-Agent": self.user_agent, "Accept": "application/json"})
        adapter = HTTPAdapter(max_retries=self._retry)
        s.mount("http://", adapter)
        s.mount("https://", adapter)
        return s

    def _session(self) -> requests.Session:
        sess = getattr(self._local, "session", None)
        if sess is None:
            sess = self._build_session()
            self._local.session = sess
        return sess

    def _get_json(self, url: str, params: Dict[str, Any], what: str) -> Dict[str, Any]:
        logger.debug("GET %s (%s)", url, what)
        try:
            resp = self._session().get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise self.error_type(f"Request error for {what}: {exc}") from exc

        if resp.status_code >= 400:
            # include a short response snippet to speed up triage
            snippet = (resp.text or "")[:300]
            raise self.error_type(f"HTTP {resp.status_code} for {what}. Body: {snippet}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise self.error_type(f"Invalid JSON for {what}: {exc}") from exc

        if not isinstance(data, dict):
            raise self.error_type(f"Unexpected API shape for {what}: top level is not an object")
        return data


class OpenWeatherClient(_JSONClient):
    # 5 day / 3 hour forecast endpoint, metric units
    FORECAST_PATH = "/data/2.5/forecast"
    error_type = ForecastUnavailable

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = OPENWEATHER_BASE_URL,
        **kwargs: Any,
    ):
        if not api_key:
            # fail early to avoid a confusing 401 later on
            raise ConfigError("OPENWEATHER_API_KEY not set")
        super().__init__(**kwargs)
        self.api_key = api_key
        self.url = base_url.rstrip("/") + self.FORECAST_PATH

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenWeatherClient":
        return cls(
            api_key=settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
        )

    def get_forecast(self, lat: float, lon: float) -> Dict[str, Any]:
        params = {"lat": lat, "lon": lon, "appid": self.api_key, "units": "metric"}
        data = self._get_json(self.url, params, f"forecast at ({lat}, {lon})")

        # ensure the data meets the basic requirements expected by the service layer
        if not isinstance(data.get("list"), list):
            raise ForecastUnavailable("Unexpected API shape: missing list")
        return data


class CityDirectoryClient(_JSONClient):
    # OpenDataSoft records search over the geonames cities dataset
    error_type = ListingUnavailable

    def __init__(
        self,
        base_url: str = CITIES_BASE_URL,
        dataset: str = CITIES_DATASET,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.url = base_url
        self.dataset = dataset

    @classmethod
    def from_settings(cls, settings: Settings) -> "CityDirectoryClient":
        return cls(
            base_url=settings.cities_base_url,
            dataset=settings.cities_dataset,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
        )

    def search(self, query: str, start: int = 0, rows: int = 20) -> Dict[str, Any]:
        if start < 0 or rows < 1:
            raise ValueError(f"invalid page window start={start} rows={rows}")
        params = {"dataset": self.dataset, "q": query, "rows": rows, "start": start}
        data = self._get_json(self.url, params, f"cities q={query!r} start={start}")

        if not isinstance(data.get("records", []), list):
            raise ListingUnavailable("Unexpected API shape: records is not a list")
        return data
