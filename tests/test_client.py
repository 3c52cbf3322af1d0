# http boundary tests: the session is mocked, nothing goes over the network

from unittest.mock import Mock, patch

import pytest
import requests

from citycast.client import CityDirectoryClient, OpenWeatherClient
from citycast.config import Settings
from citycast.errors import ConfigError, ForecastUnavailable, ListingUnavailable


def response(status=200, json_data=None, text="", json_error=None):
    resp = Mock()
    resp.status_code = status
    resp.text = text
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = json_data
    return resp


def with_session(client, resp=None, error=None):
    session = Mock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = resp
    return patch.object(client, "_session", return_value=session), session


def test_missing_api_key():
    with pytest.raises(ConfigError):
        OpenWeatherClient(api_key=None)


def test_forecast_request_params():
    client = OpenWeatherClient(api_key="k", base_url="https://example.test/", timeout=3.0)
    patcher, session = with_session(client, response(json_data={"list": [], "city": {}}))
    with patcher:
        data = client.get_forecast(51.5, -0.12)
    assert data["list"] == []
    session.get.assert_called_once_with(
        "https://example.test/data/2.5/forecast",
        params={"lat": 51.5, "lon": -0.12, "appid": "k", "units": "metric"},
        timeout=3.0,
    )


@pytest.mark.parametrize(
    "resp, error",
    [
        (response(status=401, text="Invalid API key"), None),
        (response(json_error=ValueError("no json")), None),
        (response(json_data={"cod": "200"}), None),
        (response(json_data=["not", "an", "object"]), None),
        (None, requests.ConnectionError("boom")),
    ],
)
def test_forecast_failures_are_wrapped(resp, error):
    client = OpenWeatherClient(api_key="k")
    patcher, _ = with_session(client, resp, error)
    with patcher, pytest.raises(ForecastUnavailable):
        client.get_forecast(0, 0)


def test_http_error_includes_status_and_snippet():
    client = OpenWeatherClient(api_key="k")
    patcher, _ = with_session(client, response(status=500, text="x" * 1000))
    with patcher, pytest.raises(ForecastUnavailable) as info:
        client.get_forecast(1, 2)
    assert "HTTP 500" in str(info.value)
    assert len(str(info.value)) < 500


def test_city_search_params():
    client = CityDirectoryClient(base_url="https://cities.test/search/", dataset="ds", timeout=4.0)
    patcher, session = with_session(client, response(json_data={"records": []}))
    with patcher:
        client.search("oslo", start=40, rows=20)
    session.get.assert_called_once_with(
        "https://cities.test/search/",
        params={"dataset": "ds", "q": "oslo", "rows": 20, "start": 40},
        timeout=4.0,
    )


def test_city_search_failures_are_wrapped():
    client = CityDirectoryClient()
    patcher, _ = with_session(client, error=requests.Timeout("slow"))
    with patcher, pytest.raises(ListingUnavailable):
        client.search("", 0, 20)

    patcher, _ = with_session(client, response(json_data={"records": {"oops": 1}}))
    with patcher, pytest.raises(ListingUnavailable):
        client.search("", 0, 20)


def test_city_search_rejects_bad_window():
    with pytest.raises(ValueError):
        CityDirectoryClient().search("", start=-20)


def test_session_is_thread_local_and_reused():
    client = CityDirectoryClient(max_retries=2)
    s1 = client._session()
    assert client._session() is s1
    adapter = s1.get_adapter("https://public.opendatasoft.com")
    assert adapter.max_retries.total == 2


def test_clients_from_settings():
    settings = Settings(openweather_api_key="abc", timeout=2.5, max_retries=1)
    weather = OpenWeatherClient.from_settings(settings)
    assert weather.api_key == "abc"
    assert weather.timeout == 2.5
    assert weather.url == "https://api.openweathermap.org/data/2.5/forecast"

    cities = CityDirectoryClient.from_settings(settings)
    assert cities.dataset == "geonames-all-cities-with-a-population-1000"
