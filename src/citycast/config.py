# settings are read once from the environment (optionally seeded by a .env file)
# the api key stays opaque here, only the fetch clients use it

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError

OPENWEATHER_BASE_URL = "https://api.openweathermap.org"
CITIES_BASE_URL = "https://public.opendatasoft.com/api/records/1.0/search/"
CITIES_DATASET = "geonames-all-cities-with-a-population-1000"


@dataclass(frozen=True)
class Settings:
    openweather_api_key: Optional[str] = None
    openweather_base_url: str = OPENWEATHER_BASE_URL
    cities_base_url: str = CITIES_BASE_URL
    cities_dataset: str = CITIES_DATASET
    page_size: int = 20
    timeout: float = 10.0
    max_retries: int = 0  # no retry policy unless asked for
    log_level: str = "INFO"


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number (got {raw!r})") from exc


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    if env is None:
        load_dotenv()  # in production, environment variables are injected by the host
        env = os.environ

    page_size = _number(env, "CITIES_PAGE_SIZE", 20, int)
    if page_size < 1:
        raise ConfigError(f"CITIES_PAGE_SIZE must be positive (got {page_size})")
    max_retries = _number(env, "HTTP_MAX_RETRIES", 0, int)
    if max_retries < 0:
        raise ConfigError(f"HTTP_MAX_RETRIES must not be negative (got {max_retries})")

    return Settings(
        openweather_api_key=env.get("OPENWEATHER_API_KEY") or None,
        openweather_base_url=env.get("OPENWEATHER_BASE_URL") or OPENWEATHER_BASE_URL,
        cities_base_url=env.get("CITIES_BASE_URL") or CITIES_BASE_URL,
        cities_dataset=env.get("CITIES_DATASET") or CITIES_DATASET,
        page_size=page_size,
        timeout=_number(env, "HTTP_TIMEOUT", 10.0, float),
        max_retries=max_retries,
        log_level=env.get("LOG_LEVEL") or "INFO",
    )
