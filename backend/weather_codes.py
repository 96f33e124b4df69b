"""Condition severity ranking and provider code mapping helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

import yaml

from constants import DEFAULT_PROVIDER, PROVIDER_CODES_PATH
from errors import ProviderError
from interpolation import round_half_up
from models import (
    Conditions,
    Location,
    Precipitation,
    PrecipitationType,
    Temperature,
    WeatherCondition,
    WeatherForecast,
    Wind,
)

CONDITION_SEVERITY = (
    WeatherCondition.SUNNY,
    WeatherCondition.CLOUDY,
    WeatherCondition.OVERCAST,
    WeatherCondition.FOGGY,
    WeatherCondition.RAINY,
    WeatherCondition.SNOWY,
    WeatherCondition.STORMY,
)


def condition_severity_rank(condition) -> int:
    """0 for sunny up to 6 for stormy."""
    return CONDITION_SEVERITY.index(WeatherCondition(condition))


@lru_cache(maxsize=8)
def load_provider_codes(path: str = PROVIDER_CODES_PATH) -> dict:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def provider_table(provider: str = DEFAULT_PROVIDER, path: str = PROVIDER_CODES_PATH) -> dict:
    tables = load_provider_codes(path)
    if provider not in tables:
        raise ProviderError(f"No code table for weather provider '{provider}'")
    return tables[provider]


def map_condition(main: str, code_id: Optional[int], provider: str = DEFAULT_PROVIDER) -> WeatherCondition:
    table = provider_table(provider)
    by_id = table.get("condition_ids") or {}
    if code_id is not None and code_id in by_id:
        return WeatherCondition(by_id[code_id])
    mapped = (table.get("conditions") or {}).get((main or "").lower(), table.get("default_condition", "cloudy"))
    return WeatherCondition(mapped)


def _amount(block: Optional[dict]) -> float:
    if not block:
        return 0.0
    return float(block.get("1h") or block.get("3h") or 0.0)


def precipitation_type(
    code_id: int,
    rain: Optional[dict] = None,
    snow: Optional[dict] = None,
    provider: str = DEFAULT_PROVIDER,
) -> PrecipitationType:
    """Hail/sleet ids first, then measured amounts, then id ranges."""
    table = provider_table(provider)
    if code_id in (table.get("hail_ids") or ()):
        return PrecipitationType.HAIL
    if code_id in (table.get("sleet_ids") or ()):
        return PrecipitationType.SLEET
    if _amount(snow) > 0:
        return PrecipitationType.SNOW
    if _amount(rain) > 0:
        return PrecipitationType.RAIN
    for first, last, kind in table.get("precipitation_id_ranges") or ():
        if first <= code_id <= last:
            return PrecipitationType(kind)
    return PrecipitationType.NONE


def precipitation_intensity(
    rain: Optional[dict] = None,
    snow: Optional[dict] = None,
    provider: str = DEFAULT_PROVIDER,
) -> int:
    """Normalise mm/h onto the 0..10 intensity scale."""
    table = provider_table(provider)
    amount = _amount(rain) + _amount(snow)
    if amount <= 0:
        return 0
    for upper, level in table.get("intensity_scale") or ():
        if amount < upper:
            return int(level)
    return int(table.get("intensity_max", 10))


def normalize_provider_payload(payload: dict, location: Location, provider: str = DEFAULT_PROVIDER) -> WeatherForecast:
    """Turn a raw current-weather/forecast entry into a WeatherForecast.

    Raises:
        ProviderError: when required fields are missing.
    """
    try:
        weather = payload["weather"][0]
        main = payload["main"]
        wind = payload.get("wind") or {}
        code_id = int(weather["id"])
        kind = precipitation_type(code_id, payload.get("rain"), payload.get("snow"), provider)
        if "pop" in payload:
            probability = round_half_up(float(payload["pop"]) * 100)
        else:
            probability = 0 if kind == PrecipitationType.NONE else 100

        return WeatherForecast(
            location=location,
            timestamp=datetime.fromtimestamp(int(payload["dt"]), tz=timezone.utc),
            temperature=Temperature(
                current=round_half_up(main["temp"]),
                feels_like=round_half_up(main["feels_like"]),
                min=round_half_up(main["temp_min"]),
                max=round_half_up(main["temp_max"]),
            ),
            conditions=Conditions(
                main=map_condition(weather.get("main", ""), code_id, provider),
                description=weather.get("description", ""),
                icon=weather.get("icon", ""),
            ),
            precipitation=Precipitation(
                type=kind,
                probability=probability,
                intensity=precipitation_intensity(payload.get("rain"), payload.get("snow"), provider),
            ),
            wind=Wind(speed=round_half_up(float(wind.get("speed", 0.0)), 1), direction=float(wind.get("deg", 0.0))),
            humidity=main.get("humidity", 0),
            visibility=round_half_up(float(payload.get("visibility", 0)) / 1000),
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise ProviderError(f"Malformed {provider} payload: {e}") from e
