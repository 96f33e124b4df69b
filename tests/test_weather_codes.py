"""Tests for backend/weather_codes.py."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from conftest import NYC
from errors import ProviderError
from models import Location, PrecipitationType, WeatherCondition
from weather_codes import (
    condition_severity_rank,
    load_provider_codes,
    map_condition,
    normalize_provider_payload,
    precipitation_intensity,
    precipitation_type,
    provider_table,
)


def test_severity_ordering():
    ranks = [condition_severity_rank(c) for c in (
        "sunny", "cloudy", "overcast", "foggy", "rainy", "snowy", "stormy"
    )]
    assert ranks == list(range(7))
    assert condition_severity_rank(WeatherCondition.STORMY) == 6


@pytest.mark.parametrize(
    "main, code_id, expected",
    [
        ("Clear", 800, WeatherCondition.SUNNY),
        ("Clouds", 802, WeatherCondition.CLOUDY),
        ("Clouds", 804, WeatherCondition.OVERCAST),
        ("Rain", 500, WeatherCondition.RAINY),
        ("Drizzle", 300, WeatherCondition.RAINY),
        ("Thunderstorm", 211, WeatherCondition.STORMY),
        ("Snow", 600, WeatherCondition.SNOWY),
        ("Mist", 701, WeatherCondition.FOGGY),
        ("Tornado", 781, WeatherCondition.CLOUDY),
        ("", None, WeatherCondition.CLOUDY),
    ],
)
def test_map_condition(main, code_id, expected):
    assert map_condition(main, code_id) == expected


def test_precipitation_type():
    assert precipitation_type(201) == PrecipitationType.HAIL
    assert precipitation_type(612) == PrecipitationType.SLEET
    assert precipitation_type(800, snow={"1h": 0.4}) == PrecipitationType.SNOW
    assert precipitation_type(800, rain={"3h": 1.2}) == PrecipitationType.RAIN
    assert precipitation_type(601) == PrecipitationType.SNOW
    assert precipitation_type(501) == PrecipitationType.RAIN
    assert precipitation_type(800) == PrecipitationType.NONE


@pytest.mark.parametrize(
    "rain, snow, level",
    [
        (None, None, 0),
        ({"1h": 0.2}, None, 1),
        ({"1h": 1.0}, None, 3),
        ({"1h": 5.0}, None, 5),
        (None, {"1h": 10.0}, 7),
        ({"1h": 10.0}, {"1h": 10.0}, 10),
    ],
)
def test_precipitation_intensity(rain, snow, level):
    assert precipitation_intensity(rain, snow) == level


def _payload(**overrides):
    payload = {
        "dt": 1705312800,  # 2024-01-15 10:00 UTC
        "main": {"temp": 14.6, "feels_like": 12.5, "temp_min": 10.2, "temp_max": 17.8, "humidity": 71},
        "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}],
        "wind": {"speed": 4.26, "deg": 210},
        "visibility": 8500,
        "rain": {"1h": 1.5},
        "pop": 0.64,
    }
    payload.update(overrides)
    return payload


def test_normalize_provider_payload():
    loc = Location("New York", NYC)
    f = normalize_provider_payload(_payload(), loc)

    assert f.location == loc
    assert f.timestamp == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert (f.temperature.current, f.temperature.feels_like) == (15, 13)
    assert (f.temperature.min, f.temperature.max) == (10, 18)
    assert f.conditions.main == WeatherCondition.RAINY
    assert f.conditions.description == "light rain"
    assert f.precipitation.type == PrecipitationType.RAIN
    assert f.precipitation.probability == 64
    assert f.precipitation.intensity == 3
    assert f.wind.speed == pytest.approx(4.3)
    assert f.wind.direction == 210
    assert f.humidity == 71
    assert f.visibility == 9


def test_probability_without_pop():
    loc = Location("x", NYC)
    wet = normalize_provider_payload({k: v for k, v in _payload().items() if k != "pop"}, loc)
    dry = normalize_provider_payload(
        _payload(weather=[{"id": 800, "main": "Clear"}], rain=None, pop=0.0), loc
    )
    assert wet.precipitation.probability == 100
    assert dry.precipitation.type == PrecipitationType.NONE
    assert dry.precipitation.probability == 0


@pytest.mark.parametrize(
    "broken",
    [
        {"weather": []},
        {"main": {"temp": 10}},
        {"dt": "yesterday"},
        {"weather": None},
    ],
)
def test_malformed_payload_raises(broken):
    with pytest.raises(ProviderError):
        normalize_provider_payload(_payload(**broken), Location("x", NYC))


def test_unknown_provider():
    with pytest.raises(ProviderError):
        map_condition("Clear", 800, provider="nope")


def test_custom_code_table(tmp_path):
    path = tmp_path / "codes.yaml"
    path.write_text(
        "acme:\n"
        "  default_condition: foggy\n"
        "  conditions: {sun: sunny}\n"
        "  intensity_scale: [[1.0, 2]]\n"
        "  intensity_max: 9\n"
    )
    table = provider_table("acme", path=str(path))
    assert table["conditions"] == {"sun": "sunny"}
    assert table["intensity_max"] == 9
    assert "openweathermap" not in load_provider_codes(str(path))
