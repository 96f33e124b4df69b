"""Tests for backend/api_contract.py."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from api_contract import (
    forecast_from_dict,
    forecast_to_dict,
    integration_to_dict,
    iso,
    parse_timestamp,
    risk_to_dict,
    route_from_dict,
    route_to_dict,
    validation_to_dict,
)
from errors import DataProcessingError
from models import PrecipitationType, TravelMode, WeatherCondition
from risk import assess_travel_mode_risk
from timeline import integrate_route_with_weather
from validation import validate_consistency


def test_iso_uses_z_suffix():
    assert iso(datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)) == "2024-01-15T10:00:00Z"
    assert iso(datetime(2024, 1, 15, 10, 0)) == "2024-01-15T10:00:00Z"
    cet = timezone(timedelta(hours=1))
    assert iso(datetime(2024, 1, 15, 11, 0, tzinfo=cet)) == "2024-01-15T10:00:00Z"


def test_parse_timestamp():
    expected = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-15T10:00:00Z") == expected
    assert parse_timestamp("2024-01-15T10:00:00") == expected
    assert parse_timestamp("2024-01-15T11:00:00+01:00") == expected
    assert parse_timestamp(expected) is expected


@pytest.mark.parametrize("bad", ["yesterday", "", None, "2024-13-45T10:00:00Z"])
def test_parse_timestamp_rejects(bad):
    with pytest.raises(DataProcessingError) as exc:
        parse_timestamp(bad)
    assert exc.value.code == "INVALID_TIMESTAMPS"


ROUTE_PAYLOAD = {
    "id": "r-42",
    "travelMode": "CYCLING",
    "totalDistance": 12.5,
    "estimatedDuration": 2700,
    "waypoints": [
        {"coordinates": {"latitude": 52.52, "longitude": 13.405}, "distanceFromStart": 0, "estimatedTimeFromStart": 0},
        {"coordinates": {"latitude": 52.6, "longitude": 13.5}, "distanceFromStart": 12.5, "estimatedTimeFromStart": 2700},
    ],
    "segments": [
        {
            "startPoint": {"coordinates": {"latitude": 52.52, "longitude": 13.405}},
            "endPoint": {"coordinates": {"latitude": 52.6, "longitude": 13.5}, "distanceFromStart": 12.5},
            "distance": 12.5,
            "estimatedDuration": 2700,
        }
    ],
}


def test_route_from_dict():
    route = route_from_dict(ROUTE_PAYLOAD)
    assert route.id == "r-42"
    assert route.travel_mode == TravelMode.CYCLING
    assert len(route.waypoints) == 2
    assert route.waypoints[1].coordinates.latitude == pytest.approx(52.6)
    assert route.segments[0].travel_mode == TravelMode.CYCLING
    assert route.segments[0].start_point.distance_from_start == 0.0
    assert route.estimated_duration == 2700.0


def test_route_to_dict_keys(route):
    out = route_to_dict(route)
    assert set(out) == {"waypoints", "segments", "totalDistance", "estimatedDuration", "travelMode", "id"}
    assert out["travelMode"] == "driving"
    assert out["segments"][0]["startPoint"]["distanceFromStart"] == 0.0
    assert route_from_dict(out) == route


@pytest.mark.parametrize("drop", ["totalDistance", "estimatedDuration"])
def test_route_missing_fields(drop):
    payload = {k: v for k, v in ROUTE_PAYLOAD.items() if k != drop}
    with pytest.raises(DataProcessingError) as exc:
        route_from_dict(payload)
    assert exc.value.code == "INVALID_ROUTE"


def test_route_unknown_mode():
    with pytest.raises(DataProcessingError) as exc:
        route_from_dict({**ROUTE_PAYLOAD, "travelMode": "teleport"})
    assert exc.value.code == "INVALID_ROUTE"


FORECAST_PAYLOAD = {
    "location": {"name": "Berlin", "coordinates": {"latitude": 52.52, "longitude": 13.405}},
    "timestamp": "2024-01-15T10:00:00Z",
    "temperature": {"current": 4, "feelsLike": 1, "min": 2, "max": 6},
    "conditions": {"main": "RAINY", "description": "Light rain", "icon": "10d"},
    "precipitation": {"type": "Rain", "probability": 70, "intensity": 3},
    "wind": {"speed": 18, "direction": 250},
    "humidity": 88,
    "visibility": 7,
}


def test_forecast_from_dict():
    f = forecast_from_dict(FORECAST_PAYLOAD)
    assert f.location.name == "Berlin"
    assert f.timestamp == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert f.conditions.main == WeatherCondition.RAINY
    assert f.precipitation.type == PrecipitationType.RAIN
    assert f.temperature.feels_like == 1
    assert f.wind.direction == 250
    assert forecast_to_dict(f) == {
        **FORECAST_PAYLOAD,
        "conditions": {"main": "rainy", "description": "Light rain", "icon": "10d"},
        "precipitation": {"type": "rain", "probability": 70, "intensity": 3},
    }


def test_forecast_bad_timestamp():
    with pytest.raises(DataProcessingError) as exc:
        forecast_from_dict({**FORECAST_PAYLOAD, "timestamp": "soon"})
    assert exc.value.code == "INVALID_TIMESTAMPS"


def test_forecast_bad_location():
    with pytest.raises(DataProcessingError) as exc:
        forecast_from_dict({**FORECAST_PAYLOAD, "location": {"name": "nowhere"}})
    assert exc.value.code == "INVALID_COORDINATES"


def _without(key):
    return {k: v for k, v in FORECAST_PAYLOAD.items() if k != key}


@pytest.mark.parametrize(
    "payload",
    [
        _without("temperature"),
        _without("conditions"),
        _without("precipitation"),
        _without("wind"),
        {**FORECAST_PAYLOAD, "temperature": {"feelsLike": 1}},
        {**FORECAST_PAYLOAD, "conditions": {"main": "drizzle"}},
        {**FORECAST_PAYLOAD, "precipitation": {"type": "freezing", "probability": 40}},
        {**FORECAST_PAYLOAD, "wind": None},
    ],
    ids=["no-temperature", "no-conditions", "no-precipitation", "no-wind",
         "no-current-temp", "drizzle", "freezing", "null-wind"],
)
def test_forecast_malformed_payload(payload):
    with pytest.raises(DataProcessingError) as exc:
        forecast_from_dict(payload)
    assert exc.value.code == "INVALID_FORECAST"
    assert exc.value.suggestions
    assert exc.value.to_dict()["code"] == "INVALID_FORECAST"


def test_integration_to_dict(route, forecasts, start_time):
    out = integration_to_dict(integrate_route_with_weather(route, forecasts, start_time))
    assert set(out) == {
        "route", "weatherData", "timeline", "startTime", "endTime", "totalDuration", "warnings", "dataQuality",
    }
    assert out["startTime"] == "2024-01-15T10:00:00Z"
    assert out["endTime"] == "2024-01-15T14:00:00Z"
    assert set(out["timeline"][0]) == {
        "waypoint", "weather", "travelTime", "segmentIndex", "distanceFromStart",
        "timeFromStart", "isInterpolated", "confidence",
    }
    assert set(out["dataQuality"]) == {"completeness", "confidence", "interpolatedPoints"}


def test_validation_to_dict(route, forecasts, start_time):
    out = validation_to_dict(validate_consistency(route, forecasts, start_time))
    assert out["isValid"] is True
    assert out["missingDataPoints"] == 1
    assert isinstance(out["warnings"], list)


def test_risk_to_dict_serialises_enums(make_forecast):
    out = risk_to_dict(assess_travel_mode_risk(TravelMode.WALKING, [make_forecast()]))
    assert out["travelMode"] == "walking"
    assert out["weatherFactors"]["precipitation"]["dangerous"] == ["sleet", "hail"]
    assert out["weatherFactors"]["wind"]["warning"] == 30
