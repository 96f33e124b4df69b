"""Shared pytest fixtures: the New York to Boston route and its forecasts."""

from __future__ import annotations

import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("ROUTEWEATHER_LOG_DIR", tempfile.mkdtemp(prefix="routeweather-logs-"))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from models import (  # noqa: E402
    Conditions,
    Coordinate,
    Location,
    Precipitation,
    PrecipitationType,
    Route,
    RouteSegment,
    Temperature,
    TravelMode,
    Waypoint,
    WeatherCondition,
    WeatherForecast,
    Wind,
)

START = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

NYC = Coordinate(40.7128, -74.0060)
MID = Coordinate(41.5, -72.5)
BOSTON = Coordinate(42.3601, -71.0589)


def _forecast(
    name="Somewhere",
    coord=NYC,
    when=START,
    temp=15,
    feels=None,
    tmin=None,
    tmax=None,
    condition=WeatherCondition.SUNNY,
    description="Clear sky",
    icon="01d",
    precip=PrecipitationType.NONE,
    probability=0,
    intensity=0,
    wind_speed=10,
    wind_dir=180,
    humidity=60,
    visibility=15,
) -> WeatherForecast:
    return WeatherForecast(
        location=Location(name, coord),
        timestamp=when,
        temperature=Temperature(
            current=temp,
            feels_like=temp if feels is None else feels,
            min=temp - 3 if tmin is None else tmin,
            max=temp + 3 if tmax is None else tmax,
        ),
        conditions=Conditions(condition, description, icon),
        precipitation=Precipitation(precip, probability, intensity),
        wind=Wind(wind_speed, wind_dir),
        humidity=humidity,
        visibility=visibility,
    )


@pytest.fixture
def make_forecast():
    return _forecast


@pytest.fixture
def start_time():
    return START


@pytest.fixture
def route():
    w0 = Waypoint(NYC, 0.0, 0.0)
    w1 = Waypoint(MID, 150.0, 7200.0)
    w2 = Waypoint(BOSTON, 300.0, 14400.0)
    return Route(
        waypoints=[w0, w1, w2],
        segments=[
            RouteSegment(w0, w1, 150.0, 7200.0, TravelMode.DRIVING),
            RouteSegment(w1, w2, 150.0, 7200.0, TravelMode.DRIVING),
        ],
        total_distance=300.0,
        estimated_duration=14400.0,
        travel_mode=TravelMode.DRIVING,
        id="test-route-1",
    )


@pytest.fixture
def forecasts():
    return [
        _forecast("New York", NYC, START, temp=15, feels=12, tmin=10, tmax=18,
                  wind_speed=10, wind_dir=180, humidity=60, visibility=15),
        _forecast("Midpoint", MID, START + timedelta(hours=2), temp=12, feels=10, tmin=8, tmax=15,
                  condition=WeatherCondition.CLOUDY, description="Partly cloudy", icon="02d",
                  probability=20, wind_speed=15, wind_dir=200, humidity=70, visibility=12),
        _forecast("Boston", BOSTON, START + timedelta(hours=4), temp=8, feels=5, tmin=5, tmax=12,
                  condition=WeatherCondition.RAINY, description="Light rain", icon="10d",
                  precip=PrecipitationType.RAIN, probability=80, intensity=3,
                  wind_speed=20, wind_dir=220, humidity=85, visibility=8),
    ]


@pytest.fixture
def sparse_forecasts(forecasts):
    """Only the endpoints: New York at 10:00 and Boston at 14:00."""
    return [forecasts[0], forecasts[2]]


def make_route(distances, seconds_per_km=48.0, mode=TravelMode.DRIVING, lat0=40.0, lon0=-74.0):
    """Straight north-bound route with waypoints at the given distances (km)."""
    waypoints = [
        Waypoint(Coordinate(lat0 + d / 111.0, lon0), float(d), float(d) * seconds_per_km)
        for d in distances
    ]
    segments = [
        RouteSegment(a, b, b.distance_from_start - a.distance_from_start,
                     b.estimated_time_from_start - a.estimated_time_from_start, mode)
        for a, b in zip(waypoints, waypoints[1:])
    ]
    total = float(distances[-1]) if distances else 0.0
    return Route(waypoints, segments, total, max(total * seconds_per_km, 1.0), mode)


@pytest.fixture
def route_factory():
    return make_route
