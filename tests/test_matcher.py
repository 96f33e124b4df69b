"""Tests for backend/matcher.py."""

from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import MID, NYC
from errors import DataProcessingError
from matcher import match_score, match_weather, sample_confidence
from models import Coordinate, Waypoint


def test_exact_time_and_place_scores_one(route, forecasts, start_time):
    assert match_score(forecasts[0], route.waypoints[0], start_time) == pytest.approx(1.0)


def test_score_weights_time_and_location(route, make_forecast, start_time):
    two_hours_off = make_forecast(coord=NYC, when=start_time + timedelta(hours=2))
    assert match_score(two_hours_off, route.waypoints[0], start_time) == pytest.approx(0.7 * 0.5 + 0.3)

    far_away = make_forecast(coord=Coordinate(NYC.latitude + 1.0, NYC.longitude), when=start_time)
    assert match_score(far_away, route.waypoints[0], start_time) == pytest.approx(0.7)


def test_picks_highest_score(route, forecasts, start_time):
    sample = match_weather(route.waypoints[1], start_time + timedelta(hours=2), forecasts)
    assert sample.forecast.location.name == "Midpoint"
    assert sample.interpolated is False
    assert sample.waypoint == route.waypoints[1]
    assert sample.match_score == pytest.approx(1.0)
    assert sample.confidence == pytest.approx(1.0)


def test_empty_pool_raises_no_weather_data(route, start_time):
    with pytest.raises(DataProcessingError) as exc:
        match_weather(route.waypoints[0], start_time, [])
    assert exc.value.code == "NO_WEATHER_DATA"
    assert exc.value.suggestions


def test_ties_go_to_first_candidate(route, make_forecast, start_time):
    first = make_forecast(name="first", coord=NYC, when=start_time)
    second = make_forecast(name="second", coord=NYC, when=start_time)
    assert match_weather(route.waypoints[0], start_time, [first, second]).forecast.location.name == "first"


def test_matching_is_idempotent(route, forecasts, start_time):
    pool = list(forecasts)
    a = match_weather(route.waypoints[1], start_time + timedelta(hours=1), pool)
    b = match_weather(route.waypoints[1], start_time + timedelta(hours=1), pool)
    assert a == b
    assert pool == forecasts


@pytest.mark.parametrize(
    "hours, km_lat_offset, interpolated, expected",
    [
        (0, 0.0, False, 1.0),
        (2, 0.0, False, 1.0),
        (3, 0.0, False, 0.85),
        (10, 0.0, False, 0.7),
        (0, 0.0, True, 0.8),
    ],
)
def test_sample_confidence_decay(make_forecast, start_time, hours, km_lat_offset, interpolated, expected):
    wp = Waypoint(MID, 0.0, 0.0)
    f = make_forecast(coord=Coordinate(MID.latitude + km_lat_offset, MID.longitude),
                      when=start_time + timedelta(hours=hours))
    assert sample_confidence(f, wp, start_time, interpolated) == pytest.approx(expected)


def test_sample_confidence_distance_penalty(make_forecast, start_time):
    wp = Waypoint(MID, 0.0, 0.0)
    # ~33 km north: penalty capped at 0.2
    f = make_forecast(coord=Coordinate(MID.latitude + 0.3, MID.longitude), when=start_time)
    assert sample_confidence(f, wp, start_time, False) == pytest.approx(0.8)
    # ~5.5 km: inside the free radius
    near = make_forecast(coord=Coordinate(MID.latitude + 0.05, MID.longitude), when=start_time)
    assert sample_confidence(near, wp, start_time, False) == pytest.approx(1.0)
