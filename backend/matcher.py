"""Pick the forecast that best fits a waypoint at its travel time."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

import numpy as np

from constants import (
    MATCH_LOCATION_WEIGHT,
    MATCH_MAX_DISTANCE_KM,
    MATCH_MAX_TIME_DIFF_HOURS,
    MATCH_TIME_WEIGHT,
)
from errors import DataProcessingError
from geo import haversine_km, haversine_km_many
from interpolation import decay_confidence, hours_between
from logging_config import setup_logging
from models import WeatherForecast, WeatherSample, Waypoint

logger = setup_logging(__name__, level="WARNING")


def _no_weather_data() -> DataProcessingError:
    return DataProcessingError(
        "NO_WEATHER_DATA",
        "No weather data available for route integration",
        ["Ensure weather data is provided for the route timeframe"],
    )


def match_scores(waypoint: Waypoint, target_time: datetime, pool: Sequence[WeatherForecast]) -> np.ndarray:
    """Score every forecast in the pool; 0.7 time proximity + 0.3 location proximity."""
    if not pool:
        return np.zeros(0)
    dt = np.array([abs((f.timestamp - target_time).total_seconds()) for f in pool], dtype=float)
    time_score = np.maximum(0.0, 1.0 - dt / (MATCH_MAX_TIME_DIFF_HOURS * 3600.0))
    km = haversine_km_many(
        waypoint.coordinates,
        [f.location.coordinates.latitude for f in pool],
        [f.location.coordinates.longitude for f in pool],
    )
    location_score = np.maximum(0.0, 1.0 - km / MATCH_MAX_DISTANCE_KM)
    return time_score * MATCH_TIME_WEIGHT + location_score * MATCH_LOCATION_WEIGHT


def match_score(forecast: WeatherForecast, waypoint: Waypoint, target_time: datetime) -> float:
    return float(match_scores(waypoint, target_time, [forecast])[0])


def sample_confidence(forecast: WeatherForecast, waypoint: Waypoint, target_time: datetime, interpolated: bool) -> float:
    """Decay confidence of a forecast used at a waypoint/time it was not issued for."""
    return decay_confidence(
        interpolated,
        hours_between(forecast.timestamp, target_time),
        haversine_km(waypoint.coordinates, forecast.location.coordinates),
    )


def match_weather(waypoint: Waypoint, target_time: datetime, pool: Sequence[WeatherForecast]) -> WeatherSample:
    """Best-scoring forecast for the waypoint; ties go to the first candidate.

    Raises:
        DataProcessingError: NO_WEATHER_DATA when the pool is empty.
    """
    if not pool:
        raise _no_weather_data()

    scores = match_scores(waypoint, target_time, pool)
    best = int(np.argmax(scores))
    forecast = pool[best]
    logger.debug(
        "Matched waypoint at %.1f km to forecast %s (score %.3f)",
        waypoint.distance_from_start, forecast.location.name, scores[best],
    )
    return WeatherSample(
        forecast=forecast,
        confidence=sample_confidence(forecast, waypoint, target_time, interpolated=False),
        interpolated=False,
        match_score=float(scores[best]),
        waypoint=waypoint,
    )
