"""Route/weather consistency scoring and strict input validation."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional, Sequence

from constants import (
    EXPECTED_SAMPLE_SECONDS,
    PENALTY_GEOGRAPHIC,
    PENALTY_INVALID_DURATION,
    PENALTY_MISSING_MAX,
    PENALTY_NO_WAYPOINTS,
    PENALTY_NO_WEATHER,
    PENALTY_PER_MISSING_POINT,
    PENALTY_TIME_BOUNDARY,
)
from errors import DataProcessingError
from geo import bounds, bounds_overlap
from logging_config import setup_logging
from models import Route, ValidationResult, WeatherForecast

logger = setup_logging(__name__, level="WARNING")


def validate_consistency(
    route: Route,
    pool: Optional[Sequence[WeatherForecast]],
    start_time: datetime,
) -> ValidationResult:
    """Score how well the forecast pool covers the route in time and space.

    Never raises; every detected problem becomes an error or warning and a
    score deduction. The score is clamped into [0, 1].
    """
    errors: list[str] = []
    warnings: list[str] = []
    missing = 0
    score = 1.0
    pool = list(pool or [])
    waypoints = list(route.waypoints) if route is not None else []
    duration = route.estimated_duration if route is not None else 0

    if not waypoints:
        errors.append("Route must contain waypoints for weather integration")
        score -= PENALTY_NO_WAYPOINTS
    if duration <= 0:
        errors.append("Route must have a valid estimated duration")
        score -= PENALTY_INVALID_DURATION
    if not pool:
        errors.append("Weather data is required for route integration")
        score -= PENALTY_NO_WEATHER

    if pool:
        route_end = start_time + timedelta(seconds=duration)
        first = min(f.timestamp for f in pool)
        last = max(f.timestamp for f in pool)
        if first > start_time:
            warnings.append("Weather data starts after route start time")
            score -= PENALTY_TIME_BOUNDARY
        if last < route_end:
            warnings.append("Weather data ends before route completion")
            score -= PENALTY_TIME_BOUNDARY

        expected = math.ceil(duration / EXPECTED_SAMPLE_SECONDS) if duration > 0 else 0
        missing = max(0, expected - len(pool))
        if missing > 0:
            warnings.append(f"{missing} weather data points are missing for optimal coverage")
            score -= min(PENALTY_MISSING_MAX, missing * PENALTY_PER_MISSING_POINT)

    if waypoints and pool:
        route_bounds = bounds(w.coordinates for w in waypoints)
        weather_bounds = bounds(f.location.coordinates for f in pool)
        if not bounds_overlap(route_bounds, weather_bounds):
            warnings.append("Weather data geographic coverage may not fully align with route")
            score -= PENALTY_GEOGRAPHIC

    score = min(1.0, max(0.0, score))
    if errors or warnings:
        logger.warning(
            "Consistency check: %d errors, %d warnings, score %.2f", len(errors), len(warnings), score
        )
    return ValidationResult(
        is_valid=not errors,
        errors=tuple(errors),
        warnings=tuple(warnings),
        missing_data_points=missing,
        data_consistency_score=score,
    )


def validate_route_data(route: Optional[Route]) -> None:
    """Raise DataProcessingError unless the route can be integrated."""
    if route is None:
        raise DataProcessingError(
            "INVALID_ROUTE",
            "Route data is required for integration",
            ["Provide a valid route object with waypoints and segments"],
        )
    if not route.waypoints:
        raise DataProcessingError(
            "NO_WAYPOINTS",
            "Route must contain waypoints for weather integration",
            ["Ensure route calculation includes waypoint generation"],
        )
    if route.estimated_duration is None or route.estimated_duration <= 0:
        raise DataProcessingError(
            "INVALID_DURATION",
            "Route must have a valid estimated duration",
            ["Verify route calculation includes proper duration estimation"],
        )


def validate_weather_data(pool: Optional[Sequence[WeatherForecast]]) -> None:
    """Raise DataProcessingError for an empty pool, bad timestamps or bad coordinates."""
    if not pool:
        raise DataProcessingError(
            "NO_WEATHER_DATA",
            "Weather data is required for route integration",
            ["Provide weather forecast data for the route timeframe"],
        )

    bad_times = [f for f in pool if not isinstance(f.timestamp, datetime)]
    if bad_times:
        raise DataProcessingError(
            "INVALID_TIMESTAMPS",
            f"{len(bad_times)} weather forecasts have invalid timestamps",
            ["Ensure all weather data has valid timestamp information"],
        )

    bad_coords = [
        f for f in pool
        if f.location is None or f.location.coordinates is None or not f.location.coordinates.is_valid()
    ]
    if bad_coords:
        raise DataProcessingError(
            "INVALID_COORDINATES",
            f"{len(bad_coords)} weather forecasts have invalid coordinates",
            ["Ensure all weather data has valid latitude and longitude values"],
        )
