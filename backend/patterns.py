"""Weather pattern transitions along a timeline and route-wide warnings."""

from __future__ import annotations

import logging
from typing import Sequence

from constants import (
    CONDITION_CHANGE_MAJOR_SCORE,
    CONDITION_CHANGE_MODERATE_SCORE,
    CONDITION_TEMP_DIVISOR,
    CONDITION_WIND_DIVISOR,
    EXTREME_WIND_KMH,
    LOW_CONFIDENCE_THRESHOLD,
    LOW_VISIBILITY_KM,
    PRECIP_CHANGE_MAJOR_SCORE,
    PRECIP_CHANGE_MODERATE_SCORE,
    PRECIP_INTENSITY_DIVISOR,
    PRECIP_PROBABILITY_DIVISOR,
    ROUTE_MAX_PRECIP_TYPES,
    ROUTE_TEMP_RANGE_WARNING_C,
    SEVERE_PRECIP_INTENSITY,
    TEMP_CHANGE_MAJOR_C,
    TEMP_CHANGE_MODERATE_C,
)
from models import (
    ChangeSeverity,
    PrecipitationType,
    RouteTimelinePoint,
    WaypointWeather,
    WeatherCondition,
    WeatherForecast,
    WeatherPatternChange,
)
from weather_codes import condition_severity_rank

logger = logging.getLogger(__name__)

_CONDITION_IMPACT = {
    WeatherCondition.STORMY: "Severe weather ahead - consider delaying travel or seeking shelter",
    WeatherCondition.SNOWY: "Snow expected - allow extra travel time and check road conditions",
    WeatherCondition.RAINY: "Rain expected - reduce speed and carry rain gear",
    WeatherCondition.FOGGY: "Reduced visibility ahead - travel with caution",
}


def condition_change_score(a: WeatherForecast, b: WeatherForecast) -> float:
    rank_delta = abs(condition_severity_rank(b.conditions.main) - condition_severity_rank(a.conditions.main))
    score = rank_delta / 2
    score += abs(b.temperature.current - a.temperature.current) / CONDITION_TEMP_DIVISOR
    score += abs(b.wind.speed - a.wind.speed) / CONDITION_WIND_DIVISOR
    if a.precipitation.type != b.precipitation.type:
        score += 1
    return score


def precipitation_change_score(a: WeatherForecast, b: WeatherForecast) -> float:
    return (
        1
        + abs(b.precipitation.intensity - a.precipitation.intensity) / PRECIP_INTENSITY_DIVISOR
        + abs(b.precipitation.probability - a.precipitation.probability) / PRECIP_PROBABILITY_DIVISOR
    )


def _grade(score: float, major: float, moderate: float) -> ChangeSeverity:
    if score >= major:
        return ChangeSeverity.MAJOR
    if score >= moderate:
        return ChangeSeverity.MODERATE
    return ChangeSeverity.MINOR


def _condition_impact(a: WeatherForecast, b: WeatherForecast) -> str:
    to_condition = WeatherCondition(b.conditions.main)
    if to_condition in _CONDITION_IMPACT:
        return _CONDITION_IMPACT[to_condition]
    if condition_severity_rank(to_condition) < condition_severity_rank(a.conditions.main):
        return "Conditions improving - minimal impact on travel"
    return "Minor impact on travel"


def _precipitation_impact(a: WeatherForecast, b: WeatherForecast) -> str:
    if a.precipitation.type == PrecipitationType.NONE:
        return "Precipitation starting - consider protective gear"
    if b.precipitation.type == PrecipitationType.NONE:
        return "Precipitation ending - conditions improving"
    return "Precipitation type changing - adjust travel plans"


def _label(value) -> str:
    return getattr(value, "value", str(value))


def detect_pattern_changes(
    timeline: Sequence[RouteTimelinePoint],
    sensitivity_threshold: float,
) -> list[WeatherPatternChange]:
    """Classified transitions between consecutive timeline points.

    Each detector normalises its score to [0, 1]; a change is reported when
    that normalised score reaches ``sensitivity_threshold``.
    """
    ordered = sorted(timeline, key=lambda p: p.time_from_start)
    changes: list[WeatherPatternChange] = []

    for prev, cur in zip(ordered, ordered[1:]):
        a, b = prev.weather, cur.weather

        def emit(severity: ChangeSeverity, description: str, impact: str) -> None:
            changes.append(WeatherPatternChange(
                location=b.location,
                timestamp=cur.travel_time,
                from_condition=a.conditions.main,
                to_condition=b.conditions.main,
                severity=severity,
                description=description,
                travel_impact=impact,
            ))

        if a.conditions.main != b.conditions.main:
            score = condition_change_score(a, b)
            if min(1.0, score / CONDITION_CHANGE_MAJOR_SCORE) >= sensitivity_threshold:
                emit(
                    _grade(score, CONDITION_CHANGE_MAJOR_SCORE, CONDITION_CHANGE_MODERATE_SCORE),
                    f"Weather changing from {_label(a.conditions.main)} to {_label(b.conditions.main)}",
                    _condition_impact(a, b),
                )

        delta_t = b.temperature.current - a.temperature.current
        if abs(delta_t) >= TEMP_CHANGE_MODERATE_C:
            if min(1.0, abs(delta_t) / TEMP_CHANGE_MAJOR_C) >= sensitivity_threshold:
                severity = ChangeSeverity.MAJOR if abs(delta_t) >= TEMP_CHANGE_MAJOR_C else ChangeSeverity.MODERATE
                direction = "drop" if delta_t < 0 else "rise"
                impact = (
                    "Temperature dropping - bring extra layers"
                    if delta_t < 0
                    else "Temperature rising - stay hydrated and dress lightly"
                )
                emit(severity, f"Significant temperature change: {abs(delta_t):g}°C {direction}", impact)

        if a.precipitation.type != b.precipitation.type:
            score = precipitation_change_score(a, b)
            if min(1.0, score / PRECIP_CHANGE_MAJOR_SCORE) >= sensitivity_threshold:
                emit(
                    _grade(score, PRECIP_CHANGE_MAJOR_SCORE, PRECIP_CHANGE_MODERATE_SCORE),
                    f"Precipitation change: {_label(a.precipitation.type)} to {_label(b.precipitation.type)}",
                    _precipitation_impact(a, b),
                )

    logger.debug("Detected %d pattern changes across %d points", len(changes), len(ordered))
    return changes


def route_pattern_warnings(samples: Sequence[WaypointWeather]) -> list[str]:
    """Route-wide warnings over per-waypoint weather."""
    if len(samples) < 2:
        return []
    warnings = []
    forecasts = [s.weather.forecast for s in samples]

    temps = [f.temperature.current for f in forecasts]
    temp_range = max(temps) - min(temps)
    if temp_range > ROUTE_TEMP_RANGE_WARNING_C:
        warnings.append(f"Significant temperature variation along route: {temp_range:g}°C difference")

    if len({f.precipitation.type for f in forecasts}) > ROUTE_MAX_PRECIP_TYPES:
        warnings.append("Multiple precipitation types expected along route")

    severe = sum(
        1 for f in forecasts
        if f.conditions.main == WeatherCondition.STORMY
        or f.precipitation.intensity >= SEVERE_PRECIP_INTENSITY
        or f.wind.speed > EXTREME_WIND_KMH
    )
    if severe:
        warnings.append(f"Severe weather conditions detected at {severe} points along route")

    low_visibility = sum(1 for f in forecasts if f.visibility < LOW_VISIBILITY_KM)
    if low_visibility:
        warnings.append(f"Low visibility conditions (< {LOW_VISIBILITY_KM:g}km) expected at {low_visibility} points")

    low_confidence = sum(1 for s in samples if s.weather.interpolated and s.weather.confidence < LOW_CONFIDENCE_THRESHOLD)
    if low_confidence:
        warnings.append(f"{low_confidence} weather predictions have low confidence due to sparse data")
    return warnings
