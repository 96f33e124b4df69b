"""Assemble route timelines from a forecast pool.

build_timeline gives one point per route waypoint; align_segments aggregates
weather per route segment; integrate_route_with_weather is the validated
entry point that also reports data quality and warnings.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

import numpy as np

from constants import (
    EXTREME_PRECIP_INTENSITY,
    EXTREME_TEMP_MAX_C,
    EXTREME_TEMP_MIN_C,
    EXTREME_WIND_KMH,
    GAP_FILL_CONFIDENCE_FACTOR,
    GAP_FILL_INTERVAL_MINUTES,
    INTERPOLATED_SHARE_WARNING,
    INTERVAL_TIMELINE_MINUTES,
    LIMITED_DATA_ROUTE_SECONDS,
    LOW_CONFIDENCE_THRESHOLD,
    MIN_FORECASTS_FOR_LONG_ROUTE,
    OBSERVED_RADIUS_KM,
)
from geo import haversine_km_many, lerp_coordinate, waypoint_at_time
from interpolation import (
    interpolate_forecast,
    interpolate_spatial,
    interpolate_temporal,
    interpolated_location,
    round_half_up,
)
from matcher import match_score, match_weather, sample_confidence
from models import (
    Conditions,
    Coordinate,
    DataQuality,
    IntervalTimelineEntry,
    Location,
    Precipitation,
    PrecipitationType,
    Route,
    RouteSegment,
    RouteTimelinePoint,
    RouteWeatherIntegration,
    SegmentWeatherAlignment,
    Temperature,
    Waypoint,
    WeatherCondition,
    WeatherForecast,
    WeatherSample,
    Wind,
)
from validation import validate_route_data, validate_weather_data

logger = logging.getLogger(__name__)


# ─── Per-waypoint timeline ────────────────────────────────────────────────────

def segment_index_for(route: Route, waypoint: Waypoint) -> int:
    """First segment whose distance span contains the waypoint, else the last."""
    d = waypoint.distance_from_start
    for idx, segment in enumerate(route.segments):
        if segment.start_point.distance_from_start <= d <= segment.end_point.distance_from_start:
            return idx
    return max(0, len(route.segments) - 1)


def is_observed(forecast: WeatherForecast, waypoint: Waypoint, pool: Sequence[WeatherForecast]) -> bool:
    """True when a pool forecast sits at the matched instant within 1 km of the waypoint."""
    same_time = [f for f in pool if f.timestamp == forecast.timestamp]
    if not same_time:
        return False
    km = haversine_km_many(
        waypoint.coordinates,
        [f.location.coordinates.latitude for f in same_time],
        [f.location.coordinates.longitude for f in same_time],
    )
    return bool(np.any(km < OBSERVED_RADIUS_KM))


def _observed_bracket(matched: list, distance: float):
    before = after = None
    for entry in matched:
        if not entry["observed"]:
            continue
        d = entry["waypoint"].distance_from_start
        if d < distance and (before is None or d >= before["waypoint"].distance_from_start):
            before = entry
        if d > distance and (after is None or d < after["waypoint"].distance_from_start):
            after = entry
    return before, after


def build_timeline(route: Route, pool: Sequence[WeatherForecast], start_time: datetime) -> list[RouteTimelinePoint]:
    """One timeline point per route waypoint, sorted by time from start.

    Waypoints whose matched forecast is not an observation at that spot are
    flagged interpolated. When observed waypoints bracket such a waypoint
    along the route its weather is interpolated between them; otherwise the
    matched forecast is kept with a decayed confidence.

    Raises:
        DataProcessingError: NO_WEATHER_DATA when the pool is empty.
    """
    pool = list(pool)
    matched = []
    for waypoint in route.waypoints:
        travel_time = start_time + timedelta(seconds=waypoint.estimated_time_from_start)
        sample = match_weather(waypoint, travel_time, pool)
        matched.append({
            "waypoint": waypoint,
            "travel_time": travel_time,
            "sample": sample,
            "observed": is_observed(sample.forecast, waypoint, pool),
        })

    timeline = []
    for entry in matched:
        waypoint, travel_time, sample = entry["waypoint"], entry["travel_time"], entry["sample"]
        forecast = sample.forecast
        if entry["observed"]:
            confidence = sample.confidence
        else:
            before, after = _observed_bracket(matched, waypoint.distance_from_start)
            if before is not None and after is not None:
                blended = interpolate_spatial(before["sample"], after["sample"], waypoint, travel_time)
                forecast, confidence = blended.forecast, blended.confidence
            else:
                confidence = sample_confidence(forecast, waypoint, travel_time, interpolated=True)

        timeline.append(RouteTimelinePoint(
            waypoint=waypoint,
            weather=forecast,
            travel_time=travel_time,
            segment_index=segment_index_for(route, waypoint),
            distance_from_start=waypoint.distance_from_start,
            time_from_start=waypoint.estimated_time_from_start,
            is_interpolated=not entry["observed"],
            confidence=confidence,
        ))

    timeline.sort(key=lambda p: p.time_from_start)
    logger.debug(
        "Built timeline with %d points (%d interpolated)",
        len(timeline), sum(1 for p in timeline if p.is_interpolated),
    )
    return timeline


def fill_timeline_gaps(
    timeline: Sequence[RouteTimelinePoint],
    start_time: datetime,
    interval_minutes: float = GAP_FILL_INTERVAL_MINUTES,
) -> list[RouteTimelinePoint]:
    """Insert interpolated points between timeline points more than one interval apart."""
    ordered = sorted(timeline, key=lambda p: p.time_from_start)
    interval_s = interval_minutes * 60
    filled = list(ordered)
    if interval_s <= 0:
        return filled

    for a, b in zip(ordered, ordered[1:]):
        span = b.time_from_start - a.time_from_start
        steps = int(math.floor(span / interval_s))
        for i in range(1, steps):
            progress = i / steps
            seconds = a.time_from_start + span * progress
            travel_time = start_time + timedelta(seconds=seconds)
            coord = lerp_coordinate(a.waypoint.coordinates, b.waypoint.coordinates, progress)
            waypoint = Waypoint(
                coordinates=coord,
                distance_from_start=a.distance_from_start + (b.distance_from_start - a.distance_from_start) * progress,
                estimated_time_from_start=seconds,
            )
            filled.append(RouteTimelinePoint(
                waypoint=waypoint,
                weather=interpolate_forecast(a.weather, b.weather, progress, interpolated_location(coord), travel_time),
                travel_time=travel_time,
                segment_index=a.segment_index,
                distance_from_start=waypoint.distance_from_start,
                time_from_start=seconds,
                is_interpolated=True,
                confidence=min(a.confidence, b.confidence) * GAP_FILL_CONFIDENCE_FACTOR,
            ))

    filled.sort(key=lambda p: p.time_from_start)
    return filled


# ─── Fixed-interval timeline ──────────────────────────────────────────────────

def _weather_at(waypoint: Waypoint, when: datetime, pool: Sequence[WeatherForecast]) -> WeatherSample:
    """Temporal blend of the best forecasts either side of ``when``.

    Falls back to the plain best match when it was issued for ``when`` itself
    or when one side has no forecast.
    """
    best = match_weather(waypoint, when, pool)
    if best.forecast.timestamp == when:
        return best

    def score(forecast: WeatherForecast) -> float:
        return match_score(forecast, waypoint, when)

    # max() keeps the first of equal scores
    fa = max((f for f in pool if f.timestamp < when), key=score, default=None)
    fb = max((f for f in pool if f.timestamp > when), key=score, default=None)
    if fa is None or fb is None:
        return best

    sample_a = WeatherSample(fa, sample_confidence(fa, waypoint, when, interpolated=False), match_score=score(fa))
    sample_b = WeatherSample(fb, sample_confidence(fb, waypoint, when, interpolated=False), match_score=score(fb))
    return interpolate_temporal(sample_a, sample_b, when)


def build_interval_timeline(
    route: Route,
    pool: Sequence[WeatherForecast],
    start_time: datetime,
    interval_minutes: float = INTERVAL_TIMELINE_MINUTES,
) -> list[IntervalTimelineEntry]:
    """Weather every ``interval_minutes`` of travel, including the arrival instant.

    Raises:
        DataProcessingError: NO_WEATHER_DATA when the pool is empty.
    """
    if not route.waypoints or route.estimated_duration <= 0 or interval_minutes <= 0:
        return []
    pool = list(pool)

    steps = math.ceil(route.estimated_duration / 60 / interval_minutes)
    entries = []
    for i in range(steps + 1):
        offset = i * interval_minutes * 60
        when = start_time + timedelta(seconds=offset)
        waypoint = waypoint_at_time(route.waypoints, offset)
        location = Location(name=f"Route position at {when.isoformat()}", coordinates=waypoint.coordinates)
        sample = _weather_at(waypoint, when, pool)
        entries.append(IntervalTimelineEntry(
            time=when,
            location=location,
            weather=replace(sample, forecast=sample.forecast.with_changes(location=location)),
            distance_from_start=waypoint.distance_from_start,
            estimated_progress=min(offset, route.estimated_duration) / route.estimated_duration,
        ))
    return entries


# ─── Segment alignment ────────────────────────────────────────────────────────

def _segment_midpoint(segment: RouteSegment) -> Coordinate:
    return lerp_coordinate(segment.start_point.coordinates, segment.end_point.coordinates, 0.5)


def default_segment_forecast(segment: RouteSegment, start: datetime, end: datetime) -> WeatherForecast:
    """Neutral placeholder used when no forecast exists at all."""
    return WeatherForecast(
        location=Location(name="Default forecast for segment", coordinates=_segment_midpoint(segment)),
        timestamp=start + (end - start) / 2,
        temperature=Temperature(current=20, feels_like=20, min=15, max=25),
        conditions=Conditions(main=WeatherCondition.CLOUDY, description="Partly cloudy", icon="02d"),
        precipitation=Precipitation(type=PrecipitationType.NONE, probability=0, intensity=0),
        wind=Wind(speed=10, direction=180),
        humidity=60,
        visibility=10,
    )


def average_weather(
    forecasts: Sequence[WeatherForecast],
    segment: RouteSegment,
    start: datetime,
    end: datetime,
) -> WeatherForecast:
    """Mean scalars and majority condition; ties go to the condition seen first."""
    if not forecasts:
        return default_segment_forecast(segment, start, end)
    if len(forecasts) == 1:
        return forecasts[0]

    def mean(values) -> float:
        return float(np.mean(np.asarray(values, dtype=float)))

    majority = Counter(f.conditions.main for f in forecasts).most_common(1)[0][0]
    representative = next(f for f in forecasts if f.conditions.main == majority)
    a, b = segment.start_point.coordinates, segment.end_point.coordinates
    name = f"Segment from {a.latitude:.4f}, {a.longitude:.4f} to {b.latitude:.4f}, {b.longitude:.4f}"

    return WeatherForecast(
        location=Location(name=name, coordinates=_segment_midpoint(segment)),
        timestamp=start + (end - start) / 2,
        temperature=Temperature(
            current=round_half_up(mean([f.temperature.current for f in forecasts])),
            feels_like=round_half_up(mean([f.temperature.feels_like for f in forecasts])),
            min=min(f.temperature.min for f in forecasts),
            max=max(f.temperature.max for f in forecasts),
        ),
        conditions=representative.conditions,
        precipitation=Precipitation(
            type=representative.precipitation.type,
            probability=round_half_up(mean([f.precipitation.probability for f in forecasts])),
            intensity=representative.precipitation.intensity,
        ),
        wind=Wind(
            speed=round_half_up(mean([f.wind.speed for f in forecasts]), 1),
            direction=representative.wind.direction,
        ),
        humidity=round_half_up(mean([f.humidity for f in forecasts])),
        visibility=round_half_up(mean([f.visibility for f in forecasts])),
    )


def _closest_to_midpoint(pool: Sequence[WeatherForecast], start: datetime, end: datetime) -> Optional[WeatherForecast]:
    if not pool:
        return None
    mid = start + (end - start) / 2
    diffs = np.array([abs((f.timestamp - mid).total_seconds()) for f in pool], dtype=float)
    return pool[int(np.argmin(diffs))]


def align_segments(route: Route, pool: Sequence[WeatherForecast], start_time: datetime) -> list[SegmentWeatherAlignment]:
    """Per-segment time window, forecasts inside it and their average weather."""
    pool = list(pool)
    aligned = []
    elapsed = 0.0
    for segment in route.segments:
        seg_start = start_time + timedelta(seconds=elapsed)
        seg_end = start_time + timedelta(seconds=elapsed + segment.estimated_duration)
        inside = [f for f in pool if seg_start <= f.timestamp <= seg_end]
        if not inside:
            closest = _closest_to_midpoint(pool, seg_start, seg_end)
            if closest is not None:
                inside = [closest]
        aligned.append(SegmentWeatherAlignment(
            segment=segment,
            weather_forecasts=tuple(inside),
            segment_start_time=seg_start,
            segment_end_time=seg_end,
            average_weather=average_weather(inside, segment, seg_start, seg_end),
        ))
        elapsed += segment.estimated_duration
    return aligned


# ─── Integration ──────────────────────────────────────────────────────────────

def analyze_data_quality(timeline: Sequence[RouteTimelinePoint]) -> DataQuality:
    if not timeline:
        return DataQuality(completeness=0.0, confidence=0.0, interpolated_points=0)
    interpolated = sum(1 for p in timeline if p.is_interpolated)
    completeness = (len(timeline) - interpolated) / len(timeline)
    confidence = float(np.mean([p.confidence for p in timeline]))
    return DataQuality(
        completeness=round_half_up(completeness, 2),
        confidence=round_half_up(confidence, 2),
        interpolated_points=interpolated,
    )


def _is_extreme(forecast: WeatherForecast) -> bool:
    return (
        forecast.temperature.current < EXTREME_TEMP_MIN_C
        or forecast.temperature.current > EXTREME_TEMP_MAX_C
        or forecast.wind.speed > EXTREME_WIND_KMH
        or forecast.precipitation.intensity > EXTREME_PRECIP_INTENSITY
    )


def integration_warnings(
    route: Route,
    pool: Sequence[WeatherForecast],
    timeline: Sequence[RouteTimelinePoint],
) -> list[str]:
    warnings = []
    interpolated = sum(1 for p in timeline if p.is_interpolated)
    if interpolated > len(timeline) * INTERPOLATED_SHARE_WARNING:
        warnings.append(
            f"{interpolated} of {len(timeline)} weather points are interpolated - consider getting more weather data"
        )

    low_confidence = sum(1 for p in timeline if p.confidence < LOW_CONFIDENCE_THRESHOLD)
    if low_confidence:
        warnings.append(f"{low_confidence} weather predictions have low confidence")

    if len(pool) < MIN_FORECASTS_FOR_LONG_ROUTE and route.estimated_duration > LIMITED_DATA_ROUTE_SECONDS:
        warnings.append("Limited weather data for route duration - forecasts may be less accurate")

    extreme = sum(1 for p in timeline if _is_extreme(p.weather))
    if extreme:
        warnings.append(f"{extreme} points along route have extreme weather conditions")
    return warnings


def integrate_route_with_weather(
    route: Route,
    pool: Sequence[WeatherForecast],
    start_time: datetime,
    fill_gaps: bool = False,
) -> RouteWeatherIntegration:
    """Validated route/weather integration with quality metrics and warnings.

    Raises:
        DataProcessingError: for missing waypoints, bad duration, empty pool,
            invalid timestamps or invalid coordinates.
    """
    validate_route_data(route)
    validate_weather_data(pool)

    timeline = build_timeline(route, pool, start_time)
    if fill_gaps:
        timeline = fill_timeline_gaps(timeline, start_time)

    quality = analyze_data_quality(timeline)
    warnings = integration_warnings(route, pool, timeline)
    if warnings:
        logger.warning("Route %s integrated with %d warnings", route.id or "<unnamed>", len(warnings))

    return RouteWeatherIntegration(
        route=route,
        weather_data=tuple(pool),
        timeline=tuple(timeline),
        start_time=start_time,
        end_time=start_time + timedelta(seconds=route.estimated_duration),
        total_duration=route.estimated_duration,
        warnings=tuple(warnings),
        data_quality=quality,
    )
