"""Spatial and temporal weather interpolation with confidence models.

Two families of operations share the same blending rules:
- pairwise: one target between two known samples (interpolate_spatial,
  interpolate_temporal, interpolate_along_route)
- batch: resample a whole series at a fixed resolution
  (spatial_weather_interpolation, temporal_weather_interpolation)

Scalars blend linearly and round half-up to their native precision; wind
direction follows the shortest arc; categorical fields switch from the first
source to the second at progress 0.5.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Optional, Sequence

import numpy as np

from constants import (
    BATCH_BASE_CONFIDENCE,
    BATCH_GAP_DECAY_PER_HOUR,
    BATCH_GAP_FLOOR,
    BATCH_MAX_GAP_HOURS,
    BATCH_ORIGINAL_WEIGHT,
    CONFIDENCE_FLOOR,
    DISTANCE_DECAY_MAX,
    DISTANCE_DECAY_PER_KM,
    DISTANCE_DECAY_START_KM,
    INTERPOLATION_PENALTY,
    KNOWN_POINT_TOLERANCE_KM,
    PAIRWISE_CONFIDENCE_FLOOR,
    PAIRWISE_FULL_DECAY_KM,
    TIME_DECAY_MAX,
    TIME_DECAY_PER_HOUR,
    TIME_DECAY_START_HOURS,
    WEIGHT_SPAN_EPSILON,
)
from geo import haversine_km, lerp_coordinate, position_at_distance, project_onto_route
from models import (
    Conditions,
    Coordinate,
    InterpolationResult,
    Location,
    Precipitation,
    Route,
    Temperature,
    WaypointWeather,
    Waypoint,
    WeatherForecast,
    WeatherSample,
    Wind,
)

logger = logging.getLogger(__name__)

# Batch temporal samples this close to an original instant are skipped
_SAME_INSTANT_SECONDS = 60.0


# ─── Numeric helpers ──────────────────────────────────────────────────────────

def round_half_up(value: float, ndigits: int = 0):
    """Round halves toward +inf (11.5 -> 12, -2.5 -> -2)."""
    if ndigits == 0:
        return int(math.floor(value + 0.5))
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def hours_between(a: datetime, b: datetime) -> float:
    return abs((a - b).total_seconds()) / 3600.0


def interpolation_weight(target: float, start: float, end: float) -> float:
    """0 = first source, 1 = second source; 0.5 when the bracket collapses."""
    if abs(end - start) < WEIGHT_SPAN_EPSILON:
        return 0.5
    return max(0.0, min(1.0, (target - start) / (end - start)))


def interpolate_wind_direction(dir1: float, dir2: float, progress: float) -> int:
    diff = dir2 - dir1
    if diff > 180:
        diff -= 360
    elif diff < -180:
        diff += 360
    result = (dir1 + diff * progress) % 360
    return round_half_up(result) % 360


def _lerp(a: float, b: float, progress: float) -> float:
    return a + (b - a) * progress


def _lerp_time(a: datetime, b: datetime, progress: float) -> datetime:
    return a + timedelta(seconds=(b - a).total_seconds() * progress)


def interpolated_location(coord: Coordinate) -> Location:
    return Location(
        name=f"Interpolated point at {coord.latitude:.4f}, {coord.longitude:.4f}",
        coordinates=coord,
    )


# ─── Confidence models ────────────────────────────────────────────────────────

def decay_confidence(interpolated: bool, hours_offset: float, km_offset: float) -> float:
    """Confidence of a sample used away from where/when it was issued."""
    confidence = 1.0
    if interpolated:
        confidence -= INTERPOLATION_PENALTY
    if hours_offset > TIME_DECAY_START_HOURS:
        confidence -= min(TIME_DECAY_MAX, hours_offset * TIME_DECAY_PER_HOUR)
    if km_offset > DISTANCE_DECAY_START_KM:
        confidence -= min(DISTANCE_DECAY_MAX, km_offset * DISTANCE_DECAY_PER_KM)
    return max(CONFIDENCE_FLOOR, confidence)


def pairwise_confidence(gap_km: float) -> float:
    """Single-bracket model: wider brackets are trusted less."""
    return max(PAIRWISE_CONFIDENCE_FLOOR, 1.0 - abs(gap_km) / PAIRWISE_FULL_DECAY_KM)


def batch_confidence(original_count: int, total_count: int, max_gap_hours: float = 0.0) -> float:
    """Series model: share of original samples, discounted for long time gaps."""
    ratio = original_count / total_count if total_count > 0 else 1.0
    confidence = ratio * BATCH_ORIGINAL_WEIGHT + BATCH_BASE_CONFIDENCE
    if max_gap_hours > BATCH_MAX_GAP_HOURS:
        confidence *= max(BATCH_GAP_FLOOR, 1.0 - (max_gap_hours - BATCH_MAX_GAP_HOURS) * BATCH_GAP_DECAY_PER_HOUR)
    return confidence


def spatial_sample_confidence(conf_a: float, conf_b: float, gap_km: float) -> float:
    return min(conf_a, conf_b) * min(1.0 - INTERPOLATION_PENALTY, pairwise_confidence(gap_km))


def temporal_sample_confidence(conf_a: float, conf_b: float, hours_to_nearest: float) -> float:
    return min(conf_a, conf_b) * decay_confidence(True, hours_to_nearest, 0.0)


def max_gap_hours(forecasts: Sequence[WeatherForecast]) -> float:
    if len(forecasts) < 2:
        return 0.0
    stamps = np.sort(np.array([f.timestamp.timestamp() for f in forecasts], dtype=float))
    return float(np.diff(stamps).max()) / 3600.0


# ─── Forecast blending ────────────────────────────────────────────────────────

def interpolate_forecast(
    a: WeatherForecast,
    b: WeatherForecast,
    progress: float,
    location: Location,
    timestamp: datetime,
) -> WeatherForecast:
    """Blend two forecasts at a progress in [0, 1]."""
    p = progress
    first = p < 0.5
    return WeatherForecast(
        location=location,
        timestamp=timestamp,
        temperature=Temperature(
            current=round_half_up(_lerp(a.temperature.current, b.temperature.current, p)),
            feels_like=round_half_up(_lerp(a.temperature.feels_like, b.temperature.feels_like, p)),
            min=round_half_up(_lerp(a.temperature.min, b.temperature.min, p)),
            max=round_half_up(_lerp(a.temperature.max, b.temperature.max, p)),
        ),
        conditions=a.conditions if first else b.conditions,
        precipitation=Precipitation(
            type=a.precipitation.type if first else b.precipitation.type,
            probability=round_half_up(_lerp(a.precipitation.probability, b.precipitation.probability, p)),
            intensity=round_half_up(_lerp(a.precipitation.intensity, b.precipitation.intensity, p)),
        ),
        wind=Wind(
            speed=round_half_up(_lerp(a.wind.speed, b.wind.speed, p), 1),
            direction=interpolate_wind_direction(a.wind.direction, b.wind.direction, p),
        ),
        humidity=round_half_up(_lerp(a.humidity, b.humidity, p)),
        visibility=round_half_up(_lerp(a.visibility, b.visibility, p)),
    )


def _spatial_progress(sample_a: WeatherSample, sample_b: WeatherSample, target: Waypoint) -> tuple[float, float]:
    """(progress, bracket gap km) from anchor distances, else from geometry."""
    if sample_a.waypoint is not None and sample_b.waypoint is not None:
        start = sample_a.waypoint.distance_from_start
        end = sample_b.waypoint.distance_from_start
        return interpolation_weight(target.distance_from_start, start, end), abs(end - start)

    coord_a = sample_a.forecast.location.coordinates
    coord_b = sample_b.forecast.location.coordinates
    to_a = haversine_km(coord_a, target.coordinates)
    to_b = haversine_km(target.coordinates, coord_b)
    gap = haversine_km(coord_a, coord_b)
    if to_a + to_b < WEIGHT_SPAN_EPSILON:
        return 0.5, gap
    return to_a / (to_a + to_b), gap


def interpolate_spatial(
    sample_a: WeatherSample,
    sample_b: WeatherSample,
    target_waypoint: Waypoint,
    target_time: Optional[datetime] = None,
) -> WeatherSample:
    """Weather at a waypoint between two samples bracketing it along the route."""
    progress, gap = _spatial_progress(sample_a, sample_b, target_waypoint)
    timestamp = target_time or _lerp_time(sample_a.forecast.timestamp, sample_b.forecast.timestamp, progress)
    forecast = interpolate_forecast(
        sample_a.forecast,
        sample_b.forecast,
        progress,
        interpolated_location(target_waypoint.coordinates),
        timestamp,
    )
    return WeatherSample(
        forecast=forecast,
        confidence=spatial_sample_confidence(sample_a.confidence, sample_b.confidence, gap),
        interpolated=True,
        source_forecasts=(sample_a.forecast, sample_b.forecast),
        waypoint=target_waypoint,
    )


def interpolate_temporal(sample_a: WeatherSample, sample_b: WeatherSample, target_time: datetime) -> WeatherSample:
    """Weather at an instant between two samples; the location moves linearly."""
    fa, fb = sample_a.forecast, sample_b.forecast
    progress = interpolation_weight(target_time.timestamp(), fa.timestamp.timestamp(), fb.timestamp.timestamp())
    coord = lerp_coordinate(fa.location.coordinates, fb.location.coordinates, progress)
    forecast = interpolate_forecast(fa, fb, progress, interpolated_location(coord), target_time)
    nearest = min(hours_between(target_time, fa.timestamp), hours_between(target_time, fb.timestamp))
    return WeatherSample(
        forecast=forecast,
        confidence=temporal_sample_confidence(sample_a.confidence, sample_b.confidence, nearest),
        interpolated=True,
        source_forecasts=(fa, fb),
    )


# ─── Route-wide filling ───────────────────────────────────────────────────────

def _bracket(known: Sequence[WaypointWeather], distance: float):
    before = after = None
    for point in known:
        d = point.waypoint.distance_from_start
        if d <= distance and (before is None or d > before.waypoint.distance_from_start):
            before = point
        if d >= distance and (after is None or d < after.waypoint.distance_from_start):
            after = point
    if before is None:
        before = after
    elif after is None:
        after = before
    return before, after


def interpolate_along_route(route: Route, known: Sequence[WaypointWeather], start_time: datetime) -> list[WaypointWeather]:
    """Known points plus an interpolated point for every other route waypoint.

    Progress blends distance and travel-time weights equally. With fewer than
    two known points nothing is interpolated.
    """
    results = list(known)
    if len(known) < 2:
        return results

    ordered = sorted(known, key=lambda k: k.waypoint.distance_from_start)
    for waypoint in route.waypoints:
        if any(abs(k.waypoint.distance_from_start - waypoint.distance_from_start) < KNOWN_POINT_TOLERANCE_KM for k in ordered):
            continue
        before, after = _bracket(ordered, waypoint.distance_from_start)
        if before is None or after is None:
            continue

        wb, wa = before.waypoint, after.waypoint
        distance_weight = interpolation_weight(waypoint.distance_from_start, wb.distance_from_start, wa.distance_from_start)
        time_weight = interpolation_weight(
            waypoint.estimated_time_from_start, wb.estimated_time_from_start, wa.estimated_time_from_start
        )
        weight = (distance_weight + time_weight) / 2
        travel_time = start_time + timedelta(seconds=waypoint.estimated_time_from_start)
        forecast = interpolate_forecast(
            before.weather.forecast,
            after.weather.forecast,
            weight,
            interpolated_location(waypoint.coordinates),
            travel_time,
        )
        gap = abs(wa.distance_from_start - wb.distance_from_start)
        sample = WeatherSample(
            forecast=forecast,
            confidence=spatial_sample_confidence(before.weather.confidence, after.weather.confidence, gap),
            interpolated=True,
            source_forecasts=(before.weather.forecast, after.weather.forecast),
            waypoint=waypoint,
        )
        results.append(WaypointWeather(waypoint=waypoint, weather=sample, travel_time=travel_time))

    logger.debug("Interpolated %d route waypoints from %d known points", len(results) - len(known), len(known))
    return results


def spatial_weather_interpolation(
    waypoints: Sequence[Waypoint],
    forecasts: Sequence[WeatherForecast],
    resolution_km: float,
) -> InterpolationResult:
    """Resample forecasts along the route every ``resolution_km``.

    Forecasts are placed on the route at their nearest waypoint; new samples
    are generated strictly between consecutive placed forecasts.
    """
    originals = tuple(forecasts)
    interpolated: list[WeatherForecast] = []

    if len(waypoints) >= 2 and len(originals) >= 2 and resolution_km > 0:
        placed = sorted(
            ((project_onto_route(waypoints, f.location.coordinates), i, f) for i, f in enumerate(originals)),
            key=lambda item: (item[0], item[1]),
        )
        for (d_a, _, fa), (d_b, _, fb) in zip(placed, placed[1:]):
            if d_b - d_a <= KNOWN_POINT_TOLERANCE_KM:
                continue
            distance = d_a + resolution_km
            while distance < d_b - KNOWN_POINT_TOLERANCE_KM:
                progress = (distance - d_a) / (d_b - d_a)
                position = position_at_distance(waypoints, distance)
                interpolated.append(
                    interpolate_forecast(
                        fa,
                        fb,
                        progress,
                        interpolated_location(position.coordinates),
                        _lerp_time(fa.timestamp, fb.timestamp, progress),
                    )
                )
                distance += resolution_km

    confidence = batch_confidence(len(originals), len(originals) + len(interpolated), max_gap_hours(originals))
    return InterpolationResult(
        original_points=originals,
        interpolated_points=tuple(interpolated),
        resolution=resolution_km,
        axis="spatial",
        confidence=confidence,
    )


def temporal_weather_interpolation(
    forecasts: Sequence[WeatherForecast],
    start_time: datetime,
    end_time: datetime,
    resolution_minutes: float,
) -> InterpolationResult:
    """Resample forecasts every ``resolution_minutes`` within [start, end].

    Only instants strictly inside two originals are produced; nothing is
    extrapolated past the first or last forecast.
    """
    originals = tuple(forecasts)
    interpolated: list[WeatherForecast] = []

    if len(originals) >= 2 and resolution_minutes > 0 and end_time >= start_time:
        ordered = sorted(originals, key=lambda f: f.timestamp)
        stamps = np.array([f.timestamp.timestamp() for f in ordered], dtype=float)
        step = timedelta(minutes=resolution_minutes)
        t = start_time
        while t <= end_time:
            ts = t.timestamp()
            if np.min(np.abs(stamps - ts)) > _SAME_INSTANT_SECONDS:
                after_idx = int(np.searchsorted(stamps, ts, side="right"))
                if 0 < after_idx < len(ordered):
                    fa, fb = ordered[after_idx - 1], ordered[after_idx]
                    progress = interpolation_weight(ts, stamps[after_idx - 1], stamps[after_idx])
                    coord = lerp_coordinate(fa.location.coordinates, fb.location.coordinates, progress)
                    interpolated.append(interpolate_forecast(fa, fb, progress, interpolated_location(coord), t))
            t += step

    confidence = batch_confidence(len(originals), len(originals) + len(interpolated), max_gap_hours(originals))
    return InterpolationResult(
        original_points=originals,
        interpolated_points=tuple(interpolated),
        resolution=resolution_minutes,
        axis="temporal",
        confidence=confidence,
    )
