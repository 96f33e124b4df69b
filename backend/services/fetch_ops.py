"""Bounded-batch weather fetching on behalf of the caller.

The engine itself never does I/O; this helper drives a caller-supplied
``fetch(location, timestamp)`` across sampling points and turns failures
into missing data points instead of errors.
"""
from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from constants import FETCH_BATCH_DELAY_SECONDS, FETCH_BATCH_SIZE
from errors import DataProcessingError, QuotaExceeded
from interpolation import interpolate_along_route
from logging_config import setup_logging
from models import Location, Route, RouteWeatherForecast, WaypointWeather, WeatherForecast, WeatherSample
from patterns import route_pattern_warnings
from sampling import select_sampling_points

logger = setup_logging(__name__, level="INFO", log_name="fetch")

FetchFn = Callable[[Location, Optional[datetime]], WeatherForecast]


@dataclass(frozen=True)
class FetchRequest:
    location: Location
    timestamp: Optional[datetime] = None


@dataclass
class FetchOutcome:
    """Forecasts keyed by request index; failed indexes map to the error text."""
    forecasts: dict[int, WeatherForecast] = field(default_factory=dict)
    failures: dict[int, str] = field(default_factory=dict)


def fetch_in_batches(
    requests: Sequence[FetchRequest],
    fetch: FetchFn,
    batch_size: int = FETCH_BATCH_SIZE,
    batch_delay: float = FETCH_BATCH_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> FetchOutcome:
    """Run ``fetch`` for every request, ``batch_size`` at a time.

    Completion order inside a batch is irrelevant; results are keyed by the
    request's index. ``batch_delay`` seconds pass between batches. Once the
    provider raises QuotaExceeded no further batches are started and the
    remaining requests are recorded as failures.
    """
    outcome = FetchOutcome()
    batch_size = max(1, int(batch_size))
    quota_hit = False

    for start in range(0, len(requests), batch_size):
        if quota_hit:
            for idx in range(start, len(requests)):
                outcome.failures[idx] = "skipped: provider quota exceeded"
            logger.warning(f"Provider quota exceeded, skipped {len(requests) - start} remaining requests")
            break
        batch = list(enumerate(requests[start:start + batch_size], start=start))
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            future_to_idx = {
                executor.submit(fetch, req.location, req.timestamp): idx
                for idx, req in batch
            }
            for future in as_completed(future_to_idx):
                idx = future_to_idx[future]
                try:
                    outcome.forecasts[idx] = future.result()
                except QuotaExceeded as exc:
                    quota_hit = True
                    logger.warning(f"Provider quota exceeded at {requests[idx].location.name}: {exc}")
                    outcome.failures[idx] = str(exc)
                except Exception as exc:
                    logger.warning(f"Weather fetch failed for {requests[idx].location.name}: {exc}")
                    outcome.failures[idx] = str(exc)

        if start + batch_size < len(requests) and batch_delay > 0 and not quota_hit:
            sleep(batch_delay)

    return outcome


def route_weather_forecast(
    route: Route,
    fetch: FetchFn,
    start_time: datetime,
    interval_km: Optional[float] = None,
    include_interpolation: bool = True,
    batch_size: int = FETCH_BATCH_SIZE,
    batch_delay: float = FETCH_BATCH_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> RouteWeatherForecast:
    """Sample the route, fetch weather, fill the gaps and collect warnings.

    Raises:
        DataProcessingError: INVALID_ROUTE when the route has no waypoints.
    """
    if not route.waypoints:
        raise DataProcessingError(
            "INVALID_ROUTE",
            "Route must contain waypoints for weather forecasting",
            ["Ensure the route has been properly calculated with waypoints"],
        )

    sampling = select_sampling_points(route, interval_km)
    travel_times = [start_time + timedelta(seconds=wp.estimated_time_from_start) for wp in sampling]
    requests = [
        FetchRequest(
            location=Location(
                name=f"Route point at {wp.coordinates.latitude:.4f}, {wp.coordinates.longitude:.4f}",
                coordinates=wp.coordinates,
            ),
            timestamp=when,
        )
        for wp, when in zip(sampling, travel_times)
    ]
    outcome = fetch_in_batches(requests, fetch, batch_size=batch_size, batch_delay=batch_delay, sleep=sleep)

    warnings: list[str] = []
    known: list[WaypointWeather] = []
    for idx, (wp, when) in enumerate(zip(sampling, travel_times)):
        forecast = outcome.forecasts.get(idx)
        if forecast is None:
            warnings.append(f"Weather data unavailable for point at {wp.distance_from_start:.1f}km")
            continue
        known.append(WaypointWeather(
            waypoint=wp,
            weather=WeatherSample(forecast=forecast, confidence=1.0, interpolated=False, waypoint=wp),
            travel_time=when,
        ))

    if include_interpolation and len(known) >= 2:
        points = interpolate_along_route(route, known, start_time)
    else:
        points = list(known)
    points.sort(key=lambda p: p.waypoint.distance_from_start)

    missing = len(sampling) - len(known)
    if missing > 0:
        warnings.append(f"{missing} weather data points could not be retrieved")
    if include_interpolation and len(known) < 2:
        warnings.append("Insufficient data points for weather interpolation")
    warnings.extend(route_pattern_warnings(points))

    logger.info(
        f"Route forecast: {len(sampling)} sampled, {missing} missing, {len(points)} total points"
    )
    return RouteWeatherForecast(
        route=route,
        start_time=start_time,
        waypoints=tuple(points),
        total_forecasts=len(points),
        missing_data_points=missing,
        warnings=tuple(warnings),
    )
