"""Choose which route waypoints need a weather query."""

from __future__ import annotations

import logging
import math
from typing import Optional

from constants import (
    SAMPLING_INTERVAL_LONG_KM,
    SAMPLING_INTERVAL_SHORT_KM,
    SAMPLING_MAX_INTERVAL_KM,
    SAMPLING_MIN_INTERVAL_KM,
    SAMPLING_SHORT_ROUTE_KM,
)
from models import Route, TravelMode, Waypoint

logger = logging.getLogger(__name__)


def default_sampling_interval(route: Route) -> float:
    """Sampling interval in km from route length, tightened for slow modes."""
    base = SAMPLING_INTERVAL_SHORT_KM if route.total_distance < SAMPLING_SHORT_ROUTE_KM else SAMPLING_INTERVAL_LONG_KM
    mode = TravelMode(route.travel_mode).value
    if mode in SAMPLING_MAX_INTERVAL_KM:
        return min(base, SAMPLING_MAX_INTERVAL_KM[mode])
    if mode in SAMPLING_MIN_INTERVAL_KM:
        return max(base, SAMPLING_MIN_INTERVAL_KM[mode])
    return base


def select_sampling_points(route: Route, interval_km: Optional[float] = None) -> list[Waypoint]:
    """Waypoints to query for weather.

    First and last waypoints are always included; in between a waypoint is
    taken whenever its distance reaches the next multiple of the interval.
    """
    waypoints = list(route.waypoints)
    if not waypoints:
        return []

    interval = interval_km if interval_km and interval_km > 0 else default_sampling_interval(route)
    selected = [0]
    next_distance = interval
    for idx, wp in enumerate(waypoints[1:], start=1):
        if wp.distance_from_start >= next_distance:
            selected.append(idx)
            # skip every multiple this waypoint already covers
            next_distance = (math.floor(wp.distance_from_start / interval) + 1) * interval

    last = len(waypoints) - 1
    if selected[-1] != last:
        selected.append(last)

    logger.debug("Sampling %d of %d waypoints every %.1f km", len(selected), len(waypoints), interval)
    return [waypoints[i] for i in selected]
