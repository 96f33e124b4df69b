"""Great-circle distance, bounding boxes and positions along a route."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

from constants import EARTH_RADIUS_KM, WAYPOINT_TIME_SNAP_SECONDS
from models import Coordinate, Waypoint


@dataclass(frozen=True)
class Bounds:
    north: float
    south: float
    east: float
    west: float


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates in km."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def haversine_km_many(origin: Coordinate, lats, lons) -> np.ndarray:
    """Vectorised haversine from one origin to arrays of latitudes/longitudes."""
    lat = np.radians(np.asarray(lats, dtype=float))
    lon = np.radians(np.asarray(lons, dtype=float))
    phi1 = math.radians(origin.latitude)
    lam1 = math.radians(origin.longitude)
    h = np.sin((lat - phi1) / 2) ** 2 + math.cos(phi1) * np.cos(lat) * np.sin((lon - lam1) / 2) ** 2
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))


def bounds(coords: Iterable[Coordinate]) -> Optional[Bounds]:
    coords = list(coords)
    if not coords:
        return None
    lats = np.array([c.latitude for c in coords], dtype=float)
    lons = np.array([c.longitude for c in coords], dtype=float)
    return Bounds(
        north=float(lats.max()),
        south=float(lats.min()),
        east=float(lons.max()),
        west=float(lons.min()),
    )


def bounds_overlap(b1: Bounds, b2: Bounds) -> bool:
    return not (
        b1.east < b2.west
        or b2.east < b1.west
        or b1.north < b2.south
        or b2.north < b1.south
    )


def lerp_coordinate(a: Coordinate, b: Coordinate, fraction: float) -> Coordinate:
    """Linear interpolation between two coordinates (short hops only)."""
    return Coordinate(
        latitude=a.latitude + (b.latitude - a.latitude) * fraction,
        longitude=a.longitude + (b.longitude - a.longitude) * fraction,
    )


def position_at_distance(waypoints: Sequence[Waypoint], distance_km: float) -> Waypoint:
    """Interpolated waypoint at a given distance along the route.

    Clamps to the first/last waypoint outside the route span.
    """
    if not waypoints:
        raise ValueError("route has no waypoints")
    first, last = waypoints[0], waypoints[-1]
    if distance_km <= first.distance_from_start:
        return first
    if distance_km >= last.distance_from_start:
        return last

    for p1, p2 in zip(waypoints, waypoints[1:]):
        if p1.distance_from_start <= distance_km <= p2.distance_from_start:
            span = p2.distance_from_start - p1.distance_from_start
            ratio = 0.0 if span <= 0 else (distance_km - p1.distance_from_start) / span
            return Waypoint(
                coordinates=lerp_coordinate(p1.coordinates, p2.coordinates, ratio),
                distance_from_start=distance_km,
                estimated_time_from_start=p1.estimated_time_from_start
                + (p2.estimated_time_from_start - p1.estimated_time_from_start) * ratio,
            )
    return last


def waypoint_at_time(waypoints: Sequence[Waypoint], seconds: float) -> Optional[Waypoint]:
    """Route position at a travel-time offset.

    Reuses the closest waypoint when it is within WAYPOINT_TIME_SNAP_SECONDS,
    otherwise interpolates between the bracketing waypoints.
    """
    if not waypoints:
        return None
    if seconds > waypoints[-1].estimated_time_from_start:
        return waypoints[-1]

    times = np.array([w.estimated_time_from_start for w in waypoints], dtype=float)
    diffs = np.abs(times - seconds)
    closest = int(np.argmin(diffs))
    if diffs[closest] <= WAYPOINT_TIME_SNAP_SECONDS:
        return waypoints[closest]

    for before, after in zip(waypoints, waypoints[1:]):
        if before.estimated_time_from_start <= seconds <= after.estimated_time_from_start:
            span = after.estimated_time_from_start - before.estimated_time_from_start
            progress = 0.0 if span <= 0 else (seconds - before.estimated_time_from_start) / span
            return Waypoint(
                coordinates=lerp_coordinate(before.coordinates, after.coordinates, progress),
                distance_from_start=before.distance_from_start
                + (after.distance_from_start - before.distance_from_start) * progress,
                estimated_time_from_start=seconds,
            )
    return waypoints[closest]


def project_onto_route(waypoints: Sequence[Waypoint], coord: Coordinate) -> float:
    """Distance-from-start of the waypoint nearest to a coordinate."""
    if not waypoints:
        return 0.0
    dists = haversine_km_many(
        coord,
        [w.coordinates.latitude for w in waypoints],
        [w.coordinates.longitude for w in waypoints],
    )
    return float(waypoints[int(np.argmin(dists))].distance_from_start)
