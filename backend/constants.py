"""Shared constants for the route-weather engine.

Keep matching weights, confidence decay and change thresholds in one place.
"""

from __future__ import annotations
import os

EARTH_RADIUS_KM: float = 6371.0

# Sampling intervals (km)
SAMPLING_SHORT_ROUTE_KM: float = 100.0
SAMPLING_INTERVAL_SHORT_KM: float = 25.0
SAMPLING_INTERVAL_LONG_KM: float = 50.0
SAMPLING_MAX_INTERVAL_KM: dict[str, float] = {
    "walking": 10.0,
    "cycling": 20.0,
}
SAMPLING_MIN_INTERVAL_KM: dict[str, float] = {
    "flying": 100.0,
    "sailing": 75.0,
    "cruise": 75.0,
}

# Weather matching
MATCH_MAX_TIME_DIFF_HOURS: float = 4.0
MATCH_MAX_DISTANCE_KM: float = 50.0
MATCH_TIME_WEIGHT: float = 0.7
MATCH_LOCATION_WEIGHT: float = 0.3

# A forecast within this radius and at the exact matched instant counts as observed
OBSERVED_RADIUS_KM: float = 1.0
# Known route points closer than this along the route are treated as the same point
KNOWN_POINT_TOLERANCE_KM: float = 0.1

# Confidence decay
INTERPOLATION_PENALTY: float = 0.2
TIME_DECAY_START_HOURS: float = 2.0
TIME_DECAY_PER_HOUR: float = 0.05
TIME_DECAY_MAX: float = 0.3
DISTANCE_DECAY_START_KM: float = 10.0
DISTANCE_DECAY_PER_KM: float = 0.01
DISTANCE_DECAY_MAX: float = 0.2
CONFIDENCE_FLOOR: float = 0.1

# Pairwise (single bracket) interpolation confidence
PAIRWISE_FULL_DECAY_KM: float = 200.0
PAIRWISE_CONFIDENCE_FLOOR: float = 0.3

# Batch (resampled series) interpolation confidence
BATCH_ORIGINAL_WEIGHT: float = 0.8
BATCH_BASE_CONFIDENCE: float = 0.2
BATCH_MAX_GAP_HOURS: float = 6.0
BATCH_GAP_DECAY_PER_HOUR: float = 0.1
BATCH_GAP_FLOOR: float = 0.3

# Weight spacing below which two bracket anchors are treated as the same point
WEIGHT_SPAN_EPSILON: float = 0.001

LOW_CONFIDENCE_THRESHOLD: float = 0.6
INTERPOLATED_SHARE_WARNING: float = 0.5
GAP_FILL_CONFIDENCE_FACTOR: float = 0.8
GAP_FILL_INTERVAL_MINUTES: int = int(os.environ.get("ROUTEWEATHER_GAP_FILL_MINUTES", "30"))
INTERVAL_TIMELINE_MINUTES: int = int(os.environ.get("ROUTEWEATHER_TIMELINE_MINUTES", "60"))
# Closest waypoint is reused when within this many seconds of the requested instant
WAYPOINT_TIME_SNAP_SECONDS: float = 300.0

# Extreme conditions flagged on an integrated timeline
EXTREME_TEMP_MIN_C: float = -10.0
EXTREME_TEMP_MAX_C: float = 40.0
EXTREME_WIND_KMH: float = 50.0
EXTREME_PRECIP_INTENSITY: float = 7.0
MIN_FORECASTS_FOR_LONG_ROUTE: int = 3
LIMITED_DATA_ROUTE_SECONDS: float = 3600.0

# Route pattern warnings
ROUTE_TEMP_RANGE_WARNING_C: float = 15.0
ROUTE_MAX_PRECIP_TYPES: int = 2
SEVERE_PRECIP_INTENSITY: float = 7.0
LOW_VISIBILITY_KM: float = 5.0

# Pattern change thresholds
TEMP_CHANGE_MODERATE_C: float = 10.0
TEMP_CHANGE_MAJOR_C: float = 20.0
CONDITION_CHANGE_MAJOR_SCORE: float = 3.0
CONDITION_CHANGE_MODERATE_SCORE: float = 1.5
CONDITION_TEMP_DIVISOR: float = 10.0
CONDITION_WIND_DIVISOR: float = 20.0
PRECIP_CHANGE_MAJOR_SCORE: float = 2.0
PRECIP_CHANGE_MODERATE_SCORE: float = 1.0
PRECIP_INTENSITY_DIVISOR: float = 5.0
PRECIP_PROBABILITY_DIVISOR: float = 50.0

# Consistency score penalties
PENALTY_NO_WAYPOINTS: float = 0.5
PENALTY_INVALID_DURATION: float = 0.3
PENALTY_NO_WEATHER: float = 0.5
PENALTY_TIME_BOUNDARY: float = 0.1
PENALTY_PER_MISSING_POINT: float = 0.05
PENALTY_MISSING_MAX: float = 0.3
PENALTY_GEOGRAPHIC: float = 0.2
EXPECTED_SAMPLE_SECONDS: int = 3600

# Boundary fetch batching
FETCH_BATCH_SIZE: int = int(os.environ.get("ROUTEWEATHER_FETCH_BATCH_SIZE", "5"))
FETCH_BATCH_DELAY_SECONDS: float = float(os.environ.get("ROUTEWEATHER_FETCH_BATCH_DELAY", "0.2"))

DEFAULT_PROVIDER: str = os.environ.get("ROUTEWEATHER_PROVIDER", "openweathermap")
PROVIDER_CODES_PATH: str = os.environ.get(
    "ROUTEWEATHER_PROVIDER_CODES",
    os.path.join(os.path.dirname(__file__), "config", "provider_codes.yaml"),
)
