"""Value objects shared by every engine component.

All types are frozen dataclasses built per call from caller input. Units:
- distances in kilometres, durations and time offsets in seconds
- temperature in Celsius, wind speed in km/h, visibility in km
- precipitation probability in percent, intensity on a 0..10 scale
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    CYCLING = "cycling"
    FLYING = "flying"
    SAILING = "sailing"
    CRUISE = "cruise"


class WeatherCondition(str, Enum):
    SUNNY = "sunny"
    CLOUDY = "cloudy"
    OVERCAST = "overcast"
    FOGGY = "foggy"
    RAINY = "rainy"
    SNOWY = "snowy"
    STORMY = "stormy"


class PrecipitationType(str, Enum):
    NONE = "none"
    RAIN = "rain"
    SLEET = "sleet"
    SNOW = "snow"
    HAIL = "hail"


class ChangeSeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        try:
            lat = float(self.latitude)
            lon = float(self.longitude)
        except (TypeError, ValueError):
            return False
        return abs(lat) <= 90 and abs(lon) <= 180


@dataclass(frozen=True)
class Location:
    name: str
    coordinates: Coordinate


@dataclass(frozen=True)
class Waypoint:
    coordinates: Coordinate
    distance_from_start: float
    estimated_time_from_start: float


@dataclass(frozen=True)
class RouteSegment:
    start_point: Waypoint
    end_point: Waypoint
    distance: float
    estimated_duration: float
    travel_mode: TravelMode = TravelMode.DRIVING


@dataclass(frozen=True)
class Route:
    """A pre-computed route; waypoints are ordered by distance from start."""
    waypoints: tuple[Waypoint, ...]
    segments: tuple[RouteSegment, ...]
    total_distance: float
    estimated_duration: float
    travel_mode: TravelMode = TravelMode.DRIVING
    id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "waypoints", tuple(self.waypoints or ()))
        object.__setattr__(self, "segments", tuple(self.segments or ()))


@dataclass(frozen=True)
class Temperature:
    current: float
    feels_like: float
    min: float
    max: float


@dataclass(frozen=True)
class Conditions:
    main: WeatherCondition
    description: str
    icon: str


@dataclass(frozen=True)
class Precipitation:
    type: PrecipitationType
    probability: float
    intensity: float


@dataclass(frozen=True)
class Wind:
    speed: float
    direction: float


@dataclass(frozen=True)
class WeatherForecast:
    location: Location
    timestamp: datetime
    temperature: Temperature
    conditions: Conditions
    precipitation: Precipitation
    wind: Wind
    humidity: float
    visibility: float

    def with_changes(self, **changes) -> "WeatherForecast":
        return replace(self, **changes)


@dataclass(frozen=True)
class WeatherSample:
    """A forecast attached to a route point, observed or synthesized."""
    forecast: WeatherForecast
    confidence: float
    interpolated: bool = False
    source_forecasts: Optional[tuple[WeatherForecast, WeatherForecast]] = None
    match_score: Optional[float] = None
    waypoint: Optional[Waypoint] = None


@dataclass(frozen=True)
class RouteTimelinePoint:
    waypoint: Waypoint
    weather: WeatherForecast
    travel_time: datetime
    segment_index: int
    distance_from_start: float
    time_from_start: float
    is_interpolated: bool
    confidence: float


@dataclass(frozen=True)
class SegmentWeatherAlignment:
    segment: RouteSegment
    weather_forecasts: tuple[WeatherForecast, ...]
    segment_start_time: datetime
    segment_end_time: datetime
    average_weather: WeatherForecast


@dataclass(frozen=True)
class WeatherPatternChange:
    location: Location
    timestamp: datetime
    from_condition: WeatherCondition
    to_condition: WeatherCondition
    severity: ChangeSeverity
    description: str
    travel_impact: str


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    missing_data_points: int
    data_consistency_score: float


@dataclass(frozen=True)
class InterpolationResult:
    """Output of a batch resampling pass along one axis."""
    original_points: tuple[WeatherForecast, ...]
    interpolated_points: tuple[WeatherForecast, ...]
    resolution: float
    axis: str
    confidence: float
    interpolation_method: str = "linear"


@dataclass(frozen=True)
class DataQuality:
    completeness: float
    confidence: float
    interpolated_points: int


@dataclass(frozen=True)
class RouteWeatherIntegration:
    route: Route
    weather_data: tuple[WeatherForecast, ...]
    timeline: tuple[RouteTimelinePoint, ...]
    start_time: datetime
    end_time: datetime
    total_duration: float
    warnings: tuple[str, ...]
    data_quality: DataQuality


@dataclass(frozen=True)
class IntervalTimelineEntry:
    time: datetime
    location: Location
    weather: WeatherSample
    distance_from_start: float
    estimated_progress: float


@dataclass(frozen=True)
class TravelModeRisk:
    travel_mode: TravelMode
    weather_factors: dict
    warnings: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class WaypointWeather:
    waypoint: Waypoint
    weather: WeatherSample
    travel_time: datetime


@dataclass(frozen=True)
class RouteWeatherForecast:
    route: Route
    start_time: datetime
    waypoints: tuple[WaypointWeather, ...]
    total_forecasts: int
    missing_data_points: int
    warnings: tuple[str, ...] = field(default_factory=tuple)


__all__ = [
    "TravelMode", "WeatherCondition", "PrecipitationType", "ChangeSeverity",
    "Coordinate", "Location", "Waypoint", "RouteSegment", "Route",
    "Temperature", "Conditions", "Precipitation", "Wind", "WeatherForecast",
    "WeatherSample", "RouteTimelinePoint", "SegmentWeatherAlignment",
    "WeatherPatternChange", "ValidationResult", "InterpolationResult",
    "DataQuality", "RouteWeatherIntegration", "IntervalTimelineEntry",
    "TravelModeRisk", "WaypointWeather", "RouteWeatherForecast",
]
