"""camelCase payload (de)serialisation for the API and persistence layers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from errors import DataProcessingError
from models import (
    Conditions,
    Coordinate,
    DataQuality,
    Location,
    Precipitation,
    PrecipitationType,
    Route,
    RouteSegment,
    RouteTimelinePoint,
    RouteWeatherIntegration,
    SegmentWeatherAlignment,
    Temperature,
    TravelMode,
    TravelModeRisk,
    ValidationResult,
    Waypoint,
    WeatherCondition,
    WeatherForecast,
    WeatherPatternChange,
    Wind,
)


def iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime:
    """ISO-8601 string (``Z`` accepted) or datetime; naive values are UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise DataProcessingError(
                "INVALID_TIMESTAMPS",
                f"Invalid timestamp: {value!r}",
                ["Use ISO-8601 timestamps such as 2024-01-15T10:00:00Z"],
            ) from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _enum_value(value) -> str:
    return getattr(value, "value", value)


# ─── Outbound ─────────────────────────────────────────────────────────────────

def coordinate_to_dict(c: Coordinate) -> dict:
    return {"latitude": c.latitude, "longitude": c.longitude}


def location_to_dict(loc: Location) -> dict:
    return {"name": loc.name, "coordinates": coordinate_to_dict(loc.coordinates)}


def waypoint_to_dict(w: Waypoint) -> dict:
    return {
        "coordinates": coordinate_to_dict(w.coordinates),
        "distanceFromStart": w.distance_from_start,
        "estimatedTimeFromStart": w.estimated_time_from_start,
    }


def segment_to_dict(s: RouteSegment) -> dict:
    return {
        "startPoint": waypoint_to_dict(s.start_point),
        "endPoint": waypoint_to_dict(s.end_point),
        "distance": s.distance,
        "estimatedDuration": s.estimated_duration,
        "travelMode": _enum_value(s.travel_mode),
    }


def route_to_dict(route: Route) -> dict:
    out = {
        "waypoints": [waypoint_to_dict(w) for w in route.waypoints],
        "segments": [segment_to_dict(s) for s in route.segments],
        "totalDistance": route.total_distance,
        "estimatedDuration": route.estimated_duration,
        "travelMode": _enum_value(route.travel_mode),
    }
    if route.id is not None:
        out["id"] = route.id
    return out


def forecast_to_dict(f: WeatherForecast) -> dict:
    return {
        "location": location_to_dict(f.location),
        "timestamp": iso(f.timestamp),
        "temperature": {
            "current": f.temperature.current,
            "feelsLike": f.temperature.feels_like,
            "min": f.temperature.min,
            "max": f.temperature.max,
        },
        "conditions": {
            "main": _enum_value(f.conditions.main),
            "description": f.conditions.description,
            "icon": f.conditions.icon,
        },
        "precipitation": {
            "type": _enum_value(f.precipitation.type),
            "probability": f.precipitation.probability,
            "intensity": f.precipitation.intensity,
        },
        "wind": {"speed": f.wind.speed, "direction": f.wind.direction},
        "humidity": f.humidity,
        "visibility": f.visibility,
    }


def timeline_point_to_dict(p: RouteTimelinePoint) -> dict:
    return {
        "waypoint": waypoint_to_dict(p.waypoint),
        "weather": forecast_to_dict(p.weather),
        "travelTime": iso(p.travel_time),
        "segmentIndex": p.segment_index,
        "distanceFromStart": p.distance_from_start,
        "timeFromStart": p.time_from_start,
        "isInterpolated": p.is_interpolated,
        "confidence": p.confidence,
    }


def validation_to_dict(v: ValidationResult) -> dict:
    return {
        "isValid": v.is_valid,
        "errors": list(v.errors),
        "warnings": list(v.warnings),
        "missingDataPoints": v.missing_data_points,
        "dataConsistencyScore": v.data_consistency_score,
    }


def pattern_change_to_dict(c: WeatherPatternChange) -> dict:
    return {
        "location": location_to_dict(c.location),
        "timestamp": iso(c.timestamp),
        "fromCondition": _enum_value(c.from_condition),
        "toCondition": _enum_value(c.to_condition),
        "severity": _enum_value(c.severity),
        "description": c.description,
        "travelImpact": c.travel_impact,
    }


def segment_alignment_to_dict(a: SegmentWeatherAlignment) -> dict:
    return {
        "segment": segment_to_dict(a.segment),
        "weatherForecasts": [forecast_to_dict(f) for f in a.weather_forecasts],
        "segmentStartTime": iso(a.segment_start_time),
        "segmentEndTime": iso(a.segment_end_time),
        "averageWeather": forecast_to_dict(a.average_weather),
    }


def data_quality_to_dict(q: DataQuality) -> dict:
    return {
        "completeness": q.completeness,
        "confidence": q.confidence,
        "interpolatedPoints": q.interpolated_points,
    }


def integration_to_dict(i: RouteWeatherIntegration) -> dict:
    return {
        "route": route_to_dict(i.route),
        "weatherData": [forecast_to_dict(f) for f in i.weather_data],
        "timeline": [timeline_point_to_dict(p) for p in i.timeline],
        "startTime": iso(i.start_time),
        "endTime": iso(i.end_time),
        "totalDuration": i.total_duration,
        "warnings": list(i.warnings),
        "dataQuality": data_quality_to_dict(i.data_quality),
    }


def risk_to_dict(r: TravelModeRisk) -> dict:
    factors = dict(r.weather_factors)
    precip = factors.get("precipitation")
    if precip:
        factors["precipitation"] = {k: [_enum_value(t) for t in v] for k, v in precip.items()}
    return {
        "travelMode": _enum_value(r.travel_mode),
        "weatherFactors": factors,
        "warnings": list(r.warnings),
        "recommendations": list(r.recommendations),
    }


# ─── Inbound ──────────────────────────────────────────────────────────────────

def coordinate_from_dict(d: dict) -> Coordinate:
    return Coordinate(latitude=float(d["latitude"]), longitude=float(d["longitude"]))


def waypoint_from_dict(d: dict) -> Waypoint:
    return Waypoint(
        coordinates=coordinate_from_dict(d["coordinates"]),
        distance_from_start=float(d.get("distanceFromStart", 0.0)),
        estimated_time_from_start=float(d.get("estimatedTimeFromStart", 0.0)),
    )


def _travel_mode(value: Optional[str]) -> TravelMode:
    return TravelMode((value or TravelMode.DRIVING.value).lower())


def route_from_dict(d: dict) -> Route:
    """Parse a route payload.

    Raises:
        DataProcessingError: INVALID_ROUTE when required fields are missing.
    """
    try:
        mode = _travel_mode(d.get("travelMode"))
        segments = [
            RouteSegment(
                start_point=waypoint_from_dict(s["startPoint"]),
                end_point=waypoint_from_dict(s["endPoint"]),
                distance=float(s["distance"]),
                estimated_duration=float(s["estimatedDuration"]),
                travel_mode=_travel_mode(s.get("travelMode") or mode.value),
            )
            for s in d.get("segments") or []
        ]
        return Route(
            waypoints=[waypoint_from_dict(w) for w in d.get("waypoints") or []],
            segments=segments,
            total_distance=float(d["totalDistance"]),
            estimated_duration=float(d["estimatedDuration"]),
            travel_mode=mode,
            id=d.get("id"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DataProcessingError(
            "INVALID_ROUTE",
            f"Route payload is malformed: {e}",
            ["Provide a valid route object with waypoints and segments"],
        ) from e


def forecast_from_dict(d: dict) -> WeatherForecast:
    """Parse a forecast payload; enum names are case-insensitive.

    Raises:
        DataProcessingError: INVALID_TIMESTAMPS, INVALID_COORDINATES or
            INVALID_FORECAST (missing blocks, unknown enum names).
    """
    timestamp = parse_timestamp(d.get("timestamp"))
    try:
        loc = d["location"]
        location = Location(name=loc.get("name", ""), coordinates=coordinate_from_dict(loc["coordinates"]))
    except (KeyError, TypeError, ValueError) as e:
        raise DataProcessingError(
            "INVALID_COORDINATES",
            "Weather forecast location is missing or malformed",
            ["Ensure all weather data has valid latitude and longitude values"],
        ) from e

    try:
        temp = d["temperature"]
        cond = d["conditions"]
        precip = d["precipitation"]
        wind = d["wind"]
        return WeatherForecast(
            location=location,
            timestamp=timestamp,
            temperature=Temperature(
                current=temp["current"],
                feels_like=temp.get("feelsLike", temp["current"]),
                min=temp.get("min", temp["current"]),
                max=temp.get("max", temp["current"]),
            ),
            conditions=Conditions(
                main=WeatherCondition(str(cond["main"]).lower()),
                description=cond.get("description", ""),
                icon=cond.get("icon", ""),
            ),
            precipitation=Precipitation(
                type=PrecipitationType(str(precip.get("type", "none")).lower()),
                probability=precip.get("probability", 0),
                intensity=precip.get("intensity", 0),
            ),
            wind=Wind(speed=wind.get("speed", 0), direction=wind.get("direction", 0)),
            humidity=d.get("humidity", 0),
            visibility=d.get("visibility", 0),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DataProcessingError(
            "INVALID_FORECAST",
            f"Weather forecast payload is malformed: {e}",
            [
                "Provide temperature, conditions, precipitation and wind blocks",
                "Use known condition and precipitation names",
            ],
        ) from e
