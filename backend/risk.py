"""Travel-mode weather risk tables and assessment."""

from __future__ import annotations

import copy
from typing import Sequence

import numpy as np

from models import PrecipitationType, TravelMode, TravelModeRisk, WeatherForecast

_P = PrecipitationType

# Temperature bands are min/max in °C; wind in km/h (higher is worse);
# visibility in km (lower is worse).
TRAVEL_MODE_FACTORS: dict[TravelMode, dict] = {
    TravelMode.WALKING: {
        "temperature": {
            "optimal": {"min": 10, "max": 25},
            "warning": {"min": 0, "max": 32},
            "dangerous": {"min": -10, "max": 38},
        },
        "wind": {"optimal": 15, "warning": 30, "dangerous": 50},
        "visibility": {"optimal": 5, "warning": 1, "dangerous": 0.2},
        "precipitation": {
            "acceptable": [_P.NONE],
            "warning": [_P.RAIN, _P.SNOW],
            "dangerous": [_P.SLEET, _P.HAIL],
        },
    },
    TravelMode.CYCLING: {
        "temperature": {
            "optimal": {"min": 10, "max": 25},
            "warning": {"min": 2, "max": 30},
            "dangerous": {"min": -5, "max": 35},
        },
        "wind": {"optimal": 15, "warning": 25, "dangerous": 40},
        "visibility": {"optimal": 5, "warning": 2, "dangerous": 0.5},
        "precipitation": {
            "acceptable": [_P.NONE],
            "warning": [_P.RAIN],
            "dangerous": [_P.SNOW, _P.SLEET, _P.HAIL],
        },
    },
    TravelMode.DRIVING: {
        "temperature": {
            "optimal": {"min": -5, "max": 35},
            "warning": {"min": -15, "max": 40},
            "dangerous": {"min": -30, "max": 50},
        },
        "wind": {"optimal": 40, "warning": 60, "dangerous": 90},
        "visibility": {"optimal": 10, "warning": 2, "dangerous": 0.5},
        "precipitation": {
            "acceptable": [_P.NONE, _P.RAIN],
            "warning": [_P.SNOW, _P.SLEET],
            "dangerous": [_P.HAIL],
        },
    },
    TravelMode.FLYING: {
        "temperature": {
            "optimal": {"min": -10, "max": 35},
            "warning": {"min": -20, "max": 40},
            "dangerous": {"min": -40, "max": 50},
        },
        "wind": {"optimal": 25, "warning": 45, "dangerous": 65},
        "visibility": {"optimal": 10, "warning": 5, "dangerous": 1.5},
        "precipitation": {
            "acceptable": [_P.NONE],
            "warning": [_P.RAIN, _P.SNOW],
            "dangerous": [_P.SLEET, _P.HAIL],
        },
    },
    TravelMode.SAILING: {
        "temperature": {
            "optimal": {"min": 15, "max": 28},
            "warning": {"min": 5, "max": 35},
            "dangerous": {"min": 0, "max": 40},
        },
        "wind": {"optimal": 20, "warning": 40, "dangerous": 60},
        "visibility": {"optimal": 10, "warning": 3, "dangerous": 1},
        "precipitation": {
            "acceptable": [_P.NONE, _P.RAIN],
            "warning": [_P.SNOW, _P.SLEET],
            "dangerous": [_P.HAIL],
        },
    },
    TravelMode.CRUISE: {
        "temperature": {
            "optimal": {"min": 10, "max": 30},
            "warning": {"min": 0, "max": 35},
            "dangerous": {"min": -10, "max": 40},
        },
        "wind": {"optimal": 30, "warning": 60, "dangerous": 90},
        "visibility": {"optimal": 5, "warning": 2, "dangerous": 0.5},
        "precipitation": {
            "acceptable": [_P.NONE, _P.RAIN],
            "warning": [_P.SNOW, _P.SLEET],
            "dangerous": [_P.HAIL],
        },
    },
}

# (predicate over aggregate stats and the mode table, recommendation)
_RECOMMENDATIONS = {
    TravelMode.WALKING: [
        (lambda s, f: s["avg_temp"] < 10, "Wear layered warm clothing"),
        (lambda s, f: s["avg_temp"] > 25, "Carry water and wear sun protection"),
        (lambda s, f: s["has_precipitation"], "Bring waterproof clothing or an umbrella"),
        (lambda s, f: s["max_wind"] > f["wind"]["optimal"], "Expect gusty conditions - choose sheltered paths"),
        (lambda s, f: s["min_visibility"] < f["visibility"]["optimal"], "Wear reflective or high-visibility clothing"),
    ],
    TravelMode.CYCLING: [
        (lambda s, f: s["avg_temp"] < 10, "Wear thermal layers, gloves and warm clothing"),
        (lambda s, f: s["has_precipitation"], "Use waterproof gear and brake earlier on wet roads"),
        (lambda s, f: s["max_wind"] > f["wind"]["optimal"], "Plan for headwinds and crosswinds"),
        (lambda s, f: s["min_visibility"] < f["visibility"]["optimal"], "Use front and rear lights"),
    ],
    TravelMode.DRIVING: [
        (lambda s, f: s["avg_temp"] < 0, "Check for icy roads and carry winter equipment"),
        (lambda s, f: s["has_precipitation"], "Reduce speed and increase following distance"),
        (lambda s, f: s["max_wind"] > f["wind"]["optimal"], "Watch for crosswinds on bridges and open roads"),
        (lambda s, f: s["min_visibility"] < f["visibility"]["optimal"], "Use low-beam headlights in reduced visibility"),
    ],
    TravelMode.FLYING: [
        (lambda s, f: s["max_wind"] > f["wind"]["optimal"], "Expect turbulence and possible crosswind delays"),
        (lambda s, f: s["min_visibility"] < f["visibility"]["optimal"], "Low visibility may cause delays"),
        (lambda s, f: s["has_precipitation"], "De-icing or weather holds are possible"),
    ],
    TravelMode.SAILING: [
        (lambda s, f: s["max_wind"] > f["wind"]["optimal"], "Strong wind expected - reef early and review the marine forecast"),
        (lambda s, f: s["avg_temp"] < 15, "Dress warmly - spray and wind chill add up on the water"),
        (lambda s, f: s["has_precipitation"], "Wear foul-weather gear"),
        (lambda s, f: s["min_visibility"] < f["visibility"]["optimal"], "Use radar and sound signals in reduced visibility"),
    ],
    TravelMode.CRUISE: [
        (lambda s, f: s["max_wind"] > f["wind"]["optimal"], "Rough seas possible - consider seasickness precautions"),
        (lambda s, f: s["has_precipitation"], "Plan indoor activities for wet stretches"),
        (lambda s, f: s["avg_temp"] < 10, "Pack warm clothing for time on deck"),
    ],
}


def _classify(forecast: WeatherForecast, mode: TravelMode, factors: dict) -> list[str]:
    label = mode.value
    warnings = []

    t = forecast.temperature.current
    temp = factors["temperature"]
    if t < temp["dangerous"]["min"] or t > temp["dangerous"]["max"]:
        warnings.append(f"Dangerous temperature for {label}: {t:g}°C")
    elif t < temp["warning"]["min"] or t > temp["warning"]["max"]:
        warnings.append(f"Warning: uncomfortable temperature for {label}: {t:g}°C")

    speed = forecast.wind.speed
    if speed > factors["wind"]["dangerous"]:
        warnings.append(f"Dangerous wind for {label}: {speed:g} km/h")
    elif speed > factors["wind"]["warning"]:
        warnings.append(f"Warning: strong wind for {label}: {speed:g} km/h")

    vis = forecast.visibility
    if vis < factors["visibility"]["dangerous"]:
        warnings.append(f"Dangerous visibility for {label}: {vis:g} km")
    elif vis < factors["visibility"]["warning"]:
        warnings.append(f"Warning: reduced visibility for {label}: {vis:g} km")

    kind = PrecipitationType(forecast.precipitation.type)
    if kind in factors["precipitation"]["dangerous"]:
        warnings.append(f"Dangerous precipitation for {label}: {kind.value}")
    elif kind in factors["precipitation"]["warning"]:
        warnings.append(f"Warning: {kind.value} affects {label}")
    return warnings


def assess_travel_mode_risk(mode: TravelMode, pool: Sequence[WeatherForecast]) -> TravelModeRisk:
    """Classify every forecast against the mode's table and derive recommendations."""
    mode = TravelMode(mode)
    factors = TRAVEL_MODE_FACTORS[mode]
    if not pool:
        return TravelModeRisk(travel_mode=mode, weather_factors=copy.deepcopy(factors))

    warnings: list[str] = []
    for forecast in pool:
        for warning in _classify(forecast, mode, factors):
            if warning not in warnings:
                warnings.append(warning)

    stats = {
        "avg_temp": float(np.mean([f.temperature.current for f in pool])),
        "max_wind": float(np.max([f.wind.speed for f in pool])),
        "has_precipitation": any(f.precipitation.type != PrecipitationType.NONE for f in pool),
        "min_visibility": float(np.min([f.visibility for f in pool])),
    }
    recommendations = [text for check, text in _RECOMMENDATIONS[mode] if check(stats, factors)]

    return TravelModeRisk(
        travel_mode=mode,
        weather_factors=copy.deepcopy(factors),
        warnings=tuple(warnings),
        recommendations=tuple(recommendations),
    )
