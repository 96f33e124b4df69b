"""Tests for backend/risk.py."""

from __future__ import annotations

import pytest

from models import PrecipitationType, TravelMode
from risk import TRAVEL_MODE_FACTORS, assess_travel_mode_risk


def test_dangerous_walking_conditions(make_forecast):
    risk = assess_travel_mode_risk(TravelMode.WALKING, [make_forecast(wind_speed=70, visibility=0.5)])
    assert risk.travel_mode == TravelMode.WALKING
    assert any("Dangerous" in w for w in risk.warnings)
    assert all(w.startswith(("Dangerous", "Warning")) for w in risk.warnings)


def test_severe_walking_conditions_cover_every_dimension(make_forecast):
    f = make_forecast(temp=-15, wind_speed=70, visibility=0.1, precip=PrecipitationType.HAIL, intensity=8)
    warnings = assess_travel_mode_risk(TravelMode.WALKING, [f]).warnings
    assert len(warnings) == 4
    assert all(w.startswith("Dangerous") for w in warnings)


def test_cycling_strong_wind_is_dangerous(make_forecast):
    warnings = assess_travel_mode_risk(TravelMode.CYCLING, [make_forecast(wind_speed=45)]).warnings
    assert "Dangerous wind for cycling: 45 km/h" in warnings


def test_warnings_deduplicated_in_order(make_forecast):
    windy = make_forecast(wind_speed=35)
    warnings = assess_travel_mode_risk(TravelMode.WALKING, [windy, windy, windy]).warnings
    assert warnings == ("Warning: strong wind for walking: 35 km/h",)


def test_cold_wet_walk_recommendations(make_forecast):
    f = make_forecast(temp=5, precip=PrecipitationType.RAIN, probability=70, intensity=4)
    recs = assess_travel_mode_risk(TravelMode.WALKING, [f]).recommendations
    assert any("warm clothing" in r for r in recs)
    assert any("waterproof" in r for r in recs)


def test_sailing_wind_recommendation(make_forecast):
    recs = assess_travel_mode_risk(TravelMode.SAILING, [make_forecast(temp=20, wind_speed=30)]).recommendations
    assert any("wind" in r.lower() for r in recs)


def test_empty_pool_still_returns_table():
    risk = assess_travel_mode_risk(TravelMode.DRIVING, [])
    assert risk.travel_mode == TravelMode.DRIVING
    assert risk.weather_factors["temperature"]["optimal"]
    assert risk.warnings == ()
    assert risk.recommendations == ()


def test_returned_table_is_a_copy():
    risk = assess_travel_mode_risk(TravelMode.DRIVING, [])
    risk.weather_factors["wind"]["dangerous"] = 0
    assert TRAVEL_MODE_FACTORS[TravelMode.DRIVING]["wind"]["dangerous"] == 90


def test_mode_tables_are_ordered():
    cycling = TRAVEL_MODE_FACTORS[TravelMode.CYCLING]
    assert cycling["wind"]["optimal"] < cycling["wind"]["warning"]
    driving = TRAVEL_MODE_FACTORS[TravelMode.DRIVING]
    assert driving["visibility"]["dangerous"] < driving["visibility"]["warning"]
    flying = TRAVEL_MODE_FACTORS[TravelMode.FLYING]
    assert flying["temperature"]["dangerous"]["min"] < flying["temperature"]["warning"]["min"]
    assert TRAVEL_MODE_FACTORS[TravelMode.SAILING]["wind"]["optimal"] > 0
    cruise = TRAVEL_MODE_FACTORS[TravelMode.CRUISE]
    assert cruise["wind"]["dangerous"] > cruise["wind"]["warning"]


@pytest.mark.parametrize("mode", list(TravelMode))
def test_every_mode_has_consistent_bands(mode):
    f = TRAVEL_MODE_FACTORS[mode]
    t = f["temperature"]
    assert t["dangerous"]["min"] < t["warning"]["min"] < t["optimal"]["min"]
    assert t["optimal"]["max"] < t["warning"]["max"] < t["dangerous"]["max"]
    assert f["wind"]["optimal"] < f["wind"]["warning"] < f["wind"]["dangerous"]
    assert f["visibility"]["dangerous"] < f["visibility"]["warning"] < f["visibility"]["optimal"]
    precip = f["precipitation"]
    assert PrecipitationType.NONE in precip["acceptable"]
    assert PrecipitationType.HAIL in precip["dangerous"]


def test_string_mode_accepted(make_forecast):
    assert assess_travel_mode_risk("cruise", [make_forecast()]).travel_mode == TravelMode.CRUISE
