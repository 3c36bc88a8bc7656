"""
INTEGRATION TESTS - AGGREGATION PIPELINE
=========================================
Full pipeline against the shipped engine.yaml and spots.yaml:
Blender -> Wind Quality -> Likelihood -> Insight.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import json
import logging
from datetime import timedelta

import pytest

from models.data_models import AggregatedConditions
from shared.enums import (
    MetricKind,
    Provenance,
    ShoreOrientation,
    SourceKind,
    SurfLikelihood,
    Unit,
    WindExposure,
    WindQuality,
)
from shared.exceptions import NoDataError
from surf_engine.aggregation import AggregationEngine, aggregate, create_engine
from surf_engine.insight import MODEL_ONLY_NOTE, WAVE_CONFLICT_NOTE
from surf_engine.spot_profiles import SpotProfileStore, build_profile
from tests.mock_data import T0, firing_observations, make_obs, make_profile


@pytest.fixture
def engine(engine_config, profile_store):
    return AggregationEngine(engine_config, profile_store)


DEFAULT_PROFILE = make_profile()


# =============================================================================
# LIKELIHOOD END TO END
# =============================================================================


def test_firing_with_offshore_wind(engine):
    result = engine.aggregate("testspot", firing_observations(), DEFAULT_PROFILE)
    assert isinstance(result, AggregatedConditions)
    assert result.surf_likelihood == SurfLikelihood.FIRING
    assert result.wind_quality == WindQuality.CLEAN
    assert result.wind_exposure == WindExposure.OFFSHORE
    assert result.rating == 10
    assert result.wave_height.contributing_sources == ("ndbc-45027", "ndbc-45028")
    assert result.wave_period.value == pytest.approx(7.0)
    assert result.surf_report.startswith("Epic conditions!")
    assert result.warnings == ()


def test_onshore_wind_downgrades_to_maybe_surf(engine):
    result = engine.aggregate("testspot", firing_observations(wind_direction="SE"), DEFAULT_PROFILE)
    assert result.surf_likelihood == SurfLikelihood.MAYBE_SURF
    assert result.wind_quality == WindQuality.ONSHORE
    assert result.rating <= 4


def test_low_confidence_caps_firing_at_good(engine):
    observations = [
        make_obs(3.6, spot_id="testspot", source_id="windy-gfsWave", reliability=0.3,
                 kind=SourceKind.MODEL, period_s=7.0),
        make_obs(8.0, metric=MetricKind.WIND, spot_id="testspot", source_id="windy-gfs",
                 reliability=0.7, kind=SourceKind.MODEL, direction="W"),
    ]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    assert result.wave_height.confidence == pytest.approx(0.3)
    assert result.surf_likelihood == SurfLikelihood.GOOD
    assert result.is_low_confidence
    assert result.warnings[0].metric == "wave_height"


def test_flat_lake(engine):
    observations = [make_obs(0.3, spot_id="testspot", period_s=3.0)]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    assert result.surf_likelihood == SurfLikelihood.FLAT
    assert result.rating <= 2


def test_shipped_spot_thresholds_apply(engine):
    # 3.6 ft blend is Firing on defaults but below Stoney Point's firing_min once widened
    result = engine.aggregate("stoneypoint", firing_observations(spot_id="stoneypoint"))
    assert result.spot_name == "Stoney Point"
    assert result.surf_likelihood == SurfLikelihood.GOOD
    assert result.notes[0] == "Threshold confidence: validated"
    assert result.notes[1] == "Requires strong NE swell; exposed location"


def test_south_shore_north_wind_is_onshore(engine):
    observations = firing_observations(spot_id="cornucopia", wind_direction="N")
    result = engine.aggregate("cornucopia", observations)
    assert result.wind_exposure == WindExposure.ONSHORE
    assert result.surf_likelihood == SurfLikelihood.MAYBE_SURF


def test_south_shore_south_wind_is_offshore(engine):
    observations = firing_observations(spot_id="cornucopia", wind_direction="S")
    result = engine.aggregate("cornucopia", observations)
    assert result.wind_quality == WindQuality.CLEAN
    assert result.surf_likelihood == SurfLikelihood.FIRING


# =============================================================================
# FALLBACKS AND DEGRADATION
# =============================================================================


@pytest.mark.parametrize("bearing", [float("inf"), float("-inf"), float("nan"), "Infinity"])
def test_non_finite_wind_bearing_is_unknown_direction(engine, bearing):
    observations = [
        make_obs(4.0, spot_id="testspot", period_s=7.0),
        make_obs(8.0, metric=MetricKind.WIND, spot_id="testspot", source_id="ndbc-DULM5",
                 kind=SourceKind.STATION, direction=bearing),
    ]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    assert result.wind.direction is None
    assert result.wind_exposure is None
    assert result.wind_quality == WindQuality.CROSS_SHORE
    assert any("Wind direction unknown" in note for note in result.notes)


def test_missing_wind_degrades_gracefully(engine):
    observations = [make_obs(2.0, spot_id="testspot", period_s=6.0)]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    assert result.wind is None
    assert result.wind_quality == WindQuality.CROSS_SHORE
    assert result.surf_likelihood == SurfLikelihood.GOOD
    assert any("Wind direction unknown" in note for note in result.notes)
    assert result.conditions.endswith(", wind unavailable")


def test_model_only_is_marked(engine):
    observations = [
        make_obs(2.0, spot_id="testspot", source_id="windy-gfsWave", reliability=0.7,
                 kind=SourceKind.MODEL, period_s=6.0),
    ]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    assert result.wave_height.provenance == Provenance.MODEL_ONLY
    assert MODEL_ONLY_NOTE in result.notes


def test_conflicting_sources_are_labelled(engine):
    observations = [
        make_obs(3.0, spot_id="testspot", source_id="ndbc-45027", reliability=0.9, period_s=7.0),
        make_obs(6.0, spot_id="testspot", source_id="windy-gfsWave", reliability=0.7,
                 kind=SourceKind.MODEL, period_s=7.0),
    ]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    assert result.wave_height.conflict
    assert result.confidence <= 0.5
    assert WAVE_CONFLICT_NOTE in result.notes


def test_dropped_sources_are_reported(engine):
    observations = firing_observations() + [
        make_obs(9.0, spot_id="testspot", source_id="ndbc-45001", sensor_ok=False),
        make_obs(3.0, spot_id="testspot", source_id="noaa-marine", kind=SourceKind.MARINE_FORECAST,
                 reliability=0.6, timestamp=T0 - timedelta(hours=13)),
    ]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    reasons = {d.source_id: d.reason.value for d in result.wave_height.dropped_sources}
    assert reasons == {"ndbc-45001": "SENSOR_FLAGGED", "noaa-marine": "STALE"}
    assert "Excluded sources: ndbc-45001 (sensor_flagged), noaa-marine (stale)" in result.notes


def test_period_falls_back_to_dominant_swell(engine):
    observations = [
        make_obs(2.0, spot_id="testspot"),
        make_obs(1.8, metric=MetricKind.SWELL, spot_id="testspot", source_id="windy-gfsWave",
                 reliability=0.7, kind=SourceKind.MODEL, period_s=7.0, direction="NE"),
        make_obs(0.5, metric=MetricKind.SWELL, spot_id="testspot", source_id="windy-gfsWave-2",
                 reliability=0.7, kind=SourceKind.MODEL, period_s=3.0, direction="E"),
    ]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    assert result.wave_period.value == pytest.approx(7.0)
    assert result.wave_period.metric == MetricKind.SWELL
    assert [s.height_ft for s in result.swell] == [pytest.approx(1.8), pytest.approx(0.5)]


def test_water_temperature_in_celsius(engine):
    observations = firing_observations() + [
        make_obs(8.0, metric=MetricKind.WATER_TEMP, unit=Unit.CELSIUS, spot_id="testspot"),
    ]
    result = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    assert result.water_temp.value == pytest.approx(46.4)
    assert result.conditions.endswith("Water temperature 46°F")


def test_unknown_spot_uses_fallback_profile(engine, caplog):
    with caplog.at_level(logging.WARNING):
        result = engine.aggregate("nowhere", firing_observations(spot_id="nowhere"))
    assert result.spot_id == "nowhere"
    assert result.spot_name == "Duluth Area (Fallback)"
    assert "fallback" in caplog.text


def test_foreign_spot_observations_are_ignored(engine, caplog):
    clean = engine.aggregate("testspot", firing_observations(), DEFAULT_PROFILE)
    noisy_input = firing_observations() + [make_obs(9.0, spot_id="parkpoint", source_id="ndbc-45001")]
    with caplog.at_level(logging.WARNING):
        noisy = engine.aggregate("testspot", noisy_input, DEFAULT_PROFILE)
    assert noisy.wave_height == clean.wave_height
    assert noisy.surf_likelihood == clean.surf_likelihood
    assert "other spots" in caplog.text


# =============================================================================
# ERRORS
# =============================================================================


def test_empty_observations_raise_no_data(engine):
    with pytest.raises(NoDataError):
        engine.aggregate("stoneypoint", [])


def test_missing_wave_height_raises_no_data(engine):
    observations = [make_obs(8.0, metric=MetricKind.WIND, direction="W")]
    with pytest.raises(NoDataError) as exc_info:
        engine.aggregate("stoneypoint", observations)
    assert exc_info.value.metric == "WAVE_HEIGHT"


def test_all_wave_sources_unusable_raises_no_data(engine):
    observations = [make_obs(2.0, sensor_ok=False), make_obs(30.0, source_id="ndbc-45028")]
    with pytest.raises(NoDataError):
        engine.aggregate("stoneypoint", observations)


def test_only_foreign_observations_raise_no_data(engine):
    with pytest.raises(NoDataError):
        engine.aggregate("stoneypoint", [make_obs(2.0, spot_id="parkpoint")])


# =============================================================================
# DETERMINISM
# =============================================================================


def test_aggregate_twice_is_byte_identical(engine):
    first = engine.aggregate("testspot", firing_observations(), DEFAULT_PROFILE).to_json()
    second = engine.aggregate("testspot", firing_observations(), DEFAULT_PROFILE).to_json()
    assert first == second


def test_fresh_engines_agree(engine_config, profile_store):
    a = AggregationEngine(engine_config, profile_store).aggregate("stoneypoint", firing_observations("stoneypoint"))
    b = AggregationEngine(engine_config, profile_store).aggregate("stoneypoint", firing_observations("stoneypoint"))
    assert a.to_json() == b.to_json()


def test_input_order_does_not_matter(engine):
    observations = firing_observations()
    forward = engine.aggregate("testspot", observations, DEFAULT_PROFILE)
    backward = engine.aggregate("testspot", list(reversed(observations)), DEFAULT_PROFILE)
    assert forward.to_json() == backward.to_json()


def test_inputs_hash_tracks_profile(engine):
    other = make_profile(overrides={"firing_min": 3.5})
    a = engine.aggregate("testspot", firing_observations(), DEFAULT_PROFILE)
    b = engine.aggregate("testspot", firing_observations(), other)
    assert len(a.inputs_hash) == 64
    assert a.inputs_hash != b.inputs_hash


def test_to_json_is_valid_and_sorted(engine):
    text = engine.aggregate("testspot", firing_observations(), DEFAULT_PROFILE).to_json()
    data = json.loads(text)
    assert list(data) == sorted(data)
    assert data["surf_likelihood"] == "Firing"
    assert data["timestamp"] == "2024-10-15T12:00:00Z"


# =============================================================================
# TIMELINE / PROFILES / FACTORY
# =============================================================================


def test_timeline_aggregates_each_bucket(engine):
    later = T0 + timedelta(hours=3)
    observations = firing_observations() + [
        make_obs(0.3, spot_id="testspot", source_id="ndbc-45027", timestamp=later, period_s=3.0),
        make_obs(8.0, metric=MetricKind.WIND, spot_id="testspot", timestamp=T0 + timedelta(hours=6),
                 source_id="ndbc-DULM5", kind=SourceKind.STATION, direction="W"),
    ]
    timeline = engine.aggregate_timeline("testspot", observations, bucket_minutes=60, spot_profile=DEFAULT_PROFILE)
    assert [r.timestamp for r in timeline] == [T0, later]
    assert [r.surf_likelihood for r in timeline] == [SurfLikelihood.FIRING, SurfLikelihood.FLAT]


def test_timeline_rejects_bad_bucket(engine):
    with pytest.raises(ValueError):
        engine.aggregate_timeline("testspot", firing_observations(), bucket_minutes=0)


def test_swap_profile_store(engine):
    replacement = build_profile("duluth", {"NAME": "Replaced", "SHORE": "SOUTH_SHORE", "FALLBACK": True})
    previous = engine.swap_profile_store(SpotProfileStore({"duluth": replacement}))
    assert previous.is_known("stoneypoint")
    result = engine.aggregate("stoneypoint", firing_observations(spot_id="stoneypoint"))
    assert result.spot_name == "Replaced"
    assert engine.profile_store.get("x").shore_orientation == ShoreOrientation.SOUTH_SHORE


def test_engine_without_store_uses_builtin_fallback(engine_config):
    engine = AggregationEngine(engine_config)
    result = engine.aggregate("anywhere", firing_observations(spot_id="anywhere"))
    assert result.spot_name == "Duluth Area (Fallback)"


def test_create_engine_and_module_aggregate():
    engine = create_engine()
    assert len(engine.profile_store) == 15
    direct = engine.aggregate("parkpoint", firing_observations(spot_id="parkpoint"))
    shortcut = aggregate("parkpoint", firing_observations(spot_id="parkpoint"))
    assert direct.to_json() == shortcut.to_json()
