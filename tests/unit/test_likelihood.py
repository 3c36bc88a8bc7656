"""
UNIT TESTS - LIKELIHOOD CLASSIFIER AND RATING
==============================================
Tests for surf_engine/likelihood.py
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from models.data_models import DEFAULT_SURF_THRESHOLDS, BlendedMetric, WaveRange, merge_thresholds
from shared.enums import MetricKind, SurfLikelihood, Unit, WindQuality
from surf_engine.likelihood import LikelihoodClassifier, compute_rating


def wave(low, high, confidence=0.9):
    return BlendedMetric(
        metric=MetricKind.WAVE_HEIGHT,
        component="value",
        value=(low + high) / 2.0,
        unit=Unit.FEET,
        confidence=confidence,
        contributing_sources=("ndbc-45027",),
        value_range=WaveRange(low, high),
    )


@pytest.fixture
def classifier(engine_config):
    return LikelihoodClassifier(engine_config)


T = DEFAULT_SURF_THRESHOLDS


# =============================================================================
# RULE ORDER
# =============================================================================


@pytest.mark.parametrize("quality", list(WindQuality))
@pytest.mark.parametrize("period", [None, 3.0, 12.0])
def test_below_flat_max_is_flat_regardless_of_wind_and_period(classifier, quality, period):
    result = classifier.classify(wave(0.0, 0.3), period, quality, T, wind_speed=5.0)
    assert result.likelihood == SurfLikelihood.FLAT


def test_firing_with_offshore_light_wind(classifier):
    result = classifier.classify(wave(3.2, 4.0), 7.0, WindQuality.CLEAN, T, wind_speed=8.0)
    assert result.likelihood == SurfLikelihood.FIRING
    assert not result.downgraded
    assert not result.capped


def test_onshore_downgrades_good_to_maybe_surf(classifier):
    result = classifier.classify(wave(3.2, 4.0), 7.0, WindQuality.ONSHORE, T, wind_speed=8.0)
    assert result.likelihood == SurfLikelihood.MAYBE_SURF
    assert result.downgraded


def test_strong_wind_blocks_firing_and_good(classifier):
    result = classifier.classify(wave(3.2, 4.0), 7.0, WindQuality.STRONG, T, wind_speed=25.0)
    assert result.likelihood == SurfLikelihood.MAYBE_SURF


def test_wind_above_firing_max_is_good(classifier):
    # Cross-shore label but speed above the firing gate
    result = classifier.classify(wave(3.2, 4.0), 7.0, WindQuality.CROSS_SHORE, T, wind_speed=13.0)
    assert result.likelihood == SurfLikelihood.GOOD


def test_unknown_wind_speed_cannot_fire(classifier):
    result = classifier.classify(wave(3.2, 4.0), 7.0, WindQuality.CROSS_SHORE, T, wind_speed=None)
    assert result.likelihood == SurfLikelihood.GOOD


def test_short_period_blocks_firing(classifier):
    result = classifier.classify(wave(3.2, 4.0), 5.5, WindQuality.CLEAN, T, wind_speed=8.0)
    assert result.likelihood == SurfLikelihood.GOOD


def test_good(classifier):
    result = classifier.classify(wave(1.6, 2.4), 5.0, WindQuality.CLEAN, T, wind_speed=6.0)
    assert result.likelihood == SurfLikelihood.GOOD


def test_maybe_surf(classifier):
    result = classifier.classify(wave(0.6, 1.2), 4.0, WindQuality.CROSS_SHORE, T, wind_speed=10.0)
    assert result.likelihood == SurfLikelihood.MAYBE_SURF


def test_short_period_small_waves_fall_to_flat(classifier):
    result = classifier.classify(wave(0.6, 1.2), 3.0, WindQuality.CLEAN, T, wind_speed=5.0)
    assert result.likelihood == SurfLikelihood.FLAT


def test_missing_period_fails_every_period_gate(classifier):
    result = classifier.classify(wave(3.2, 4.0), None, WindQuality.CLEAN, T, wind_speed=5.0)
    assert result.likelihood == SurfLikelihood.FLAT
    assert "period unknown" in result.reasons


def test_range_straddling_flat_max_is_not_flat_by_rule_one(classifier):
    # max >= flat_max, min < maybe_min: falls through to the default Flat
    result = classifier.classify(wave(0.2, 0.8), 6.0, WindQuality.CLEAN, T, wind_speed=5.0)
    assert result.likelihood == SurfLikelihood.FLAT
    assert result.reasons == ("below Maybe Surf thresholds",)


def test_wind_quality_never_upgrades(classifier):
    base = classifier.classify(wave(0.6, 1.2), 4.0, WindQuality.CROSS_SHORE, T, wind_speed=5.0)
    clean = classifier.classify(wave(0.6, 1.2), 4.0, WindQuality.CLEAN, T, wind_speed=5.0)
    assert clean.likelihood == base.likelihood


def test_spot_thresholds_are_applied(classifier):
    stoney = merge_thresholds({"good_min": 2.5, "firing_min": 3.5})
    result = classifier.classify(wave(3.2, 4.0), 7.0, WindQuality.CLEAN, stoney, wind_speed=8.0)
    assert result.likelihood == SurfLikelihood.GOOD


def test_period_accepts_blended_metric(classifier):
    period = BlendedMetric(
        metric=MetricKind.WAVE_HEIGHT, component="period", value=7.0, unit=Unit.SECONDS,
        confidence=0.9, contributing_sources=("a",),
    )
    result = classifier.classify(wave(3.2, 4.0), period, WindQuality.CLEAN, T, wind_speed=8.0)
    assert result.likelihood == SurfLikelihood.FIRING


# =============================================================================
# LOW CONFIDENCE CAP
# =============================================================================


def test_low_confidence_caps_firing_at_good(classifier):
    result = classifier.classify(wave(3.2, 4.0, confidence=0.3), 7.0, WindQuality.CLEAN, T, wind_speed=8.0)
    assert result.likelihood == SurfLikelihood.GOOD
    assert result.capped


def test_confidence_at_threshold_is_not_capped(classifier):
    result = classifier.classify(wave(3.2, 4.0, confidence=0.4), 7.0, WindQuality.CLEAN, T, wind_speed=8.0)
    assert result.likelihood == SurfLikelihood.FIRING


def test_low_confidence_does_not_touch_lower_tiers(classifier):
    result = classifier.classify(wave(1.6, 2.4, confidence=0.1), 5.0, WindQuality.CLEAN, T, wind_speed=6.0)
    assert result.likelihood == SurfLikelihood.GOOD
    assert not result.capped


def test_low_confidence_threshold_is_configurable():
    classifier = LikelihoodClassifier({"CLASSIFIER": {"LOW_CONFIDENCE_THRESHOLD": 0.95}})
    result = classifier.classify(wave(3.2, 4.0, confidence=0.9), 7.0, WindQuality.CLEAN, T, wind_speed=8.0)
    assert result.likelihood == SurfLikelihood.GOOD


# =============================================================================
# RATING
# =============================================================================


@pytest.mark.parametrize("height,expected", [
    (0.4, 1), (0.8, 2), (1.5, 4), (2.5, 6), (3.5, 8),
])
def test_rating_base_from_height(height, expected):
    rating = compute_rating(height, WindQuality.CROSS_SHORE, SurfLikelihood.FIRING, T)
    assert rating == expected


def test_rating_onshore_penalty():
    assert compute_rating(3.5, WindQuality.ONSHORE, SurfLikelihood.FIRING, T) == 4


def test_rating_strong_penalty():
    assert compute_rating(3.5, WindQuality.STRONG, SurfLikelihood.FIRING, T) == 6


def test_rating_clean_and_long_period_bonus():
    assert compute_rating(3.5, WindQuality.CLEAN, SurfLikelihood.FIRING, T, period=7.0) == 10


def test_rating_capped_by_likelihood():
    assert compute_rating(3.5, WindQuality.CLEAN, SurfLikelihood.MAYBE_SURF, T, period=7.0) == 4
    assert compute_rating(3.5, WindQuality.CLEAN, SurfLikelihood.FLAT, T) == 2


def test_rating_never_below_one():
    assert compute_rating(0.2, WindQuality.ONSHORE, SurfLikelihood.FLAT, T) == 1


def test_low_confidence_cap_is_recorded_in_reasons(classifier):
    result = classifier.classify(wave(3.2, 4.0, confidence=0.3), 7.0, WindQuality.CLEAN, T, wind_speed=8.0)
    assert result.reasons[-1].endswith("capped at Good")
    assert result.to_dict()["capped"] is True
