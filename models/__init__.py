# =============================================================================
# SUPERIOR SURF ENGINE
# Module: models/__init__.py
# Purpose: Package initialization for data models
# =============================================================================
#
# This module exposes all data structures used throughout the engine.
# No network calls. No clock. No randomness.
#
# =============================================================================

from .data_models import (
    Observation,
    WaveRange,
    DroppedSource,
    BlendedMetric,
    SwellReading,
    LowConfidenceWarning,
    SpotSurfThresholds,
    DEFAULT_SURF_THRESHOLDS,
    merge_thresholds,
    SpotProfile,
    AggregatedConditions,
    ensure_utc,
    parse_timestamp,
    format_timestamp,
)

__all__ = [
    "Observation",
    "WaveRange",
    "DroppedSource",
    "BlendedMetric",
    "SwellReading",
    "LowConfidenceWarning",
    "SpotSurfThresholds",
    "DEFAULT_SURF_THRESHOLDS",
    "merge_thresholds",
    "SpotProfile",
    "AggregatedConditions",
    "ensure_utc",
    "parse_timestamp",
    "format_timestamp",
]
