# =============================================================================
# SUPERIOR SURF ENGINE
# Module: models/data_models.py
# Purpose: Define all data structures flowing through the engine
# =============================================================================
#
# All data models are:
# - Immutable after creation (frozen dataclasses, tuples instead of lists)
# - Fully serializable to JSON via to_dict()
# - Free of clock or random state, so equal inputs give equal outputs
#
# FLOW:
#   Observation (provider adapters) -> BlendedMetric (Blender)
#   -> AggregatedConditions (Aggregation facade)
#
# =============================================================================

import json
import math
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Optional, Tuple, Dict, Any, Mapping

from shared.enums import (
    CompassOctant,
    DropReason,
    MetricKind,
    Provenance,
    ShoreOrientation,
    SourceKind,
    SurfLikelihood,
    ThresholdConfidence,
    Unit,
    WindExposure,
    WindQuality,
    octant_order,
)
from shared.exceptions import ConfigurationError, InvalidInputError
from shared.units import (
    ACCEPTED_UNITS,
    CANONICAL_UNITS,
    normalize_direction,
    speed_to_canonical,
    to_canonical,
)


def ensure_utc(ts: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_timestamp(value) -> datetime:
    """Parse an ISO8601 timestamp (a trailing Z is accepted)."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError as e:
        raise InvalidInputError(f"Invalid timestamp: {value!r}") from e


def format_timestamp(ts: datetime) -> str:
    return ensure_utc(ts).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# OBSERVATION
# =============================================================================


@dataclass(frozen=True)
class Observation:
    """
    One provider's report of one metric for one spot and time.

    Created by provider adapters (outside this package), consumed only by
    the Blender.

    FIELDS:
    - value: primary value (height, wind speed or water temperature) in `unit`
    - source_reliability: provider-declared static reliability, 0..1
    - source_kind: BUOY/STATION are authoritative, MODEL/MARINE_FORECAST not
    - period_s: dominant period for WAVE_HEIGHT and SWELL observations
    - direction: compass name, word or bearing in degrees ("from" direction)
    - gust: wind gust, same unit as `value`
    - sensor_ok: False when the provider flags the sensor out-of-water/damaged
    """
    spot_id: str
    timestamp: datetime
    metric: MetricKind
    value: float
    unit: Unit
    source_id: str
    source_reliability: float
    source_kind: SourceKind = SourceKind.MODEL
    period_s: Optional[float] = None
    direction: Optional[Any] = None
    gust: Optional[float] = None
    sensor_ok: bool = True

    def __post_init__(self):
        """Validate and normalize observation fields."""
        if not self.spot_id:
            raise InvalidInputError("Observation requires a spot_id")
        if not self.source_id:
            raise InvalidInputError("Observation requires a source_id", self.spot_id)
        if not isinstance(self.metric, MetricKind):
            raise InvalidInputError(
                f"metric must be MetricKind, got {type(self.metric)}", self.spot_id
            )
        if not isinstance(self.source_kind, SourceKind):
            raise InvalidInputError(
                f"source_kind must be SourceKind, got {type(self.source_kind)}", self.spot_id
            )

        try:
            unit = Unit.parse(self.unit)
        except ValueError as e:
            raise InvalidInputError(str(e), self.spot_id) from e
        if unit not in ACCEPTED_UNITS[self.metric]:
            raise InvalidInputError(
                f"Unit {unit.value} not valid for {self.metric.value}", self.spot_id
            )
        object.__setattr__(self, "unit", unit)

        if not isinstance(self.timestamp, datetime):
            raise InvalidInputError("timestamp must be a datetime", self.spot_id)
        object.__setattr__(self, "timestamp", ensure_utc(self.timestamp))

        if not isinstance(self.value, (int, float)) or not math.isfinite(self.value):
            raise InvalidInputError(
                f"value must be a finite number, got {self.value!r}", self.spot_id
            )
        if not (0.0 <= self.source_reliability <= 1.0):
            raise InvalidInputError(
                f"source_reliability must be in [0, 1], got {self.source_reliability}",
                self.spot_id,
            )
        for name in ("period_s", "gust"):
            extra = getattr(self, name)
            if extra is not None and (not isinstance(extra, (int, float)) or not math.isfinite(extra)):
                raise InvalidInputError(f"{name} must be a finite number, got {extra!r}", self.spot_id)

    @property
    def canonical_value(self) -> float:
        """Value in the engine's canonical unit (ft, mph or F)."""
        return to_canonical(float(self.value), self.unit)

    @property
    def canonical_gust(self) -> Optional[float]:
        return speed_to_canonical(self.gust, self.unit)

    @property
    def canonical_unit(self) -> Unit:
        return CANONICAL_UNITS[self.metric]

    @property
    def octant(self) -> Optional[CompassOctant]:
        """Direction reduced to an octant, None when unknown."""
        return normalize_direction(self.direction)

    @property
    def is_authoritative(self) -> bool:
        return self.source_kind.is_authoritative

    def to_dict(self) -> Dict[str, Any]:
        octant = self.octant
        return {
            "spot_id": self.spot_id,
            "timestamp": format_timestamp(self.timestamp),
            "metric": self.metric.value,
            "value": self.value,
            "unit": self.unit.value,
            "source_id": self.source_id,
            "source_reliability": self.source_reliability,
            "source_kind": self.source_kind.value,
            "period_s": self.period_s,
            "direction": octant.value if octant else None,
            "gust": self.gust,
            "sensor_ok": self.sensor_ok,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Observation":
        """
        Build an observation from a JSON-like mapping.

        Enum fields accept their names or values; timestamps ISO8601 strings.
        """
        try:
            metric = data["metric"]
            if not isinstance(metric, MetricKind):
                metric = MetricKind[str(metric).strip().upper()]
            kind = data.get("source_kind", SourceKind.MODEL)
            if not isinstance(kind, SourceKind):
                kind = SourceKind[str(kind).strip().upper()]
            return cls(
                spot_id=data["spot_id"],
                timestamp=parse_timestamp(data["timestamp"]),
                metric=metric,
                value=data["value"],
                unit=data["unit"],
                source_id=data["source_id"],
                source_reliability=float(data["source_reliability"]),
                source_kind=kind,
                period_s=data.get("period_s"),
                direction=data.get("direction"),
                gust=data.get("gust"),
                sensor_ok=bool(data.get("sensor_ok", True)),
            )
        except InvalidInputError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"Observation is missing or has invalid field: {e}") from e


# =============================================================================
# BLENDED VALUES
# =============================================================================


@dataclass(frozen=True)
class WaveRange:
    """Closed interval of wave heights in feet."""
    min: float
    max: float

    def __post_init__(self):
        if self.min > self.max:
            raise InvalidInputError(f"WaveRange min {self.min} > max {self.max}")

    def to_dict(self) -> Dict[str, float]:
        return {"min": round(self.min, 2), "max": round(self.max, 2)}


@dataclass(frozen=True)
class DroppedSource:
    """An observation excluded from a blend, kept for diagnostics."""
    source_id: str
    reason: DropReason
    detail: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"source_id": self.source_id, "reason": self.reason.value, "detail": self.detail}


@dataclass(frozen=True)
class BlendedMetric:
    """
    A single reconciled value derived from several providers.

    `contributing_sources` is ordered by reliability (highest first), not
    by arrival, so a consumer can explain where the number came from.
    `conflict` means the sources disagreed beyond tolerance; the value is
    still the best estimate but `confidence` is capped.
    """
    metric: MetricKind
    component: str
    value: float
    unit: Unit
    confidence: float
    contributing_sources: Tuple[str, ...]
    conflict: bool = False
    spread: float = 0.0
    provenance: Provenance = Provenance.MODEL_ONLY
    dropped_sources: Tuple[DroppedSource, ...] = ()
    value_range: Optional[WaveRange] = None
    direction: Optional[CompassOctant] = None

    def __post_init__(self):
        if not (0.0 <= self.confidence <= 1.0):
            raise InvalidInputError(f"confidence must be in [0, 1], got {self.confidence}")

    @property
    def range(self) -> WaveRange:
        """The value as a range; a point range when no range was blended."""
        if self.value_range is not None:
            return self.value_range
        return WaveRange(self.value, self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric.value,
            "component": self.component,
            "value": round(self.value, 2),
            "range": self.value_range.to_dict() if self.value_range else None,
            "unit": self.unit.value,
            "confidence": round(self.confidence, 3),
            "contributing_sources": list(self.contributing_sources),
            "conflict": self.conflict,
            "spread": round(self.spread, 2),
            "provenance": self.provenance.value,
            "dropped_sources": [d.to_dict() for d in self.dropped_sources],
            "direction": self.direction.value if self.direction else None,
        }


@dataclass(frozen=True)
class SwellReading:
    """One reported swell train, in canonical units."""
    height_ft: float
    period_s: Optional[float]
    direction: Optional[CompassOctant]
    source_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "height_ft": round(self.height_ft, 2),
            "period_s": self.period_s,
            "direction": self.direction.value if self.direction else None,
            "source_id": self.source_id,
        }


@dataclass(frozen=True)
class LowConfidenceWarning:
    """
    Not a failure: a label the caller can render as a "low confidence" badge.
    """
    metric: str
    confidence: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"metric": self.metric, "confidence": round(self.confidence, 3), "reason": self.reason}


# =============================================================================
# SPOT CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class SpotSurfThresholds:
    """
    Per-spot classification thresholds.

    Wave heights in feet, periods in seconds, wind in mph.
    INVARIANT: flat_max <= maybe_min <= good_min <= firing_min
    """
    flat_max: float = 0.5
    maybe_min: float = 0.5
    maybe_period_min: float = 4.0
    good_min: float = 1.5
    good_period_min: float = 5.0
    good_wind_max: float = 12.0
    firing_min: float = 3.0
    firing_period_min: float = 6.0
    firing_wind_max: float = 12.0
    threshold_confidence: Optional[ThresholdConfidence] = None
    notes: Optional[str] = None

    def __post_init__(self):
        for f in fields(self):
            if f.name in ("threshold_confidence", "notes"):
                continue
            value = getattr(self, f.name)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
                raise ConfigurationError(f"Threshold {f.name} must be a non-negative number, got {value!r}")
        if not (self.flat_max <= self.maybe_min <= self.good_min <= self.firing_min):
            raise ConfigurationError(
                "Thresholds must satisfy flat_max <= maybe_min <= good_min <= firing_min, got "
                f"{self.flat_max} / {self.maybe_min} / {self.good_min} / {self.firing_min}"
            )

    @classmethod
    def numeric_field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name not in ("threshold_confidence", "notes"))

    def to_dict(self) -> Dict[str, Any]:
        data = {name: getattr(self, name) for name in self.numeric_field_names()}
        data["threshold_confidence"] = (
            self.threshold_confidence.value if self.threshold_confidence else None
        )
        data["notes"] = self.notes
        return data


DEFAULT_SURF_THRESHOLDS = SpotSurfThresholds()


def merge_thresholds(
    overrides: Optional[Mapping[str, Any]],
    base: SpotSurfThresholds = DEFAULT_SURF_THRESHOLDS,
) -> SpotSurfThresholds:
    """
    Merge partial per-spot overrides onto a base threshold profile.

    Every field not named in `overrides` keeps the base value unchanged.
    Unknown keys are rejected rather than silently ignored.

    Raises:
        ConfigurationError: unknown key, bad value, or broken invariant
    """
    if not overrides:
        return base
    known = {f.name for f in fields(SpotSurfThresholds)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigurationError(f"Unknown threshold keys: {', '.join(unknown)}")

    changes = dict(overrides)
    if "threshold_confidence" in changes:
        try:
            changes["threshold_confidence"] = ThresholdConfidence.parse(changes["threshold_confidence"])
        except (KeyError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid threshold_confidence: {overrides['threshold_confidence']!r}"
            ) from e
    for name in SpotSurfThresholds.numeric_field_names():
        if name in changes:
            try:
                changes[name] = float(changes[name])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Threshold {name} must be numeric, got {changes[name]!r}") from e
    return replace(base, **changes)


@dataclass(frozen=True)
class SpotProfile:
    """
    Static configuration of one surf break.

    INVARIANT: wind_exposure maps every CompassOctant to exactly one
    WindExposure (checked on construction).
    """
    spot_id: str
    name: str
    shore_orientation: ShoreOrientation
    thresholds: SpotSurfThresholds
    wind_exposure: Mapping[CompassOctant, WindExposure]
    is_fallback: bool = False

    def __post_init__(self):
        missing = [o.value for o in octant_order() if o not in self.wind_exposure]
        if missing:
            raise ConfigurationError(
                f"Wind exposure for {self.spot_id} does not cover: {', '.join(missing)}"
            )
        for octant, exposure in self.wind_exposure.items():
            if not isinstance(octant, CompassOctant) or not isinstance(exposure, WindExposure):
                raise ConfigurationError(
                    f"Wind exposure for {self.spot_id} has invalid entry {octant!r}: {exposure!r}"
                )
        # Freeze the mapping so the profile stays read-only
        object.__setattr__(self, "wind_exposure", MappingProxyType(dict(self.wind_exposure)))

    def exposure_for(self, octant: CompassOctant) -> WindExposure:
        return self.wind_exposure[octant]

    def octants_with(self, exposure: WindExposure) -> Tuple[CompassOctant, ...]:
        return tuple(o for o in octant_order() if self.wind_exposure[o] == exposure)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spot_id": self.spot_id,
            "name": self.name,
            "shore_orientation": self.shore_orientation.value,
            "thresholds": self.thresholds.to_dict(),
            "wind_exposure": {o.value: self.wind_exposure[o].value for o in octant_order()},
            "is_fallback": self.is_fallback,
        }


# =============================================================================
# ENGINE OUTPUT
# =============================================================================


@dataclass(frozen=True)
class AggregatedConditions:
    """
    The engine's sole output for one (spot, time bucket).

    Created fresh per request and never mutated. The caller owns display
    and caching.
    """
    spot_id: str
    spot_name: str
    timestamp: datetime
    wave_height: BlendedMetric
    wave_period: Optional[BlendedMetric]
    wind: Optional[BlendedMetric]
    wind_quality: WindQuality
    wind_exposure: Optional[WindExposure]
    swell: Tuple[SwellReading, ...]
    water_temp: Optional[BlendedMetric]
    rating: int
    surf_likelihood: SurfLikelihood
    surf_report: str
    conditions: str
    recommendations: Tuple[str, ...]
    notes: Tuple[str, ...]
    warnings: Tuple[LowConfidenceWarning, ...] = ()
    inputs_hash: str = ""

    def __post_init__(self):
        if not (1 <= self.rating <= 10):
            raise InvalidInputError(f"rating must be in [1, 10], got {self.rating}", self.spot_id)

    @property
    def confidence(self) -> float:
        """Headline confidence: that of the blended wave height."""
        return self.wave_height.confidence

    @property
    def is_low_confidence(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "spot_id": self.spot_id,
            "spot_name": self.spot_name,
            "timestamp": format_timestamp(self.timestamp),
            "wave_height": self.wave_height.to_dict(),
            "wave_period": self.wave_period.to_dict() if self.wave_period else None,
            "wind": self.wind.to_dict() if self.wind else None,
            "wind_quality": self.wind_quality.value,
            "wind_exposure": self.wind_exposure.value if self.wind_exposure else None,
            "swell": [s.to_dict() for s in self.swell],
            "water_temp": self.water_temp.to_dict() if self.water_temp else None,
            "rating": self.rating,
            "surf_likelihood": self.surf_likelihood.value,
            "surf_report": self.surf_report,
            "conditions": self.conditions,
            "recommendations": list(self.recommendations),
            "notes": list(self.notes),
            "warnings": [w.to_dict() for w in self.warnings],
            "inputs_hash": self.inputs_hash,
        }

    def to_json(self) -> str:
        """Deterministic JSON (sorted keys)."""
        return json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)
