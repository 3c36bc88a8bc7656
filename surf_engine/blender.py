# =============================================================================
# SUPERIOR SURF ENGINE - BLENDER
# =============================================================================
#
# Merges same-kind observations from several providers into one value.
#
# ALGORITHM:
# 1. Normalize every value to the canonical unit (ft, mph, s, F)
# 2. Exclude sensor-flagged, stale and implausible observations
#    (kept as dropped_sources, never blended)
# 3. Reliability-weighted mean of the remaining values
# 4. Confidence from combined reliability and agreement between sources
# 5. Spread above the conflict threshold caps confidence at the ceiling
#
# Sources disagree -> lower confidence, never an exception.
# No usable source -> NoDataError, never an invented value.
#
# =============================================================================

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from models.data_models import (
    BlendedMetric,
    DroppedSource,
    Observation,
    WaveRange,
    ensure_utc,
)
from shared.enums import CompassOctant, DropReason, MetricKind, Provenance, Unit
from shared.exceptions import InvalidInputError, NoDataError
from shared.units import CANONICAL_UNITS

from .source_registry import SourceRegistry

logger = logging.getLogger(__name__)

COMPONENT_VALUE = "value"
COMPONENT_PERIOD = "period"
COMPONENT_GUST = "gust"

# Which metrics carry which secondary component
_COMPONENT_METRICS = {
    COMPONENT_VALUE: tuple(MetricKind),
    COMPONENT_PERIOD: (MetricKind.WAVE_HEIGHT, MetricKind.SWELL),
    COMPONENT_GUST: (MetricKind.WIND,),
}

DEFAULT_CONFLICT_THRESHOLDS = {
    "WAVE_HEIGHT": 2.0,
    "SWELL": 2.0,
    "WIND": 15.0,
    "GUST": 15.0,
    "PERIOD": 4.0,
    "WATER_TEMP": 10.0,
}

DEFAULT_PLAUSIBLE_RANGES = {
    "WAVE_HEIGHT": (0.0, 15.0),
    "SWELL": (0.0, 15.0),
    "WIND": (0.0, 100.0),
    "GUST": (0.0, 120.0),
    "PERIOD": (0.0, 20.0),
    "WATER_TEMP": (30.0, 85.0),
}


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class Blender:
    """
    Reliability-weighted blending of one metric for one spot.

    - Single usable source: confidence is that source's reliability
    - Several sources: confidence rises toward 1.0 as they agree and falls
      as they diverge
    - Spread above the metric's conflict threshold sets conflict=True and
      caps confidence at the conflict ceiling
    - Contributing sources are ordered by reliability, highest first

    Stateless apart from its configuration; safe to share.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, registry: Optional[SourceRegistry] = None):
        config = config or {}
        blender_cfg = config.get("BLENDER", {}) or {}

        self.conflict_thresholds = dict(DEFAULT_CONFLICT_THRESHOLDS)
        self.conflict_thresholds.update(blender_cfg.get("CONFLICT_THRESHOLDS", {}) or {})
        self.conflict_ceiling = float(blender_cfg.get("CONFLICT_CONFIDENCE_CEILING", 0.5))
        self.divergence_penalty = float(blender_cfg.get("DIVERGENCE_PENALTY", 0.3))
        self.range_half_width = float(blender_cfg.get("WAVE_RANGE_HALF_WIDTH_FT", 0.5))

        self.plausible_ranges = dict(DEFAULT_PLAUSIBLE_RANGES)
        for key, bounds in (blender_cfg.get("PLAUSIBLE_RANGES", {}) or {}).items():
            self.plausible_ranges[key] = (float(bounds[0]), float(bounds[1]))

        self.registry = registry if registry is not None else SourceRegistry(config)

    # -------------------------------------------------------------------------
    # PUBLIC API
    # -------------------------------------------------------------------------

    def blend(
        self,
        observations: Iterable[Observation],
        as_of: Optional[datetime] = None,
        component: str = COMPONENT_VALUE,
    ) -> BlendedMetric:
        """
        Blend observations of one metric into a BlendedMetric.

        Args:
            observations: Observations sharing spot_id and metric
            as_of: Time bucket being aggregated. Defaults to the latest
                observation timestamp.
            component: "value", "period" (wave height/swell) or "gust" (wind)

        Raises:
            InvalidInputError: mixed spots or metrics, unsupported component
            NoDataError: no observations, or every observation excluded
        """
        observations = list(observations)
        if not observations:
            raise NoDataError("No observations to blend")

        metric, spot_id = self._check_homogeneous(observations, component)
        usable, dropped = self.partition(observations, as_of=as_of, component=component)

        if not usable:
            reasons = ", ".join(f"{d.source_id}={d.reason.value}" for d in dropped) or "no values"
            raise NoDataError(
                f"No usable {self._label(metric, component)} observation ({reasons})",
                spot_id=spot_id,
                metric=metric.value,
            )

        # Highest reliability first, ties by source id
        usable.sort(key=lambda pair: (-pair[0].source_reliability, pair[0].source_id))
        values = [value for _, value in usable]
        reliabilities = [obs.source_reliability for obs, _ in usable]

        value = self._weighted_mean(values, reliabilities)
        spread = max(values) - min(values)
        threshold = float(self.conflict_thresholds[self._key(metric, component)])
        conflict = len(usable) > 1 and spread > threshold
        confidence = self._confidence(reliabilities, spread, threshold)
        if conflict:
            confidence = min(confidence, self.conflict_ceiling)

        value_range = None
        if metric == MetricKind.WAVE_HEIGHT and component == COMPONENT_VALUE:
            value_range = self._wave_range(value, values)

        direction = None
        if component == COMPONENT_VALUE:
            direction = self._dominant_direction([obs for obs, _ in usable])

        contributing = tuple(obs.source_id for obs, _ in usable)
        result = BlendedMetric(
            metric=metric,
            component=component,
            value=value,
            unit=Unit.SECONDS if component == COMPONENT_PERIOD else CANONICAL_UNITS[metric],
            confidence=_clamp(confidence),
            contributing_sources=contributing,
            conflict=conflict,
            spread=spread,
            provenance=self._provenance([obs for obs, _ in usable]),
            dropped_sources=tuple(dropped),
            value_range=value_range,
            direction=direction,
        )

        logger.debug(
            f"Blended {self._label(metric, component)} for {spot_id} | value={value:.2f} | "
            f"confidence={result.confidence:.3f} | conflict={conflict} | sources={list(contributing)}"
        )
        return result

    def partition(
        self,
        observations: Sequence[Observation],
        as_of: Optional[datetime] = None,
        component: str = COMPONENT_VALUE,
    ) -> Tuple[List[Tuple[Observation, float]], List[DroppedSource]]:
        """
        Split observations into usable (observation, canonical value) pairs
        and dropped sources.

        Observations that do not carry the requested component (e.g. no
        period) are neither usable nor dropped. When a source reported more
        than once, only its report closest to as_of is considered.
        """
        if not observations:
            return [], []
        if as_of is None:
            as_of = max(o.timestamp for o in observations)
        as_of = ensure_utc(as_of)

        metric = observations[0].metric
        low, high = self.plausible_ranges[self._key(metric, component)]

        usable: List[Tuple[Observation, float]] = []
        dropped: List[DroppedSource] = []
        for obs in self._latest_per_source(observations, as_of):
            value = self._component_value(obs, component)
            if value is None:
                continue
            if not obs.sensor_ok:
                dropped.append(DroppedSource(obs.source_id, DropReason.SENSOR_FLAGGED, "sensor flagged by provider"))
            elif self.registry.is_stale(obs, as_of):
                minutes = abs(as_of - obs.timestamp).total_seconds() / 60.0
                dropped.append(DroppedSource(
                    obs.source_id, DropReason.STALE, f"{minutes:.0f} min from bucket",
                ))
            elif not (low <= value <= high):
                dropped.append(DroppedSource(
                    obs.source_id, DropReason.IMPLAUSIBLE, f"{value:.2f} outside [{low:g}, {high:g}]",
                ))
            else:
                usable.append((obs, value))

        dropped.sort(key=lambda d: (d.source_id, d.reason.value))
        for d in dropped:
            logger.debug(f"Dropped {d.source_id} from {metric.value} blend: {d.reason.value} ({d.detail})")
        return usable, dropped

    # -------------------------------------------------------------------------
    # INTERNALS
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_homogeneous(observations: Sequence[Observation], component: str) -> Tuple[MetricKind, str]:
        spot_ids = sorted({o.spot_id for o in observations})
        if len(spot_ids) > 1:
            raise InvalidInputError(f"Cannot blend observations of different spots: {spot_ids}")
        metrics = sorted({o.metric.value for o in observations})
        if len(metrics) > 1:
            raise InvalidInputError(f"Cannot blend different metric kinds: {metrics}", spot_ids[0])

        metric = observations[0].metric
        if component not in _COMPONENT_METRICS:
            raise InvalidInputError(f"Unknown blend component: {component!r}", spot_ids[0])
        if metric not in _COMPONENT_METRICS[component]:
            raise InvalidInputError(f"{metric.value} observations have no {component} component", spot_ids[0])
        return metric, spot_ids[0]

    @staticmethod
    def _latest_per_source(observations: Sequence[Observation], as_of: datetime) -> List[Observation]:
        best: Dict[str, Observation] = {}
        for obs in observations:
            current = best.get(obs.source_id)
            if current is None or Blender._closer(obs, current, as_of):
                best[obs.source_id] = obs
        return [best[source_id] for source_id in sorted(best)]

    @staticmethod
    def _closer(candidate: Observation, current: Observation, as_of: datetime) -> bool:
        a = (abs(as_of - candidate.timestamp), -candidate.timestamp.timestamp(), candidate.value)
        b = (abs(as_of - current.timestamp), -current.timestamp.timestamp(), current.value)
        return a < b

    @staticmethod
    def _component_value(obs: Observation, component: str) -> Optional[float]:
        if component == COMPONENT_PERIOD:
            return None if obs.period_s is None else float(obs.period_s)
        if component == COMPONENT_GUST:
            return obs.canonical_gust
        return obs.canonical_value

    @staticmethod
    def _key(metric: MetricKind, component: str) -> str:
        if component == COMPONENT_PERIOD:
            return "PERIOD"
        if component == COMPONENT_GUST:
            return "GUST"
        return metric.value

    @staticmethod
    def _label(metric: MetricKind, component: str) -> str:
        if component == COMPONENT_VALUE:
            return metric.value
        return f"{metric.value}.{component}"

    @staticmethod
    def _weighted_mean(values: List[float], weights: List[float]) -> float:
        total = sum(weights)
        if total <= 0:
            return sum(values) / len(values)
        return sum(v * w for v, w in zip(values, weights)) / total

    def _confidence(self, reliabilities: List[float], spread: float, threshold: float) -> float:
        if len(reliabilities) == 1:
            return reliabilities[0]

        agreement = _clamp(1.0 - spread / threshold) if threshold > 0 else (1.0 if spread == 0 else 0.0)

        # Chance that at least one source is right
        miss = 1.0
        for r in reliabilities:
            miss *= (1.0 - r)
        combined = 1.0 - miss

        mean_r = self._weighted_mean(reliabilities, reliabilities)
        return combined * agreement + mean_r * (1.0 - agreement) * (1.0 - self.divergence_penalty)

    def _wave_range(self, value: float, values: List[float]) -> WaveRange:
        low = min(min(values), value - self.range_half_width)
        high = max(max(values), value + self.range_half_width)
        return WaveRange(max(0.0, low), max(0.0, high))

    @staticmethod
    def _dominant_direction(observations: List[Observation]) -> Optional[CompassOctant]:
        """
        Octant with the largest summed reliability. Ties go to the octant of
        the most reliable source (observations arrive sorted by reliability).
        """
        weights: Dict[CompassOctant, float] = {}
        for obs in observations:
            octant = obs.octant
            if octant is not None:
                weights[octant] = weights.get(octant, 0.0) + obs.source_reliability
        if not weights:
            return None

        best = max(weights.values())
        tied = {o for o, w in weights.items() if abs(w - best) < 1e-9}
        for obs in observations:
            if obs.octant in tied:
                return obs.octant
        return None

    @staticmethod
    def _provenance(observations: List[Observation]) -> Provenance:
        authoritative = [obs.is_authoritative for obs in observations]
        if all(authoritative):
            return Provenance.OBSERVED
        if any(authoritative):
            return Provenance.BLENDED
        return Provenance.MODEL_ONLY
