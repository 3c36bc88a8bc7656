# =============================================================================
# SUPERIOR SURF ENGINE - AGGREGATION FACADE
# =============================================================================
#
# Main entry point. One call per (spot, time bucket):
#
#   observations
#     -> Blender               (wave height, period, wind, gust, water temp)
#     -> WindQualityClassifier (spot exposure + wind thresholds)
#     -> LikelihoodClassifier  (spot thresholds, confidence cap, rating)
#     -> InsightGenerator      (report, notes, recommendations)
#     -> AggregatedConditions
#
# PROPERTIES:
# - Pure: no I/O, no clock, no randomness; configuration is read once by
#   create_engine() and never mutated
# - Wave height is required; wind, water temperature and swell are optional
# - NoDataError from the Blender propagates unchanged
#
# =============================================================================

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from models.data_models import (
    AggregatedConditions,
    BlendedMetric,
    DroppedSource,
    LowConfidenceWarning,
    Observation,
    SpotProfile,
    SwellReading,
    ensure_utc,
)
from shared.enums import DropReason, MetricKind
from shared.exceptions import NoDataError
from shared.logging_config import compute_hash

from .blender import COMPONENT_GUST, COMPONENT_PERIOD, COMPONENT_VALUE, Blender
from .config import config_hash, load_config
from .insight import InsightGenerator
from .likelihood import LikelihoodClassifier, compute_rating
from .source_registry import SourceRegistry
from .spot_profiles import SpotProfileStore, default_fallback_profile, load_spot_profiles
from .wind_quality import WindQualityClassifier

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class AggregationEngine:
    """
    Surf Conditions Aggregation Engine - Main Orchestrator.

    PROPERTIES:
    - Stateless per call: identical inputs give byte-identical output
    - The profile store is immutable; swap_profile_store() replaces it whole
    - Conflicts, dropped sources and unknown wind direction are absorbed into
      confidence, warnings and notes, never raised
    """

    VERSION = "1.0.0"

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        profile_store: Optional[SpotProfileStore] = None,
    ):
        """
        Args:
            config: Configuration dictionary from engine.yaml
            profile_store: Spot profiles. Defaults to a store holding only the
                built-in fallback profile.
        """
        self.config = config or {}
        if profile_store is None:
            fallback = default_fallback_profile()
            profile_store = SpotProfileStore({fallback.spot_id: fallback}, fallback_id=fallback.spot_id)
        self._profiles = profile_store

        self._registry = SourceRegistry(self.config)
        self._blender = Blender(self.config, registry=self._registry)
        self._wind_classifier = WindQualityClassifier()
        self._likelihood = LikelihoodClassifier(self.config)
        self._insight = InsightGenerator(self.config)

        self._config_hash = config_hash(self.config)
        logger.info(
            f"AggregationEngine initialized | version={self.VERSION} | "
            f"config_hash={self._config_hash} | spots={len(self._profiles)}"
        )

    @property
    def profile_store(self) -> SpotProfileStore:
        return self._profiles

    @property
    def config_hash(self) -> str:
        return self._config_hash

    def swap_profile_store(self, store: SpotProfileStore) -> SpotProfileStore:
        """Replace the whole profile table at once. Returns the previous store."""
        previous = self._profiles
        self._profiles = store
        logger.info(f"Spot profile store replaced | spots={len(store)}")
        return previous

    # -------------------------------------------------------------------------
    # MAIN ENTRY POINT
    # -------------------------------------------------------------------------

    def aggregate(
        self,
        spot_id: str,
        observations: Iterable[Observation],
        spot_profile: Optional[SpotProfile] = None,
        as_of: Optional[datetime] = None,
    ) -> AggregatedConditions:
        """
        Aggregate one spot's observations for one time bucket.

        Args:
            spot_id: Spot being aggregated
            observations: Observations from any number of providers
            spot_profile: Profile to use. If None, looked up in the store
                (unknown ids resolve to the fallback profile).
            as_of: Time bucket. Defaults to the latest observation timestamp.

        Raises:
            NoDataError: no observations, or no usable wave height
        """
        observations = list(observations)
        if not observations:
            raise NoDataError("No observations supplied", spot_id=spot_id)

        profile = spot_profile if spot_profile is not None else self._profiles.get(spot_id)

        own, foreign = self._split_foreign(spot_id, observations)
        if not own:
            raise NoDataError("No observations for this spot", spot_id=spot_id)

        as_of = ensure_utc(as_of) if as_of is not None else max(o.timestamp for o in own)

        by_metric: Dict[MetricKind, List[Observation]] = defaultdict(list)
        for obs in own:
            by_metric[obs.metric].append(obs)

        # 1. Blend
        wave_obs = by_metric.get(MetricKind.WAVE_HEIGHT, [])
        if not wave_obs:
            raise NoDataError("No wave height observation", spot_id=spot_id, metric=MetricKind.WAVE_HEIGHT.value)
        wave_height = self._blender.blend(wave_obs, as_of=as_of)
        dropped: List[DroppedSource] = list(foreign) + list(wave_height.dropped_sources)

        period, extra = self._optional_blend(wave_obs, as_of, COMPONENT_PERIOD)
        dropped += extra

        swell, swell_obs, extra = self._swell_readings(by_metric.get(MetricKind.SWELL, []), as_of)
        dropped += extra
        if period is None and swell_obs:
            # Dominant swell train supplies the period
            period, _ = self._optional_blend([swell_obs[0]], as_of, COMPONENT_PERIOD)

        wind_obs = by_metric.get(MetricKind.WIND, [])
        wind, extra = self._optional_blend(wind_obs, as_of, COMPONENT_VALUE)
        dropped += extra
        gust, _ = self._optional_blend(wind_obs, as_of, COMPONENT_GUST)

        water_temp, extra = self._optional_blend(by_metric.get(MetricKind.WATER_TEMP, []), as_of, COMPONENT_VALUE)
        dropped += extra

        # 2. Wind quality
        assessment = self._wind_classifier.classify(
            profile,
            wind.direction if wind is not None else None,
            wind.value if wind is not None else None,
        )

        # 3. Likelihood and rating
        thresholds = profile.thresholds
        result = self._likelihood.classify(
            wave_height, period, assessment.quality, thresholds,
            wind_speed=wind.value if wind is not None else None,
        )
        rating = compute_rating(
            wave_height.value, assessment.quality, result.likelihood, thresholds,
            period=period.value if period is not None else None,
        )

        # 4. Insight
        warnings = self._warnings(wave_height, wind)
        insight = self._insight.generate(
            result, profile, wave_height, assessment,
            period=period, wind=wind, gust=gust, water_temp=water_temp,
            dropped=dropped, warnings=warnings,
        )

        conditions = AggregatedConditions(
            spot_id=spot_id,
            spot_name=profile.name,
            timestamp=as_of,
            wave_height=wave_height,
            wave_period=period,
            wind=wind,
            wind_quality=assessment.quality,
            wind_exposure=assessment.exposure,
            swell=tuple(swell),
            water_temp=water_temp,
            rating=rating,
            surf_likelihood=result.likelihood,
            surf_report=insight.surf_report,
            conditions=insight.conditions,
            recommendations=insight.recommendations,
            notes=insight.notes,
            warnings=tuple(warnings),
            inputs_hash=self.inputs_hash(spot_id, observations, profile, as_of),
        )

        logger.info(
            f"Aggregated {spot_id} | likelihood={result.likelihood.value} | rating={rating} | "
            f"confidence={wave_height.confidence:.2f} | sources={len(wave_height.contributing_sources)} | "
            f"dropped={len(dropped)}"
        )
        return conditions

    def aggregate_timeline(
        self,
        spot_id: str,
        observations: Iterable[Observation],
        bucket_minutes: int = 60,
        spot_profile: Optional[SpotProfile] = None,
    ) -> List[AggregatedConditions]:
        """
        Aggregate a forecast series bucket by bucket.

        Observations are grouped into buckets of `bucket_minutes` aligned to
        the epoch; each bucket is aggregated as of its start. Buckets without
        a usable wave height are skipped.
        """
        if bucket_minutes <= 0:
            raise ValueError(f"bucket_minutes must be positive, got {bucket_minutes}")
        width = timedelta(minutes=bucket_minutes)

        buckets: Dict[datetime, List[Observation]] = defaultdict(list)
        for obs in observations:
            index = (obs.timestamp - _EPOCH) // width
            buckets[_EPOCH + index * width].append(obs)

        timeline = []
        for start in sorted(buckets):
            try:
                timeline.append(self.aggregate(spot_id, buckets[start], spot_profile, as_of=start))
            except NoDataError as e:
                logger.info(f"Skipping bucket {start.isoformat()} for {spot_id}: {e}")
        return timeline

    # -------------------------------------------------------------------------
    # INTERNALS
    # -------------------------------------------------------------------------

    @staticmethod
    def _split_foreign(
        spot_id: str,
        observations: Sequence[Observation],
    ) -> Tuple[List[Observation], List[DroppedSource]]:
        own = [o for o in observations if o.spot_id == spot_id]
        foreign = sorted(
            {DroppedSource(o.source_id, DropReason.FOREIGN_SPOT, f"reported for {o.spot_id}")
             for o in observations if o.spot_id != spot_id},
            key=lambda d: (d.source_id, d.detail),
        )
        if foreign:
            logger.warning(
                f"Ignoring {len(observations) - len(own)} observation(s) for other spots "
                f"while aggregating {spot_id}"
            )
        return own, foreign

    def _optional_blend(
        self,
        observations: Sequence[Observation],
        as_of: datetime,
        component: str,
    ) -> Tuple[Optional[BlendedMetric], List[DroppedSource]]:
        """Blend an optional metric; no usable data gives (None, dropped)."""
        if not observations:
            return None, []
        try:
            blended = self._blender.blend(observations, as_of=as_of, component=component)
        except NoDataError as e:
            logger.debug(f"Optional {component} blend unavailable: {e}")
            _, dropped = self._blender.partition(observations, as_of=as_of, component=component)
            return None, dropped
        if component == COMPONENT_VALUE:
            return blended, list(blended.dropped_sources)
        return blended, []

    def _swell_readings(
        self,
        observations: Sequence[Observation],
        as_of: datetime,
    ) -> Tuple[List[SwellReading], List[Observation], List[DroppedSource]]:
        """Usable swell trains, largest first."""
        if not observations:
            return [], [], []
        usable, dropped = self._blender.partition(observations, as_of=as_of)
        usable.sort(key=lambda pair: (-pair[1], pair[0].source_id))
        readings = [
            SwellReading(
                height_ft=height,
                period_s=obs.period_s,
                direction=obs.octant,
                source_id=obs.source_id,
            )
            for obs, height in usable
        ]
        return readings, [obs for obs, _ in usable], dropped

    def _warnings(
        self,
        wave_height: BlendedMetric,
        wind: Optional[BlendedMetric],
    ) -> List[LowConfidenceWarning]:
        threshold = self._likelihood.low_confidence_threshold
        warnings = []
        for name, metric in (("wave_height", wave_height), ("wind", wind)):
            if metric is None or metric.confidence >= threshold:
                continue
            if metric.conflict:
                reason = "sources disagree"
            elif len(metric.contributing_sources) == 1:
                reason = f"single low-reliability source ({metric.contributing_sources[0]})"
            else:
                reason = "low source reliability"
            warnings.append(LowConfidenceWarning(metric=name, confidence=metric.confidence, reason=reason))
        return warnings

    @staticmethod
    def inputs_hash(
        spot_id: str,
        observations: Sequence[Observation],
        profile: SpotProfile,
        as_of: datetime,
    ) -> str:
        """SHA-256 over the canonical form of everything the result depends on."""
        payload = {
            "spot_id": spot_id,
            "as_of": ensure_utc(as_of).isoformat(),
            "observations": sorted(
                (o.to_dict() for o in observations),
                key=lambda d: compute_hash(d),
            ),
            "profile": profile.to_dict(),
        }
        return compute_hash(payload)


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================


def create_engine(
    config_path: Optional[str] = None,
    spots_path: Optional[str] = None,
) -> AggregationEngine:
    """
    Create a configured AggregationEngine instance.

    This is the RECOMMENDED way to instantiate the engine.

    Args:
        config_path: Path to engine.yaml. If None, uses SURF_ENGINE_CONFIG or default.
        spots_path: Path to spots.yaml. If None, uses SURF_SPOTS_CONFIG or default.
    """
    config = load_config(config_path)
    store = load_spot_profiles(spots_path)
    return AggregationEngine(config=config, profile_store=store)


@lru_cache(maxsize=1)
def _default_engine() -> AggregationEngine:
    return create_engine()


def aggregate(
    spot_id: str,
    observations: Iterable[Observation],
    spot_profile: Optional[SpotProfile] = None,
    as_of: Optional[datetime] = None,
) -> AggregatedConditions:
    """Aggregate with an engine built from the default configuration."""
    return _default_engine().aggregate(spot_id, observations, spot_profile, as_of)
