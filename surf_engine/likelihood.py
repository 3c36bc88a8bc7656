# =============================================================================
# SUPERIOR SURF ENGINE - LIKELIHOOD CLASSIFIER
# =============================================================================
#
# Applies a spot's thresholds to blended wave height, dominant period and
# wind quality. Ordered rules, first match wins:
#
#   1. range.max < flat_max                                     -> Flat
#   2. range.min >= firing_min, period >= firing_period_min,
#      wind speed <= firing_wind_max, wind not onshore/strong   -> Firing
#   3. range.min >= good_min, period >= good_period_min,
#      wind not strong                                          -> Good
#      (onshore wind downgrades Good one tier to Maybe Surf)
#   4. range.min >= maybe_min, period >= maybe_period_min       -> Maybe Surf
#   5. otherwise                                                -> Flat
#
# CONSERVATIVE BY CONSTRUCTION:
# - Missing period or wind speed fails the gates that need them
# - Wind quality can hold or downgrade a tier, never upgrade it
# - Low wave height confidence caps the result at Good
#
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from models.data_models import BlendedMetric, SpotSurfThresholds
from shared.enums import SurfLikelihood, WindQuality

logger = logging.getLogger(__name__)

DEFAULT_LOW_CONFIDENCE_THRESHOLD = 0.4

# Highest rating each likelihood may carry
RATING_CEILING = {
    SurfLikelihood.FLAT: 2,
    SurfLikelihood.MAYBE_SURF: 4,
    SurfLikelihood.GOOD: 7,
    SurfLikelihood.FIRING: 10,
}


@dataclass(frozen=True)
class LikelihoodResult:
    """Classification plus the reasons that produced it."""
    likelihood: SurfLikelihood
    downgraded: bool = False
    capped: bool = False
    reasons: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "likelihood": self.likelihood.value,
            "downgraded": self.downgraded,
            "capped": self.capped,
            "reasons": list(self.reasons),
        }


def _period_value(period: Union[BlendedMetric, float, None]) -> Optional[float]:
    if period is None:
        return None
    if isinstance(period, BlendedMetric):
        return period.value
    return float(period)


def _at_least(value: Optional[float], minimum: float) -> bool:
    return value is not None and value >= minimum


class LikelihoodClassifier:
    """
    Four-state surf likelihood from blended inputs and spot thresholds.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        classifier_cfg = (config or {}).get("CLASSIFIER", {}) or {}
        self.low_confidence_threshold = float(
            classifier_cfg.get("LOW_CONFIDENCE_THRESHOLD", DEFAULT_LOW_CONFIDENCE_THRESHOLD)
        )

    def classify(
        self,
        wave_height: BlendedMetric,
        period: Union[BlendedMetric, float, None],
        wind_quality: WindQuality,
        thresholds: SpotSurfThresholds,
        wind_speed: Optional[float] = None,
    ) -> LikelihoodResult:
        """
        Args:
            wave_height: Blended wave height (its range is used when present)
            period: Dominant period in seconds, or its BlendedMetric
            wind_quality: Result of the wind quality classifier
            thresholds: The spot's thresholds
            wind_speed: Blended wind speed in mph, None when unknown
        """
        result = self._classify(wave_height, _period_value(period), wind_quality, thresholds, wind_speed)

        capped = result.likelihood.cap(SurfLikelihood.GOOD)
        if capped != result.likelihood and wave_height.confidence < self.low_confidence_threshold:
            result = LikelihoodResult(
                likelihood=capped,
                downgraded=result.downgraded,
                capped=True,
                reasons=result.reasons + (
                    f"wave height confidence {wave_height.confidence:.2f} < "
                    f"{self.low_confidence_threshold:.2f}: capped at Good",
                ),
            )

        logger.debug(f"Likelihood {result.likelihood.value} | reasons={list(result.reasons)}")
        return result

    @staticmethod
    def _classify(
        wave_height: BlendedMetric,
        period: Optional[float],
        wind_quality: WindQuality,
        t: SpotSurfThresholds,
        wind_speed: Optional[float],
    ) -> LikelihoodResult:
        rng = wave_height.range

        if rng.max < t.flat_max:
            return LikelihoodResult(
                SurfLikelihood.FLAT,
                reasons=(f"max {rng.max:.1f} ft below flat max {t.flat_max:.1f} ft",),
            )

        if (rng.min >= t.firing_min
                and _at_least(period, t.firing_period_min)
                and wind_speed is not None and wind_speed <= t.firing_wind_max
                and wind_quality not in (WindQuality.ONSHORE, WindQuality.STRONG)):
            return LikelihoodResult(
                SurfLikelihood.FIRING,
                reasons=(f"min {rng.min:.1f} ft >= {t.firing_min:.1f} ft @ {period:.0f}s, "
                         f"{wind_quality.value} wind {wind_speed:.0f} mph",),
            )

        if (rng.min >= t.good_min
                and _at_least(period, t.good_period_min)
                and wind_quality != WindQuality.STRONG):
            if wind_quality == WindQuality.ONSHORE:
                return LikelihoodResult(
                    SurfLikelihood.GOOD.downgrade(),
                    downgraded=True,
                    reasons=(f"min {rng.min:.1f} ft >= {t.good_min:.1f} ft but onshore wind: "
                             "downgraded from Good",),
                )
            return LikelihoodResult(
                SurfLikelihood.GOOD,
                reasons=(f"min {rng.min:.1f} ft >= {t.good_min:.1f} ft @ {period:.0f}s",),
            )

        if rng.min >= t.maybe_min and _at_least(period, t.maybe_period_min):
            return LikelihoodResult(
                SurfLikelihood.MAYBE_SURF,
                reasons=(f"min {rng.min:.1f} ft >= {t.maybe_min:.1f} ft @ {period:.0f}s",),
            )

        if period is None:
            return LikelihoodResult(SurfLikelihood.FLAT, reasons=("period unknown",))
        return LikelihoodResult(SurfLikelihood.FLAT, reasons=("below Maybe Surf thresholds",))


def compute_rating(
    wave_height_ft: float,
    wind_quality: WindQuality,
    likelihood: SurfLikelihood,
    thresholds: SpotSurfThresholds,
    period: Optional[float] = None,
) -> int:
    """
    1-10 rating from blended wave height, adjusted for wind and period and
    capped by the likelihood so the number never contradicts the label.
    """
    if wave_height_ft > 3:
        rating = 8
    elif wave_height_ft > 2:
        rating = 6
    elif wave_height_ft > 1:
        rating = 4
    elif wave_height_ft > 0.5:
        rating = 2
    else:
        rating = 1

    if wind_quality == WindQuality.ONSHORE:
        rating -= 4
    elif wind_quality == WindQuality.STRONG:
        rating -= 2
    elif wind_quality == WindQuality.CLEAN:
        rating += 1

    if period is not None and period >= thresholds.firing_period_min:
        rating += 1

    rating = min(rating, RATING_CEILING[likelihood])
    return max(1, min(10, rating))
