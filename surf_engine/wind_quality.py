# =============================================================================
# SUPERIOR SURF ENGINE - WIND QUALITY CLASSIFIER
# =============================================================================
#
# Spot-aware mapping from wind direction + speed to a quality tier.
#
# The same wind means different things on different shores: a NW wind is
# offshore (grooming) on the North Shore but onshore (chop) on the South
# Shore. Exposure therefore always comes from the spot profile, never from
# the direction alone.
#
# RULES (first match wins):
#   onshore exposure                       -> ONSHORE (any speed)
#   speed >= firing_wind_max               -> STRONG
#   offshore/cross-shore < good_wind_max   -> CLEAN
#   otherwise                              -> CROSS_SHORE
#
# Unknown direction is never CLEAN.
#
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from models.data_models import SpotProfile
from shared.enums import CompassOctant, WindExposure, WindQuality
from shared.units import normalize_direction

logger = logging.getLogger(__name__)

__all__ = [
    "WindAssessment",
    "WindQualityClassifier",
    "classify",
]

UNKNOWN_DIRECTION_NOTE = "Wind direction unknown; treated as cross-shore (low confidence)"
UNKNOWN_SPEED_NOTE = "Wind speed unknown; wind quality is a low-confidence estimate"


@dataclass(frozen=True)
class WindAssessment:
    """Result of classifying the wind at one spot."""
    quality: WindQuality
    exposure: Optional[WindExposure]
    octant: Optional[CompassOctant]
    speed_mph: Optional[float]
    low_confidence: bool = False
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quality": self.quality.value,
            "exposure": self.exposure.value if self.exposure else None,
            "octant": self.octant.value if self.octant else None,
            "speed_mph": round(self.speed_mph, 1) if self.speed_mph is not None else None,
            "low_confidence": self.low_confidence,
            "note": self.note,
        }


class WindQualityClassifier:
    """Classifies wind against a spot profile's exposure table and thresholds."""

    def classify(
        self,
        spot_profile: SpotProfile,
        octant: Any,
        speed: Optional[float],
    ) -> WindAssessment:
        """
        Args:
            spot_profile: Profile supplying exposure table and wind thresholds
            octant: CompassOctant, or any direction normalize_direction accepts;
                None when unknown
            speed: Wind speed in mph, None when unknown
        """
        thresholds = spot_profile.thresholds
        resolved = normalize_direction(octant)

        if resolved is None:
            strong = speed is not None and speed >= thresholds.firing_wind_max
            quality = WindQuality.STRONG if strong else WindQuality.CROSS_SHORE
            logger.debug(f"{spot_profile.spot_id}: wind direction unknown ({octant!r}) -> {quality.value}")
            return WindAssessment(
                quality=quality,
                exposure=None,
                octant=None,
                speed_mph=speed,
                low_confidence=True,
                note=UNKNOWN_DIRECTION_NOTE,
            )

        exposure = spot_profile.exposure_for(resolved)

        if exposure == WindExposure.ONSHORE:
            quality = WindQuality.ONSHORE
        elif speed is None:
            return WindAssessment(
                quality=WindQuality.CROSS_SHORE,
                exposure=exposure,
                octant=resolved,
                speed_mph=None,
                low_confidence=True,
                note=UNKNOWN_SPEED_NOTE,
            )
        elif speed >= thresholds.firing_wind_max:
            quality = WindQuality.STRONG
        elif speed < thresholds.good_wind_max:
            quality = WindQuality.CLEAN
        else:
            quality = WindQuality.CROSS_SHORE

        logger.debug(
            f"{spot_profile.spot_id}: wind {resolved.value} {speed} mph is "
            f"{exposure.value} -> {quality.value}"
        )
        return WindAssessment(quality=quality, exposure=exposure, octant=resolved, speed_mph=speed)


_DEFAULT_CLASSIFIER = WindQualityClassifier()


def classify(spot_profile: SpotProfile, octant: Any, speed: Optional[float]) -> WindAssessment:
    """Module-level shortcut for WindQualityClassifier().classify()."""
    return _DEFAULT_CLASSIFIER.classify(spot_profile, octant, speed)
