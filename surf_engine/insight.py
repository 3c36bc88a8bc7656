# =============================================================================
# SUPERIOR SURF ENGINE - INSIGHT GENERATOR
# =============================================================================
#
# Deterministic text from the classifier's inputs and output.
#
# OUTPUT:
#   surf_report      one line, canonical template per likelihood
#   notes            fixed order, see InsightGenerator.notes()
#   recommendations  by wave height band, strong wind and cold water
#   conditions       wave band + wind band + direction + water temperature
#
# No randomness and no clock: identical inputs give identical text.
#
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from models.data_models import BlendedMetric, DroppedSource, LowConfidenceWarning, SpotProfile
from shared.enums import Provenance, SurfLikelihood, WindExposure

from .likelihood import LikelihoodResult
from .wind_quality import WindAssessment

logger = logging.getLogger(__name__)

WAVE_CONFLICT_NOTE = "Sources disagree on wave height — showing best estimate"
WIND_CONFLICT_NOTE = "Sources disagree on wind — showing best estimate"
MODEL_ONLY_NOTE = "No live buoy or station data — wave height from forecast models only"
STRONG_WIND_NOTE = "Strong wind — may cause chop"


@dataclass(frozen=True)
class Insight:
    """Human-readable part of AggregatedConditions."""
    surf_report: str
    notes: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    conditions: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "surf_report": self.surf_report,
            "notes": list(self.notes),
            "recommendations": list(self.recommendations),
            "conditions": self.conditions,
        }


def _fmt_range(wave_height: BlendedMetric) -> str:
    rng = wave_height.range
    return f"{rng.min:.1f}-{rng.max:.1f}ft"


def _fmt_period(period: Optional[BlendedMetric]) -> Optional[str]:
    if period is None or period.value <= 0:
        return None
    return f"{period.value:.0f}s"


class InsightGenerator:
    """Builds surf report, notes, recommendations and conditions text."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        insight_cfg = (config or {}).get("INSIGHT", {}) or {}
        self.strong_wind_note_mph = float(insight_cfg.get("STRONG_WIND_NOTE_MPH", 15))
        self.gust_note_mph = float(insight_cfg.get("GUST_NOTE_MPH", 25))
        self.strong_wind_recommendation_mph = float(insight_cfg.get("STRONG_WIND_RECOMMENDATION_MPH", 20))
        self.cold_water_f = float(insight_cfg.get("COLD_WATER_F", 45))

    def generate(
        self,
        likelihood: LikelihoodResult,
        profile: SpotProfile,
        wave_height: BlendedMetric,
        assessment: WindAssessment,
        period: Optional[BlendedMetric] = None,
        wind: Optional[BlendedMetric] = None,
        gust: Optional[BlendedMetric] = None,
        water_temp: Optional[BlendedMetric] = None,
        dropped: Sequence[DroppedSource] = (),
        warnings: Sequence[LowConfidenceWarning] = (),
    ) -> Insight:
        return Insight(
            surf_report=self.surf_report(likelihood.likelihood, profile, wave_height, period, assessment),
            notes=tuple(self.notes(profile, wave_height, assessment, wind, gust, dropped, warnings)),
            recommendations=tuple(self.recommendations(wave_height, wind, water_temp)),
            conditions=self.conditions(wave_height, wind, assessment, water_temp),
        )

    # -------------------------------------------------------------------------
    # SURF REPORT
    # -------------------------------------------------------------------------

    @staticmethod
    def surf_report(
        likelihood: SurfLikelihood,
        profile: SpotProfile,
        wave_height: BlendedMetric,
        period: Optional[BlendedMetric],
        assessment: WindAssessment,
    ) -> str:
        waves = _fmt_range(wave_height)
        period_text = _fmt_period(period)
        if assessment.octant is not None:
            winds = f"{assessment.octant.value} winds"
        else:
            winds = "variable winds"

        if likelihood == SurfLikelihood.FLAT:
            if wave_height.range.max < profile.thresholds.flat_max:
                return "Lake Superior is calm today. No surfable waves expected."
            return f"Small waves ({waves}) with {winds}. Conditions may improve later."

        if likelihood == SurfLikelihood.MAYBE_SURF:
            lead = f"Small surfable waves ({waves})"
        elif likelihood == SurfLikelihood.GOOD:
            lead = f"Good waves ({waves})"
        else:
            lead = f"Epic conditions! {waves} waves"

        if period_text:
            return f"{lead} @ {period_text}. {winds[0].upper()}{winds[1:]}."
        return f"{lead} with {winds}."

    # -------------------------------------------------------------------------
    # NOTES
    # -------------------------------------------------------------------------

    def notes(
        self,
        profile: SpotProfile,
        wave_height: BlendedMetric,
        assessment: WindAssessment,
        wind: Optional[BlendedMetric],
        gust: Optional[BlendedMetric],
        dropped: Iterable[DroppedSource],
        warnings: Iterable[LowConfidenceWarning],
    ) -> List[str]:
        """
        Order:
        1. threshold confidence and threshold notes
        2. conflict notes (wave height, then wind)
        3. model-only provenance
        4. excluded sources
        5. wind direction / exposure
        6. unknown wind direction or speed
        7. strong wind and gusts
        8. low confidence
        """
        notes: List[str] = []
        t = profile.thresholds

        if t.threshold_confidence is not None:
            notes.append(f"Threshold confidence: {t.threshold_confidence.value}")
        if t.notes:
            notes.append(t.notes)

        if wave_height.conflict:
            notes.append(WAVE_CONFLICT_NOTE)
        if wind is not None and wind.conflict:
            notes.append(WIND_CONFLICT_NOTE)

        if wave_height.provenance == Provenance.MODEL_ONLY:
            notes.append(MODEL_ONLY_NOTE)

        excluded = sorted({(d.source_id, d.reason.value) for d in dropped})
        if excluded:
            listed = ", ".join(f"{source_id} ({reason.lower()})" for source_id, reason in excluded)
            notes.append(f"Excluded sources: {listed}")

        exposure_note = self._exposure_note(profile, assessment)
        if exposure_note:
            notes.append(exposure_note)
        if assessment.note:
            notes.append(assessment.note)

        if wind is not None and wind.value > self.strong_wind_note_mph:
            notes.append(STRONG_WIND_NOTE)
        if gust is not None and gust.value > self.gust_note_mph:
            notes.append(f"Gusts > {self.gust_note_mph:.0f} mph")

        for warning in warnings:
            notes.append(f"Low confidence in {warning.metric} ({warning.confidence:.2f}): {warning.reason}")

        return notes

    @staticmethod
    def _exposure_note(profile: SpotProfile, assessment: WindAssessment) -> Optional[str]:
        if assessment.octant is None or assessment.exposure is None:
            return None
        direction = assessment.octant.value
        if assessment.exposure == WindExposure.OFFSHORE:
            return f"Offshore wind ({direction}) at {profile.name} — grooms the waves"
        if assessment.exposure == WindExposure.ONSHORE:
            return f"Onshore wind ({direction}) at {profile.name} — expect choppy conditions"
        return f"Cross-shore wind ({direction}) at {profile.name}"

    # -------------------------------------------------------------------------
    # RECOMMENDATIONS / CONDITIONS
    # -------------------------------------------------------------------------

    def recommendations(
        self,
        wave_height: BlendedMetric,
        wind: Optional[BlendedMetric],
        water_temp: Optional[BlendedMetric],
    ) -> List[str]:
        height = wave_height.value
        if height < 0.5:
            result = ["Lake Superior is flat today - no surfable waves",
                      "Check back later when wind picks up"]
        elif height < 1:
            result = ["Small waves - good for beginners",
                      "Bring a longboard for easier catching"]
        elif height < 2:
            result = ["Moderate waves - good for all skill levels",
                      "Check wind direction for best spots"]
        elif height < 3:
            result = ["Good waves - experienced surfers will enjoy",
                      "Watch for changing conditions"]
        else:
            result = ["Big waves - experienced surfers only",
                      "Check safety conditions before paddling out"]

        if wind is not None and wind.value > self.strong_wind_recommendation_mph:
            result.append("Strong winds - consider wind direction for spot selection")
        if water_temp is not None and water_temp.value < self.cold_water_f:
            result.append("Cold water - wear proper wetsuit")
        return result

    @staticmethod
    def conditions(
        wave_height: BlendedMetric,
        wind: Optional[BlendedMetric],
        assessment: WindAssessment,
        water_temp: Optional[BlendedMetric],
    ) -> str:
        height = wave_height.value
        if height < 0.5:
            return "Flat conditions - no waves today. Lake Superior is calm."

        if height < 1:
            text = "Small waves"
        elif height < 2:
            text = "Moderate waves"
        elif height < 3:
            text = "Good waves"
        elif height < 5:
            text = "Big waves"
        else:
            text = "Very big waves"
        text += f" ({height:.1f}ft)"

        if wind is not None:
            speed = wind.value
            if speed < 5:
                text += " with light winds"
            elif speed < 10:
                text += " with light breeze"
            elif speed < 15:
                text += " with moderate winds"
            elif speed < 20:
                text += " with strong winds"
            else:
                text += " with very strong winds"
            if assessment.octant is not None:
                text += f" from the {assessment.octant.value}"
        else:
            text += ", wind unavailable"

        if water_temp is not None:
            text += f". Water temperature {round(water_temp.value)}°F"
        return text
