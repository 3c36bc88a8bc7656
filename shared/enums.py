# =============================================================================
# SUPERIOR SURF ENGINE - SHARED ENUMS
# =============================================================================
#
# These enums define the shared vocabulary across the engine.
# Every closed set the engine reasons about (compass octants, exposure
# classes, likelihood states) is an Enum so that per-spot tables can be
# checked exhaustively.
#
# =============================================================================

from enum import Enum
from typing import Optional


class MetricKind(Enum):
    """
    Logical kind of an observation.

    WAVE_HEIGHT: significant wave height (optional period component)
    WIND:        wind speed (direction and gust components)
    WATER_TEMP:  surface water temperature
    SWELL:       individual swell train (height, period, direction)
    """
    WAVE_HEIGHT = "WAVE_HEIGHT"
    WIND = "WIND"
    WATER_TEMP = "WATER_TEMP"
    SWELL = "SWELL"


class SourceKind(Enum):
    """
    Kind of data provider.

    BUOY and STATION report directly measured values and are treated as
    authoritative. MODEL and MARINE_FORECAST are derived products.
    """
    BUOY = "BUOY"
    STATION = "STATION"
    MODEL = "MODEL"
    MARINE_FORECAST = "MARINE_FORECAST"

    @property
    def is_authoritative(self) -> bool:
        return self in (SourceKind.BUOY, SourceKind.STATION)


class Provenance(Enum):
    """Where a blended value came from."""
    OBSERVED = "OBSERVED"
    BLENDED = "BLENDED"
    MODEL_ONLY = "MODEL_ONLY"


class DropReason(Enum):
    """Why an observation was excluded from a blend."""
    STALE = "STALE"
    SENSOR_FLAGGED = "SENSOR_FLAGGED"
    IMPLAUSIBLE = "IMPLAUSIBLE"
    FOREIGN_SPOT = "FOREIGN_SPOT"


class Unit(Enum):
    """Units accepted on inbound observations."""
    FEET = "ft"
    METERS = "m"
    MPH = "mph"
    KNOTS = "kt"
    METERS_PER_SECOND = "m/s"
    SECONDS = "s"
    FAHRENHEIT = "F"
    CELSIUS = "C"

    @classmethod
    def parse(cls, value) -> "Unit":
        """Accept a Unit, its value ("ft") or its name ("FEET")."""
        if isinstance(value, Unit):
            return value
        text = str(value).strip()
        for unit in cls:
            if text == unit.value or text.upper() == unit.name:
                return unit
        aliases = {
            "feet": cls.FEET, "meters": cls.METERS, "metres": cls.METERS,
            "knots": cls.KNOTS, "kts": cls.KNOTS, "mps": cls.METERS_PER_SECOND,
            "sec": cls.SECONDS, "degf": cls.FAHRENHEIT, "degc": cls.CELSIUS,
        }
        if text.lower() in aliases:
            return aliases[text.lower()]
        raise ValueError(f"Unknown unit: {value!r}")


class CompassOctant(Enum):
    """
    The eight compass octants, clockwise from north.

    Directions are always the direction the wind (or swell) comes FROM.
    """
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"

    @property
    def bearing(self) -> float:
        """Centre bearing of the octant in degrees."""
        return _OCTANT_ORDER.index(self) * 45.0


_OCTANT_ORDER = [
    CompassOctant.N, CompassOctant.NE, CompassOctant.E, CompassOctant.SE,
    CompassOctant.S, CompassOctant.SW, CompassOctant.W, CompassOctant.NW,
]


class WindExposure(Enum):
    """Wind direction relative to a spot's coastline."""
    ONSHORE = "onshore"
    OFFSHORE = "offshore"
    CROSS_SHORE = "cross-shore"


class ShoreOrientation(Enum):
    """
    Which shore of Lake Superior a spot sits on.

    NORTH_SHORE: Minnesota/Ontario coast, open water to the south-east.
    SOUTH_SHORE: Wisconsin/Michigan coast, open water to the north.
    """
    NORTH_SHORE = "NORTH_SHORE"
    SOUTH_SHORE = "SOUTH_SHORE"


class WindQuality(Enum):
    """
    Local grooming effect of the wind at a spot.

    CLEAN:       offshore, or light cross-shore, below the spot's good wind max
    ONSHORE:     blowing in from the lake, degrades wave shape at any speed
    CROSS_SHORE: side-shore or moderate offshore, neutral
    STRONG:      at or above the spot's firing wind max, blows the surf out
    """
    CLEAN = "Clean"
    ONSHORE = "Onshore"
    CROSS_SHORE = "CrossShore"
    STRONG = "Strong"


class SurfLikelihood(Enum):
    """
    Four-state surf likelihood, ordered by severity.

    Use `rank` for comparisons; the string values are the display labels.
    """
    FLAT = "Flat"
    MAYBE_SURF = "Maybe Surf"
    GOOD = "Good"
    FIRING = "Firing"

    @property
    def rank(self) -> int:
        return _LIKELIHOOD_ORDER.index(self)

    def downgrade(self) -> "SurfLikelihood":
        """One tier down, never below FLAT."""
        return _LIKELIHOOD_ORDER[max(0, self.rank - 1)]

    def cap(self, ceiling: "SurfLikelihood") -> "SurfLikelihood":
        """The lower of self and ceiling."""
        return self if self.rank <= ceiling.rank else ceiling


_LIKELIHOOD_ORDER = [
    SurfLikelihood.FLAT,
    SurfLikelihood.MAYBE_SURF,
    SurfLikelihood.GOOD,
    SurfLikelihood.FIRING,
]


class ThresholdConfidence(Enum):
    """How a spot's thresholds were established."""
    ESTIMATED = "estimated"
    VALIDATED = "validated"
    LOCAL = "local"

    @classmethod
    def parse(cls, value) -> Optional["ThresholdConfidence"]:
        if value is None or isinstance(value, ThresholdConfidence):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls[str(value).strip().upper()]


def octant_order():
    """All octants in clockwise order starting at north."""
    return list(_OCTANT_ORDER)
