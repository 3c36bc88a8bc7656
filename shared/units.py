# =============================================================================
# SUPERIOR SURF ENGINE - UNITS AND COMPASS HELPERS
# =============================================================================
#
# Canonical units inside the engine:
#   wave height / swell height  -> feet
#   wind speed / gust           -> mph
#   period                      -> seconds
#   water temperature           -> Fahrenheit
#
# Directions are reduced to the eight CompassOctant values. Bearings are
# "coming from" bearings in degrees clockwise from north.
#
# =============================================================================

import math
from typing import Optional, Union

from .enums import CompassOctant, MetricKind, Unit, octant_order


FEET_PER_METER = 3.28084
MPH_PER_KNOT = 1.15078
MPH_PER_METER_PER_SECOND = 2.23694

CANONICAL_UNITS = {
    MetricKind.WAVE_HEIGHT: Unit.FEET,
    MetricKind.SWELL: Unit.FEET,
    MetricKind.WIND: Unit.MPH,
    MetricKind.WATER_TEMP: Unit.FAHRENHEIT,
}

# Units each metric may arrive in
ACCEPTED_UNITS = {
    MetricKind.WAVE_HEIGHT: (Unit.FEET, Unit.METERS),
    MetricKind.SWELL: (Unit.FEET, Unit.METERS),
    MetricKind.WIND: (Unit.MPH, Unit.KNOTS, Unit.METERS_PER_SECOND),
    MetricKind.WATER_TEMP: (Unit.FAHRENHEIT, Unit.CELSIUS),
}

# 16-point compass names and their centre bearings
SIXTEEN_POINT_BEARINGS = {
    "N": 0.0, "NNE": 22.5, "NE": 45.0, "ENE": 67.5,
    "E": 90.0, "ESE": 112.5, "SE": 135.0, "SSE": 157.5,
    "S": 180.0, "SSW": 202.5, "SW": 225.0, "WSW": 247.5,
    "W": 270.0, "WNW": 292.5, "NW": 315.0, "NNW": 337.5,
}

DIRECTION_WORDS = {
    "north": "N", "south": "S", "east": "E", "west": "W",
    "northeast": "NE", "northwest": "NW", "southeast": "SE", "southwest": "SW",
    "north-east": "NE", "north-west": "NW", "south-east": "SE", "south-west": "SW",
}


# =============================================================================
# UNIT CONVERSION
# =============================================================================


def to_canonical(value: float, unit: Unit) -> float:
    """Convert a value to the engine's canonical unit for its dimension."""
    if unit == Unit.METERS:
        return value * FEET_PER_METER
    if unit == Unit.KNOTS:
        return value * MPH_PER_KNOT
    if unit == Unit.METERS_PER_SECOND:
        return value * MPH_PER_METER_PER_SECOND
    if unit == Unit.CELSIUS:
        return value * 9.0 / 5.0 + 32.0
    return value


def speed_to_canonical(value: Optional[float], unit: Unit) -> Optional[float]:
    """Gusts share the unit of their wind observation."""
    if value is None:
        return None
    return to_canonical(value, unit)


# =============================================================================
# COMPASS
# =============================================================================


def octant_from_degrees(degrees: float) -> CompassOctant:
    """
    Map a bearing to its octant.

    Each octant spans 45 degrees centred on its bearing; a bearing exactly
    on a boundary belongs to the next octant clockwise.
    """
    normalized = degrees % 360.0
    index = int(math.floor((normalized + 22.5) / 45.0)) % 8
    return octant_order()[index]


def octant_from_components(u: float, v: float) -> Optional[CompassOctant]:
    """
    Direction the wind comes from, given its eastward (u) and northward (v)
    components. Calm (both zero) has no direction.
    """
    if not (math.isfinite(u) and math.isfinite(v)):
        return None
    if u == 0 and v == 0:
        return None
    bearing = math.degrees(math.atan2(-u, -v)) % 360.0
    return octant_from_degrees(bearing)


def _octant_from_bearing(bearing: float) -> Optional[CompassOctant]:
    # NaN and infinite bearings carry no direction
    if not math.isfinite(bearing):
        return None
    return octant_from_degrees(bearing)


def normalize_direction(value: Union[str, float, int, CompassOctant, None]) -> Optional[CompassOctant]:
    """
    Reduce a provider's direction to a CompassOctant.

    Accepts octants, 16-point names ("ENE"), words ("northeast"), bearings
    in degrees and numeric strings. Returns None for anything unrecognised;
    callers treat None as "direction unknown".
    """
    if value is None:
        return None
    if isinstance(value, CompassOctant):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _octant_from_bearing(float(value))

    text = str(value).strip()
    if not text or text.upper() == "MM":
        return None

    try:
        return _octant_from_bearing(float(text))
    except ValueError:
        pass

    key = DIRECTION_WORDS.get(text.lower(), text.upper())
    bearing = SIXTEEN_POINT_BEARINGS.get(key)
    if bearing is None:
        return None
    return octant_from_degrees(bearing)
