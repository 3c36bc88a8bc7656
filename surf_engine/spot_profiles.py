# =============================================================================
# SUPERIOR SURF ENGINE - SPOT PROFILE STORE
# =============================================================================
#
# Static per-spot configuration: thresholds and wind exposure.
#
# LOADING:
# - config/spots.yaml is read once into an immutable SpotProfileStore
# - Threshold overrides are merged onto DEFAULT_SURF_THRESHOLDS
# - Wind exposure starts from the shore default table, then per-octant
#   overrides are applied; every octant must end up with exactly one class
#
# Hot reload builds a NEW store; a store is never mutated.
#
# =============================================================================

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from models.data_models import DEFAULT_SURF_THRESHOLDS, SpotProfile, merge_thresholds
from shared.enums import CompassOctant, ShoreOrientation, WindExposure, octant_order
from shared.exceptions import ConfigurationError

from .config import DEFAULT_SPOTS_PATH, SPOTS_CONFIG_ENV, read_yaml, resolve_config_path

logger = logging.getLogger(__name__)

FALLBACK_SPOT_ID = "duluth"


# =============================================================================
# SHORE DEFAULTS
# =============================================================================

_ON = WindExposure.ONSHORE
_OFF = WindExposure.OFFSHORE
_CROSS = WindExposure.CROSS_SHORE

# North Shore faces the open lake to the south-east,
# South Shore faces it to the north.
DEFAULT_EXPOSURE: Mapping[ShoreOrientation, Mapping[CompassOctant, WindExposure]] = MappingProxyType({
    ShoreOrientation.NORTH_SHORE: MappingProxyType({
        CompassOctant.N: _OFF,
        CompassOctant.NE: _CROSS,
        CompassOctant.E: _ON,
        CompassOctant.SE: _ON,
        CompassOctant.S: _ON,
        CompassOctant.SW: _CROSS,
        CompassOctant.W: _OFF,
        CompassOctant.NW: _OFF,
    }),
    ShoreOrientation.SOUTH_SHORE: MappingProxyType({
        CompassOctant.N: _ON,
        CompassOctant.NE: _ON,
        CompassOctant.E: _CROSS,
        CompassOctant.SE: _OFF,
        CompassOctant.S: _OFF,
        CompassOctant.SW: _OFF,
        CompassOctant.W: _CROSS,
        CompassOctant.NW: _ON,
    }),
})


def _parse_exposure(value: Any) -> WindExposure:
    if isinstance(value, WindExposure):
        return value
    text = str(value).strip().lower().replace("_", "-")
    if text == "crossshore":
        text = "cross-shore"
    try:
        return WindExposure(text)
    except ValueError as e:
        raise ConfigurationError(f"Unknown wind exposure: {value!r}") from e


def build_exposure(
    shore: ShoreOrientation,
    overrides: Optional[Mapping[Any, Any]] = None,
) -> Dict[CompassOctant, WindExposure]:
    """
    Exposure table for a spot: shore default plus per-octant overrides.

    Raises:
        ConfigurationError: unknown octant or exposure name
    """
    table = dict(DEFAULT_EXPOSURE[shore])
    for key, value in (overrides or {}).items():
        if isinstance(key, CompassOctant):
            octant = key
        else:
            try:
                octant = CompassOctant(str(key).strip().upper())
            except ValueError as e:
                raise ConfigurationError(f"Unknown compass octant in wind exposure: {key!r}") from e
        table[octant] = _parse_exposure(value)
    return table


# =============================================================================
# PROFILE CONSTRUCTION
# =============================================================================


def build_profile(spot_id: str, entry: Optional[Mapping[str, Any]]) -> SpotProfile:
    """
    Build one SpotProfile from its spots.yaml entry.

    Raises:
        ConfigurationError: invalid shore, thresholds or exposure
    """
    entry = entry or {}
    shore_name = str(entry.get("SHORE", "")).strip().upper()
    try:
        shore = ShoreOrientation[shore_name]
    except KeyError as e:
        raise ConfigurationError(f"Spot {spot_id} has invalid SHORE: {entry.get('SHORE')!r}", spot_id) from e

    raw_thresholds = entry.get("THRESHOLDS") or {}
    overrides = {str(k).lower(): v for k, v in raw_thresholds.items()}
    try:
        thresholds = merge_thresholds(overrides)
    except ConfigurationError as e:
        raise ConfigurationError(f"Spot {spot_id}: {e.message}", spot_id) from e

    return SpotProfile(
        spot_id=spot_id,
        name=str(entry.get("NAME", spot_id)),
        shore_orientation=shore,
        thresholds=thresholds,
        wind_exposure=build_exposure(shore, entry.get("WIND_EXPOSURE")),
        is_fallback=bool(entry.get("FALLBACK", False)),
    )


def default_fallback_profile() -> SpotProfile:
    """Built-in fallback used when no spots file is available."""
    return SpotProfile(
        spot_id=FALLBACK_SPOT_ID,
        name="Duluth Area (Fallback)",
        shore_orientation=ShoreOrientation.NORTH_SHORE,
        thresholds=DEFAULT_SURF_THRESHOLDS,
        wind_exposure=build_exposure(ShoreOrientation.NORTH_SHORE),
        is_fallback=True,
    )


# =============================================================================
# STORE
# =============================================================================


class SpotProfileStore:
    """
    Immutable lookup of spot profiles.

    Unknown spot ids resolve to the fallback profile (logged at WARNING).
    """

    def __init__(self, profiles: Mapping[str, SpotProfile], fallback_id: str = FALLBACK_SPOT_ID):
        if fallback_id not in profiles:
            raise ConfigurationError(f"Fallback spot {fallback_id!r} is not configured")
        self._profiles: Mapping[str, SpotProfile] = MappingProxyType(dict(profiles))
        self._fallback_id = fallback_id

    @property
    def fallback(self) -> SpotProfile:
        return self._profiles[self._fallback_id]

    def get(self, spot_id: str) -> SpotProfile:
        profile = self._profiles.get(spot_id)
        if profile is None:
            logger.warning(f"Unknown spot {spot_id!r}, using fallback profile {self._fallback_id!r}")
            return self.fallback
        return profile

    def is_known(self, spot_id: str) -> bool:
        return spot_id in self._profiles

    def spot_ids(self):
        return sorted(self._profiles)

    def __contains__(self, spot_id: str) -> bool:
        return spot_id in self._profiles

    def __iter__(self) -> Iterator[SpotProfile]:
        for spot_id in self.spot_ids():
            yield self._profiles[spot_id]

    def __len__(self) -> int:
        return len(self._profiles)


def load_spot_profiles(spots_path: Optional[str] = None) -> SpotProfileStore:
    """
    Load spots.yaml into a SpotProfileStore.

    Args:
        spots_path: Path to spots file. If None, uses SURF_SPOTS_CONFIG
            or the default.

    Raises:
        ConfigurationError: unreadable file or any invalid profile
    """
    path: Path = resolve_config_path(spots_path, env_var=SPOTS_CONFIG_ENV, default=DEFAULT_SPOTS_PATH)
    data = read_yaml(path)
    if not isinstance(data, dict) or not isinstance(data.get("SPOTS"), dict):
        raise ConfigurationError(f"{path} must contain a SPOTS mapping")

    profiles = {
        str(spot_id): build_profile(str(spot_id), entry)
        for spot_id, entry in data["SPOTS"].items()
    }
    fallback_id = str(data.get("FALLBACK_SPOT", FALLBACK_SPOT_ID))
    store = SpotProfileStore(profiles, fallback_id=fallback_id)

    logger.debug(f"Loaded {len(store)} spot profiles from {path}")
    return store


# =============================================================================
# DOCUMENTATION HELPERS
# =============================================================================

_ROSE_MARKERS = {
    WindExposure.OFFSHORE: "+",
    WindExposure.CROSS_SHORE: "~",
    WindExposure.ONSHORE: "x",
}


def spot_documentation(profile: SpotProfile) -> str:
    """Plain-text summary of a spot's configuration."""
    t = profile.thresholds
    lines = [
        f"Spot: {profile.name} ({profile.spot_id})",
        f"Shore: {profile.shore_orientation.value}",
    ]
    if profile.is_fallback:
        lines.append("Fallback configuration")
    lines += [
        "",
        "Thresholds:",
        f"- Flat below:  {t.flat_max:.1f} ft",
        f"- Maybe Surf:  {t.maybe_min:.1f} ft @ {t.maybe_period_min:.0f}s",
        f"- Good:        {t.good_min:.1f} ft @ {t.good_period_min:.0f}s, wind < {t.good_wind_max:.0f} mph",
        f"- Firing:      {t.firing_min:.1f} ft @ {t.firing_period_min:.0f}s, wind <= {t.firing_wind_max:.0f} mph",
    ]
    if t.threshold_confidence:
        lines.append(f"- Confidence:  {t.threshold_confidence.value}")
    if t.notes:
        lines.append(f"- Notes:       {t.notes}")
    lines += [
        "",
        "Wind Exposure:",
    ]
    for exposure in (WindExposure.OFFSHORE, WindExposure.CROSS_SHORE, WindExposure.ONSHORE):
        octants = profile.octants_with(exposure)
        names = ", ".join(o.value for o in octants) if octants else "None"
        lines.append(f"- {exposure.value.capitalize()}: {names}")
    return "\n".join(lines)


def wind_rose(profile: SpotProfile) -> str:
    """ASCII wind rose of a spot's exposure table."""
    m = {o: _ROSE_MARKERS[profile.wind_exposure[o]] for o in octant_order()}
    O = CompassOctant
    return "\n".join([
        f"Wind Rose for {profile.name}:",
        f"   NW {m[O.NW]}   N {m[O.N]}   NE {m[O.NE]}",
        f"    W {m[O.W]}         E {m[O.E]}",
        f"   SW {m[O.SW]}   S {m[O.S]}   SE {m[O.SE]}",
        "",
        "Legend: + offshore  ~ cross-shore  x onshore",
    ])
