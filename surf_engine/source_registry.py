# =============================================================================
# SUPERIOR SURF ENGINE - SOURCE REGISTRY
# =============================================================================
#
# Static table of known providers and how often each is expected to report.
# Reliability itself is declared by the provider adapter on every
# observation; the registry only decides when a source is stale.
#
# =============================================================================

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from models.data_models import Observation
from shared.enums import SourceKind
from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Used when the config has no entry for a source kind
FALLBACK_REFRESH_WINDOW_MINUTES = {
    SourceKind.BUOY: 180,
    SourceKind.STATION: 120,
    SourceKind.MODEL: 360,
    SourceKind.MARINE_FORECAST: 720,
}


@dataclass(frozen=True)
class SourceInfo:
    """One registered provider."""
    source_id: str
    name: str
    kind: SourceKind
    refresh_window_minutes: float


class SourceRegistry:
    """
    Read-only lookup of refresh windows per source.

    An observation is stale when its timestamp is further than the source's
    refresh window from the time bucket being aggregated (in either
    direction, so forecasts valid for a different bucket are excluded too).
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        sources_cfg = (config or {}).get("SOURCES", {}) or {}

        defaults = dict(FALLBACK_REFRESH_WINDOW_MINUTES)
        for kind_name, minutes in (sources_cfg.get("DEFAULT_REFRESH_WINDOW_MINUTES") or {}).items():
            try:
                defaults[SourceKind[kind_name]] = float(minutes)
            except KeyError as e:
                raise ConfigurationError(f"Unknown source kind in refresh windows: {kind_name}") from e
        self._defaults = MappingProxyType(defaults)

        entries: Dict[str, SourceInfo] = {}
        for source_id, entry in (sources_cfg.get("REGISTRY") or {}).items():
            entry = entry or {}
            try:
                kind = SourceKind[str(entry.get("KIND", "MODEL")).upper()]
            except KeyError as e:
                raise ConfigurationError(f"Unknown KIND for source {source_id}: {entry.get('KIND')}") from e
            entries[source_id] = SourceInfo(
                source_id=source_id,
                name=entry.get("NAME", source_id),
                kind=kind,
                refresh_window_minutes=float(entry.get("REFRESH_WINDOW_MINUTES", defaults[kind])),
            )
        self._sources: Mapping[str, SourceInfo] = MappingProxyType(entries)

        logger.debug(f"SourceRegistry loaded {len(entries)} sources")

    def get(self, source_id: str) -> Optional[SourceInfo]:
        return self._sources.get(source_id)

    def __contains__(self, source_id: str) -> bool:
        return source_id in self._sources

    def __len__(self) -> int:
        return len(self._sources)

    def refresh_window(self, observation: Observation) -> timedelta:
        """Refresh window for the observation's source (registry first, then kind default)."""
        info = self._sources.get(observation.source_id)
        if info is not None:
            return timedelta(minutes=info.refresh_window_minutes)
        return timedelta(minutes=self._defaults[observation.source_kind])

    def is_stale(self, observation: Observation, as_of: datetime) -> bool:
        age = abs(as_of - observation.timestamp)
        return age > self.refresh_window(observation)
