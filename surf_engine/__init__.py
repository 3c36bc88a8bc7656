# =============================================================================
# SUPERIOR SURF ENGINE - CORE MODULE
# =============================================================================
#
# Surf forecast aggregation and likelihood engine for Lake Superior.
# No fetching, no persistence, no UI.
#
# MODULES:
# - aggregation: Main orchestrator (AggregationEngine, create_engine)
# - blender: Multi-source weighted blending with conflict detection
# - wind_quality: Spot-aware wind direction/speed classification
# - likelihood: Threshold classification and 1-10 rating
# - insight: Surf report, notes and recommendations text
# - spot_profiles: Per-spot thresholds and wind exposure
# - source_registry: Refresh windows per provider
# - config: engine.yaml / spots.yaml loading
#
# =============================================================================

from .aggregation import (
    AggregationEngine,
    aggregate,
    create_engine,
)
from .blender import Blender
from .config import load_config, validate_config
from .insight import Insight, InsightGenerator
from .likelihood import LikelihoodClassifier, LikelihoodResult, compute_rating
from .source_registry import SourceRegistry
from .spot_profiles import (
    SpotProfileStore,
    build_exposure,
    load_spot_profiles,
    spot_documentation,
    wind_rose,
)
from .wind_quality import WindAssessment, WindQualityClassifier

__all__ = [
    "AggregationEngine",
    "aggregate",
    "create_engine",
    "Blender",
    "load_config",
    "validate_config",
    "Insight",
    "InsightGenerator",
    "LikelihoodClassifier",
    "LikelihoodResult",
    "compute_rating",
    "SourceRegistry",
    "SpotProfileStore",
    "build_exposure",
    "load_spot_profiles",
    "spot_documentation",
    "wind_rose",
    "WindAssessment",
    "WindQualityClassifier",
]
