# =============================================================================
# SUPERIOR SURF ENGINE - SHARED MODULE
# =============================================================================
#
# Shared vocabulary and utilities. No business logic lives here.
#
# CONTENTS:
# - Enums (closed sets: octants, exposure, likelihood, ...)
# - Exceptions (engine error taxonomy)
# - Logging utilities
#
# =============================================================================

from .enums import (
    MetricKind,
    SourceKind,
    Provenance,
    DropReason,
    Unit,
    CompassOctant,
    WindExposure,
    ShoreOrientation,
    WindQuality,
    SurfLikelihood,
    ThresholdConfidence,
)
from .exceptions import (
    SurfEngineError,
    InvalidInputError,
    NoDataError,
    ConfigurationError,
)
from .logging_config import setup_logging, compute_hash

__all__ = [
    "MetricKind",
    "SourceKind",
    "Provenance",
    "DropReason",
    "Unit",
    "CompassOctant",
    "WindExposure",
    "ShoreOrientation",
    "WindQuality",
    "SurfLikelihood",
    "ThresholdConfidence",
    "SurfEngineError",
    "InvalidInputError",
    "NoDataError",
    "ConfigurationError",
    "setup_logging",
    "compute_hash",
]
