# =============================================================================
# SUPERIOR SURF ENGINE - EXCEPTIONS
# =============================================================================
#
# EXCEPTION HIERARCHY:
#
# SurfEngineError (base)
# ├── InvalidInputError    - programming error: mixed spots/metrics in a blend
# ├── NoDataError          - no usable observation for a required metric
# └── ConfigurationError   - spot profile or engine config is invalid
#
# PROPAGATION:
# NoDataError travels unchanged from the Blender through the facade to the
# caller, which renders a "data unavailable" state. Everything else that is
# irregular but recoverable (conflicts, stale sources, unknown wind
# direction) is absorbed into confidence and notes, never raised.
#
# Low confidence is NOT an exception. See models.data_models.LowConfidenceWarning.
#
# =============================================================================

from typing import Optional


class SurfEngineError(Exception):
    """
    Base class for all engine errors.

    Allows callers to catch every engine error in a single except block.
    """

    def __init__(self, message: str, spot_id: Optional[str] = None):
        self.message = message
        self.spot_id = spot_id
        super().__init__(message)

    def __str__(self) -> str:
        if self.spot_id:
            return f"[{self.spot_id}] {self.message}"
        return self.message


class InvalidInputError(SurfEngineError, ValueError):
    """
    Inputs violate the engine's contract.

    Raised for observations of different spots or metric kinds in one blend
    call, reliabilities outside [0, 1], or unit/metric mismatches. Not
    recoverable: fix the caller.
    """


class NoDataError(SurfEngineError):
    """
    No usable observation exists for a required metric.

    Recoverable by the caller via a "No data available" state. The engine
    never substitutes default or synthetic values instead.
    """

    def __init__(self, message: str, spot_id: Optional[str] = None, metric: Optional[str] = None):
        self.metric = metric
        super().__init__(message, spot_id)


class ConfigurationError(SurfEngineError, ValueError):
    """Invalid engine configuration or spot profile table."""
