# =============================================================================
# SUPERIOR SURF ENGINE - CONFIGURATION LOADING
# =============================================================================
#
# Engine constants live in config/engine.yaml, spot profiles in
# config/spots.yaml. Both are read ONCE at startup.
#
# PATH RESOLUTION (first match wins):
#   1. explicit path argument
#   2. SURF_ENGINE_CONFIG / SURF_SPOTS_CONFIG (environment or project .env)
#   3. config/ next to this package
#
# =============================================================================

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from shared.exceptions import ConfigurationError
from shared.logging_config import compute_hash

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.parent
DEFAULT_CONFIG_PATH = BASE_DIR / "config" / "engine.yaml"
DEFAULT_SPOTS_PATH = BASE_DIR / "config" / "spots.yaml"
ENV_FILE = BASE_DIR / ".env"

ENGINE_CONFIG_ENV = "SURF_ENGINE_CONFIG"
SPOTS_CONFIG_ENV = "SURF_SPOTS_CONFIG"
LOG_LEVEL_ENV = "SURF_LOG_LEVEL"

REQUIRED_CONFIG_KEYS = ["BLENDER", "CLASSIFIER", "SOURCES"]

REQUIRED_BLENDER_KEYS = [
    "CONFLICT_THRESHOLDS",
    "CONFLICT_CONFIDENCE_CEILING",
    "PLAUSIBLE_RANGES",
]


def _load_env() -> None:
    """Load .env from the project root if present. Never overrides the environment."""
    if ENV_FILE.exists():
        load_dotenv(ENV_FILE, override=False)


def resolve_config_path(config_path=None, env_var: str = ENGINE_CONFIG_ENV,
                        default: Path = DEFAULT_CONFIG_PATH) -> Path:
    if config_path is not None:
        return Path(config_path)
    _load_env()
    env_value = os.environ.get(env_var)
    if env_value:
        return Path(env_value)
    return default


def configured_log_level(default: str = "INFO") -> str:
    """Log level from SURF_LOG_LEVEL (environment or .env)."""
    _load_env()
    return os.environ.get(LOG_LEVEL_ENV, default)


def read_yaml(path: Path) -> Any:
    """Read a YAML document, wrapping I/O and syntax errors."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e


def _is_fraction(value: Any) -> bool:
    """True for a number in [0, 1]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return 0.0 <= value <= 1.0


def validate_config(config: Any) -> None:
    """
    Validate that engine.yaml contains all required keys.

    Raises:
        ConfigurationError: If config is None, not a mapping, or missing keys.
    """
    if not isinstance(config, dict):
        raise ConfigurationError("engine.yaml is empty or invalid")

    errors = []
    for key in REQUIRED_CONFIG_KEYS:
        if key not in config:
            errors.append(f"missing key: {key}")

    blender_cfg = config.get("BLENDER") or {}
    for key in REQUIRED_BLENDER_KEYS:
        if key not in blender_cfg:
            errors.append(f"missing key: BLENDER.{key}")

    ceiling = blender_cfg.get("CONFLICT_CONFIDENCE_CEILING")
    if ceiling is not None and not _is_fraction(ceiling):
        errors.append("BLENDER.CONFLICT_CONFIDENCE_CEILING must be in [0, 1]")

    for name, bounds in (blender_cfg.get("PLAUSIBLE_RANGES") or {}).items():
        if (not isinstance(bounds, (list, tuple)) or len(bounds) != 2
                or not all(isinstance(b, (int, float)) and not isinstance(b, bool) for b in bounds)
                or bounds[0] > bounds[1]):
            errors.append(f"BLENDER.PLAUSIBLE_RANGES.{name} must be [low, high]")

    low_conf = (config.get("CLASSIFIER") or {}).get("LOW_CONFIDENCE_THRESHOLD")
    if low_conf is not None and not _is_fraction(low_conf):
        errors.append("CLASSIFIER.LOW_CONFIDENCE_THRESHOLD must be in [0, 1]")

    if errors:
        raise ConfigurationError(f"engine.yaml validation failed: {', '.join(errors)}")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load engine configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses SURF_ENGINE_CONFIG
            or the default.

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If config is unreadable, invalid or missing required keys.
    """
    path = resolve_config_path(config_path)
    config = read_yaml(path)
    validate_config(config)
    logger.debug(f"Loaded engine config from {path}")
    return config


def config_hash(config: Dict[str, Any]) -> str:
    """Short stable hash of a configuration, for logs."""
    return compute_hash(config)[:16]
