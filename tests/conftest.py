"""Global test fixtures: reset cached engines and logger state between tests."""
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset the module-level default engine before and after each test."""
    _do_reset()
    yield
    _do_reset()


def _do_reset():
    import surf_engine.aggregation as agg_mod
    agg_mod._default_engine.cache_clear()


@pytest.fixture(autouse=True)
def restore_loggers():
    """setup_logging() detaches engine loggers from root; reattach after each test."""
    yield
    from shared.logging_config import ENGINE_LOGGER_NAMES
    for name in ENGINE_LOGGER_NAMES:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch):
    """Path overrides from the developer's shell must not leak into tests."""
    for name in ("SURF_ENGINE_CONFIG", "SURF_SPOTS_CONFIG", "SURF_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def engine_config():
    from surf_engine.config import load_config
    return load_config()


@pytest.fixture
def profile_store():
    from surf_engine.spot_profiles import load_spot_profiles
    return load_spot_profiles()
