import logging
import os

import pytest

from mapcluster.utils.logging import LogLevel, MapclusterLogger

_ENV_VARS = ("MAPCLUSTER_LOG_LEVEL", "MAPCLUSTER_EFFECTIVE_LOG_LEVEL")


@pytest.fixture(autouse=True)
def _isolate_logging():
    """CLI runs call setup_logging, which rewires the root logger; undo that per test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    for name in _ENV_VARS:
        os.environ.pop(name, None)

    yield

    root.handlers[:] = handlers
    root.setLevel(level)
    for name in _ENV_VARS:
        os.environ.pop(name, None)
    MapclusterLogger.set_level(LogLevel.NORMAL)
