"""Pytest configuration for the fireflies tests."""
import logging
import os
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    """Configure pytest environment for headless runs."""
    # The modules live at the project root, not in a package
    project_root = Path(__file__).parent.parent
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    # Set SDL to use dummy video driver for headless operation
    os.environ['SDL_VIDEODRIVER'] = 'dummy'
    os.environ['SDL_AUDIODRIVER'] = 'dummy'


@pytest.fixture
def restore_root_logger():
    """Undo handler changes made by setup_logging."""
    logger = logging.getLogger()
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture
def sim_params():
    return {
        "particle_count": 40,
        "neighbor_count": 2,
        "kinematic_policy": "linear",
        "rebuild_neighbors": True,
        "initial_metric": "squared_euclidean",
        "seed": 1234,
    }
