"""Shared pytest fixtures."""

import logging

import matplotlib

matplotlib.use("Agg")

import pytest

from grav_sim.physics.builder import build_state
from grav_sim.presets import CircularBinary


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo any ``setup_logging`` call so each test starts with default logging."""
    yield
    package_logger = logging.getLogger("grav_sim")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True


@pytest.fixture
def binary_state():
    """Equal-mass circular binary at +/-0.5 with G=1, dt=0.01."""
    return build_state(CircularBinary().generate())
