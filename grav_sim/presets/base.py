"""Base class for preset scenarios."""

from abc import ABC, abstractmethod
from typing import Optional

from grav_sim.utils.config import SimulationConfig


class Preset(ABC):
    """Abstract base class for preset scenarios.

    A preset produces the same parsed configuration a config document
    would, so it flows through the same validation in the builder.
    """

    def __init__(self, seed: Optional[int] = None):
        """Initialize preset.

        Args:
            seed: Random seed for presets that draw random bodies
        """
        self.seed = seed

    @abstractmethod
    def generate(self) -> SimulationConfig:
        """Generate initial conditions."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this preset."""
        pass
