"""Base renderer interface."""

from abc import ABC, abstractmethod

from grav_sim.physics.simulator import Frame


class Renderer(ABC):
    """Abstract base class for renderers.

    Renderers only ever see ``Frame``s, whose states are frozen copies, so
    a slow renderer can never observe or block the live simulation.
    """

    @abstractmethod
    def render(self, frame: Frame):
        """Draw one published frame."""
        pass

    @abstractmethod
    def clear(self):
        pass

    @abstractmethod
    def close(self):
        pass
