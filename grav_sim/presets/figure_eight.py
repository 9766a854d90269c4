"""Three-body figure-eight choreography (the default scenario)."""

from grav_sim.presets.base import Preset
from grav_sim.utils.config import BodyConfig, SimulationConfig

# Chenciner & Montgomery (2000), G = 1, unit masses
_X1 = (0.97000436, -0.24308753, 0.0)
_V3 = (-0.93240737, -0.86473146, 0.0)

FIGURE_EIGHT_PERIOD = 6.32591398


class FigureEight(Preset):
    """Three equal masses chasing each other around a figure-eight curve.

    Fixed and reproducible: no random draws. Total momentum is zero and the
    centre of mass sits at the origin.
    """

    def __init__(self, dt: float = 0.001, seed: int = None):
        super().__init__(seed)
        self.dt = dt

    @property
    def name(self) -> str:
        return "figure_eight"

    def generate(self) -> SimulationConfig:
        x1 = _X1
        x2 = tuple(-c for c in _X1)
        v1 = tuple(-c / 2.0 for c in _V3)
        bodies = [
            BodyConfig(name="alpha", mass=1.0, position=x1, velocity=v1),
            BodyConfig(name="beta", mass=1.0, position=x2, velocity=v1),
            BodyConfig(name="gamma", mass=1.0, position=(0.0, 0.0, 0.0), velocity=_V3),
        ]
        return SimulationConfig(bodies=bodies, dt=self.dt, G=1.0, softening=0.0, integrator="leapfrog")
