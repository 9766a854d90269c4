"""Two bodies on circular orbits about their common centre of mass."""

import numpy as np

from grav_sim.presets.base import Preset
from grav_sim.utils.config import BodyConfig, SimulationConfig


class CircularBinary(Preset):
    """Circular two-body orbit in the xy-plane.

    With masses m1, m2 and separation a the angular frequency is
    omega = sqrt(G * (m1 + m2) / a^3); body 1 sits at -a*m2/M on the x-axis
    and body 2 at +a*m1/M, both moving counter-clockwise.
    """

    def __init__(
        self,
        mass_1: float = 1.0,
        mass_2: float = 1.0,
        separation: float = 1.0,
        G: float = 1.0,
        dt: float = 0.01,
        softening: float = 0.0,
        integrator: str = "leapfrog",
        seed: int = None,
    ):
        super().__init__(seed)
        self.mass_1 = mass_1
        self.mass_2 = mass_2
        self.separation = separation
        self.G = G
        self.dt = dt
        self.softening = softening
        self.integrator = integrator

    @property
    def name(self) -> str:
        return "binary"

    @property
    def angular_frequency(self) -> float:
        total = self.mass_1 + self.mass_2
        return float(np.sqrt(self.G * total / self.separation ** 3))

    @property
    def period(self) -> float:
        """Analytic orbital period 2*pi/omega."""
        return 2.0 * np.pi / self.angular_frequency

    def generate(self) -> SimulationConfig:
        total = self.mass_1 + self.mass_2
        omega = self.angular_frequency
        r1 = self.separation * self.mass_2 / total
        r2 = self.separation * self.mass_1 / total
        bodies = [
            BodyConfig(name="primary", mass=self.mass_1, position=(-r1, 0.0, 0.0), velocity=(0.0, -omega * r1, 0.0)),
            BodyConfig(name="secondary", mass=self.mass_2, position=(r2, 0.0, 0.0), velocity=(0.0, omega * r2, 0.0)),
        ]
        return SimulationConfig(
            bodies=bodies,
            dt=self.dt,
            G=self.G,
            softening=self.softening,
            integrator=self.integrator,
        )
