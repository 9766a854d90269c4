"""Sun and the eight planets on circular, coplanar orbits."""

import numpy as np

from grav_sim.presets.base import Preset
from grav_sim.utils.config import BodyConfig, SimulationConfig

# Units: AU, years, solar masses => G = 4*pi^2
G_AU_YR = 4.0 * np.pi ** 2

# (name, semi-major axis [AU], mass [M_sun])
PLANETS = (
    ("mercury", 0.387, 1.660e-7),
    ("venus", 0.723, 2.448e-6),
    ("earth", 1.000, 3.003e-6),
    ("mars", 1.524, 3.227e-7),
    ("jupiter", 5.203, 9.545e-4),
    ("saturn", 9.537, 2.858e-4),
    ("uranus", 19.19, 4.366e-5),
    ("neptune", 30.07, 5.151e-5),
)


class SolarSystem(Preset):
    """Simplified solar system.

    Planets start at fixed phase angles on circular orbits; the Sun is given
    the velocity that makes total momentum zero.
    """

    def __init__(self, dt: float = 0.001, seed: int = None):
        super().__init__(seed)
        self.dt = dt

    @property
    def name(self) -> str:
        return "solar_system"

    def generate(self) -> SimulationConfig:
        bodies = []
        momentum = np.zeros(3)
        for k, (name, a, mass) in enumerate(PLANETS):
            phase = 0.7 * k
            v = np.sqrt(G_AU_YR / a)
            position = (a * np.cos(phase), a * np.sin(phase), 0.0)
            velocity = (-v * np.sin(phase), v * np.cos(phase), 0.0)
            momentum += mass * np.array(velocity)
            bodies.append(BodyConfig(
                name=name,
                mass=mass,
                position=tuple(float(c) for c in position),
                velocity=tuple(float(c) for c in velocity),
            ))
        sun_velocity = tuple(float(c) for c in -momentum)
        bodies.insert(0, BodyConfig(name="sun", mass=1.0, position=(0.0, 0.0, 0.0), velocity=sun_velocity))
        return SimulationConfig(bodies=bodies, dt=self.dt, G=G_AU_YR, softening=0.0, integrator="leapfrog")
