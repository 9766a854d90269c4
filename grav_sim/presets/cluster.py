"""Random star cluster preset."""

import numpy as np

from grav_sim.presets.base import Preset
from grav_sim.utils.config import BodyConfig, SimulationConfig


class StarCluster(Preset):
    """Uniform sphere of equal-mass stars with small random velocities.

    Reproducible for a given seed. The centre of mass is moved to the origin
    and its velocity removed.
    """

    def __init__(
        self,
        n_bodies: int = 100,
        seed: int = 42,
        radius: float = 5.0,
        total_mass: float = 1.0,
        velocity_scale: float = 0.5,
        softening: float = 0.05,
        dt: float = 0.01,
        force_method: str = "direct",
        theta: float = 0.0,
    ):
        super().__init__(seed)
        self.n_bodies = n_bodies
        self.radius = radius
        self.total_mass = total_mass
        self.velocity_scale = velocity_scale
        self.softening = softening
        self.dt = dt
        self.force_method = force_method
        self.theta = theta

    @property
    def name(self) -> str:
        return "cluster"

    def generate(self) -> SimulationConfig:
        n = self.n_bodies
        rng = np.random.default_rng(self.seed)

        # Uniform in volume: r ~ R * u^(1/3), isotropic directions
        r = self.radius * rng.uniform(0.0, 1.0, n) ** (1.0 / 3.0)
        directions = rng.normal(size=(n, 3))
        directions /= np.linalg.norm(directions, axis=1, keepdims=True)
        positions = r[:, np.newaxis] * directions

        # Velocities scaled to a fraction of the virial speed sqrt(G*M/R)
        v_scale = self.velocity_scale * np.sqrt(self.total_mass / self.radius)
        velocities = rng.normal(0.0, v_scale / np.sqrt(3.0), size=(n, 3))

        positions -= positions.mean(axis=0)
        velocities -= velocities.mean(axis=0)

        mass = self.total_mass / n
        bodies = [
            BodyConfig(
                name=f"star-{i}",
                mass=mass,
                position=tuple(float(c) for c in positions[i]),
                velocity=tuple(float(c) for c in velocities[i]),
            )
            for i in range(n)
        ]
        return SimulationConfig(
            bodies=bodies,
            dt=self.dt,
            G=1.0,
            softening=self.softening,
            force_method=self.force_method,
            theta=self.theta,
        )
