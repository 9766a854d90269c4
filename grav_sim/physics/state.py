"""Body and simulation state model."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from grav_sim.errors import InvalidConfiguration
from grav_sim.physics.vector import Vector3


G_SI = 6.67430e-11  # CODATA 2018, m^3 kg^-1 s^-2
DEFAULT_SOFTENING = 1e-3
DEFAULT_DT = 0.01


class IntegratorKind(Enum):
    """Closed set of time-stepping schemes.

    Adding a scheme means adding a member here and registering its step
    function in ``grav_sim.physics.integrators.STEPPERS``.
    """

    LEAPFROG = "leapfrog"
    RK4 = "rk4"
    EULER = "euler"

    @classmethod
    def parse(cls, value) -> "IntegratorKind":
        """Accept an ``IntegratorKind`` or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        aliases = {"verlet": "leapfrog", "velocity_verlet": "leapfrog", "runge_kutta": "rk4"}
        name = aliases.get(name, name)
        try:
            return cls(name)
        except ValueError:
            valid = [k.value for k in cls]
            raise InvalidConfiguration("integrator", f"unknown integrator {value!r}, expected one of {valid}")


@dataclass(frozen=True)
class Body:
    """A point mass. Read-only view of one row of a ``SimulationState``."""

    name: str
    mass: float
    position: Vector3
    velocity: Vector3


@dataclass(eq=False)
class SimulationState:
    """Structure-of-arrays state of one simulation run.

    Row ``i`` of ``positions``, ``velocities`` and ``masses`` describes body
    ``i``; body order is fixed for the lifetime of the state and defines the
    indexing used for force pairs.
    """

    positions: np.ndarray
    velocities: np.ndarray
    masses: np.ndarray
    names: List[str]
    dt: float = DEFAULT_DT
    G: float = G_SI
    softening: float = DEFAULT_SOFTENING
    integrator: IntegratorKind = IntegratorKind.LEAPFROG
    time: float = 0.0
    step_count: int = 0
    # Accelerations at the current positions, if already known.
    accelerations: Optional[np.ndarray] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        self.positions = np.array(self.positions, dtype=np.float64).reshape(-1, 3)
        self.velocities = np.array(self.velocities, dtype=np.float64).reshape(-1, 3)
        self.masses = np.array(self.masses, dtype=np.float64).reshape(-1)
        self.names = list(self.names)
        self.integrator = IntegratorKind.parse(self.integrator)
        self.dt = float(self.dt)
        self.G = float(self.G)
        self.time = float(self.time)
        self.step_count = int(self.step_count)
        # Negative softening is clamped, never used.
        self.softening = max(0.0, float(self.softening))

    @classmethod
    def from_bodies(cls, bodies: Sequence[Body], **params) -> "SimulationState":
        """Build a state from a sequence of ``Body`` records."""
        n = len(bodies)
        positions = np.zeros((n, 3))
        velocities = np.zeros((n, 3))
        masses = np.zeros(n)
        for i, body in enumerate(bodies):
            positions[i] = body.position
            velocities[i] = body.velocity
            masses[i] = body.mass
        return cls(positions, velocities, masses, [b.name for b in bodies], **params)

    @property
    def n_bodies(self) -> int:
        return self.masses.shape[0]

    @property
    def bodies(self) -> List[Body]:
        return [
            Body(
                name=self.names[i],
                mass=float(self.masses[i]),
                position=Vector3.from_iterable(self.positions[i]),
                velocity=Vector3.from_iterable(self.velocities[i]),
            )
            for i in range(self.n_bodies)
        ]

    @property
    def total_mass(self) -> float:
        return float(np.sum(self.masses))

    @property
    def frozen(self) -> bool:
        return not self.positions.flags.writeable

    def is_finite(self) -> bool:
        """True when every position and velocity component is finite."""
        return bool(np.all(np.isfinite(self.positions)) and np.all(np.isfinite(self.velocities)))

    def copy(self, frozen: bool = False) -> "SimulationState":
        """Independently-owned copy.

        With ``frozen=True`` the copy's arrays are read-only, which is what
        consumers outside the stepping thread receive.
        """
        accelerations = None if self.accelerations is None else self.accelerations.copy()
        clone = SimulationState(
            positions=self.positions,
            velocities=self.velocities,
            masses=self.masses,
            names=list(self.names),
            dt=self.dt,
            G=self.G,
            softening=self.softening,
            integrator=self.integrator,
            time=self.time,
            step_count=self.step_count,
        )
        clone.accelerations = accelerations
        if frozen:
            for array in (clone.positions, clone.velocities, clone.masses, clone.accelerations):
                if array is not None:
                    array.flags.writeable = False
        return clone

    def validate(self):
        """Check the invariants a state must satisfy before it is stepped.

        Raises:
            InvalidConfiguration: naming the first violated field
        """
        n = self.n_bodies
        if n == 0:
            raise InvalidConfiguration("bodies", "at least one body is required")
        if self.positions.shape != (n, 3) or self.velocities.shape != (n, 3) or len(self.names) != n:
            raise InvalidConfiguration("bodies", "positions, velocities, masses and names disagree in length")
        for i in range(n):
            mass = self.masses[i]
            if not np.isfinite(mass) or mass <= 0.0:
                raise InvalidConfiguration(f"bodies[{i}].mass", f"must be positive and finite, got {mass}")
            if not np.all(np.isfinite(self.positions[i])):
                raise InvalidConfiguration(f"bodies[{i}].position", "components must be finite")
            if not np.all(np.isfinite(self.velocities[i])):
                raise InvalidConfiguration(f"bodies[{i}].velocity", "components must be finite")
        if not np.isfinite(self.dt) or self.dt <= 0.0:
            raise InvalidConfiguration("dt", f"must be positive and finite, got {self.dt}")
        if not np.isfinite(self.G):
            raise InvalidConfiguration("G", f"must be finite, got {self.G}")
        if not np.isfinite(self.softening):
            raise InvalidConfiguration("softening", f"must be finite, got {self.softening}")
        if not np.isfinite(self.time) or self.time < 0.0:
            raise InvalidConfiguration("time", f"must be non-negative, got {self.time}")
        if self.step_count < 0:
            raise InvalidConfiguration("step_count", f"must be non-negative, got {self.step_count}")
