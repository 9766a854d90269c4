"""Numerical integrators for N-body simulations.

Each ``IntegratorKind`` maps to exactly one step function with the signature

    step(positions, velocities, accelerations, dt, acceleration_fn)
        -> (new_positions, new_velocities, new_accelerations_or_None)

where ``accelerations`` are the accelerations at ``positions`` and
``acceleration_fn`` evaluates accelerations at arbitrary positions.
"""

from typing import Callable, Dict, Optional, Tuple

import numpy as np

from grav_sim.physics.integrators.euler import euler_step
from grav_sim.physics.integrators.rk4 import rk4_step
from grav_sim.physics.integrators.verlet import leapfrog_step
from grav_sim.physics.state import IntegratorKind

StepFunction = Callable[..., Tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]]

STEPPERS: Dict[IntegratorKind, StepFunction] = {
    IntegratorKind.LEAPFROG: leapfrog_step,
    IntegratorKind.RK4: rk4_step,
    IntegratorKind.EULER: euler_step,
}

ORDERS: Dict[IntegratorKind, int] = {
    IntegratorKind.LEAPFROG: 2,
    IntegratorKind.RK4: 4,
    IntegratorKind.EULER: 1,
}


def integrate(
    kind: IntegratorKind,
    positions: np.ndarray,
    velocities: np.ndarray,
    accelerations: np.ndarray,
    dt: float,
    acceleration_fn: Callable[[np.ndarray], np.ndarray],
) -> Tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]:
    """Advance positions and velocities by exactly one ``dt`` with ``kind``."""
    return STEPPERS[IntegratorKind.parse(kind)](positions, velocities, accelerations, dt, acceleration_fn)


__all__ = ["STEPPERS", "ORDERS", "integrate", "leapfrog_step", "rk4_step", "euler_step"]
