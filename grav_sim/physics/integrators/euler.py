"""Semi-implicit (symplectic) Euler step, first order."""

from typing import Callable, Tuple

import numpy as np


def euler_step(
    positions: np.ndarray,
    velocities: np.ndarray,
    accelerations: np.ndarray,
    dt: float,
    acceleration_fn: Callable[[np.ndarray], np.ndarray],
) -> Tuple[np.ndarray, np.ndarray, None]:
    """v_new = v + a*dt, then r_new = r + v_new*dt.

    Updating the position with the new velocity keeps the scheme
    symplectic. Cheap but only first order; useful as a baseline.
    """
    new_velocities = velocities + dt * accelerations
    new_positions = positions + dt * new_velocities
    return new_positions, new_velocities, None
