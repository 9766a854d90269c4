"""Leapfrog / velocity Verlet step (second order, symplectic)."""

from typing import Callable, Tuple

import numpy as np


def leapfrog_step(
    positions: np.ndarray,
    velocities: np.ndarray,
    accelerations: np.ndarray,
    dt: float,
    acceleration_fn: Callable[[np.ndarray], np.ndarray],
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Kick-drift-kick velocity Verlet.

    1. v_half = v + 0.5*a_old*dt
    2. x_new = x + v_half*dt
    3. a_new = a(x_new)
    4. v_new = v_half + 0.5*a_new*dt

    Energy error stays bounded over arbitrarily long runs instead of
    drifting, which is why this is the default scheme.

    Args:
        positions: (n, 3) positions at t
        velocities: (n, 3) velocities at t
        accelerations: (n, 3) accelerations at the current positions
        dt: Time step
        acceleration_fn: Maps (n, 3) positions to (n, 3) accelerations

    Returns:
        Tuple of (new_positions, new_velocities, new_accelerations); the
        accelerations are at the new positions and can seed the next step
    """
    v_half = velocities + (0.5 * dt) * accelerations
    new_positions = positions + dt * v_half
    new_accelerations = acceleration_fn(new_positions)
    new_velocities = v_half + (0.5 * dt) * new_accelerations
    return new_positions, new_velocities, new_accelerations
