"""Classical fixed-step Runge-Kutta 4th order step."""

from typing import Callable, Tuple

import numpy as np


def rk4_step(
    positions: np.ndarray,
    velocities: np.ndarray,
    accelerations: np.ndarray,
    dt: float,
    acceleration_fn: Callable[[np.ndarray], np.ndarray],
) -> Tuple[np.ndarray, np.ndarray, None]:
    """RK4 step for dr/dt = v, dv/dt = a(r).

    k1_r = v                 k1_v = a(r)
    k2_r = v + k1_v*dt/2     k2_v = a(r + k1_r*dt/2)
    k3_r = v + k2_v*dt/2     k3_v = a(r + k2_r*dt/2)
    k4_r = v + k3_v*dt       k4_v = a(r + k3_r*dt)

    r_new = r + (k1_r + 2*k2_r + 2*k3_r + k4_r)*dt/6
    v_new = v + (k1_v + 2*k2_v + 2*k3_v + k4_v)*dt/6

    Three extra force evaluations per step. Not symplectic: energy drifts
    slowly, so it suits short accuracy-sensitive runs.

    Returns:
        Tuple of (new_positions, new_velocities, None); accelerations at the
        new positions are not computed here
    """
    half = 0.5 * dt

    k1_r = velocities
    k1_v = accelerations

    k2_r = velocities + half * k1_v
    k2_v = acceleration_fn(positions + half * k1_r)

    k3_r = velocities + half * k2_v
    k3_v = acceleration_fn(positions + half * k2_r)

    k4_r = velocities + dt * k3_v
    k4_v = acceleration_fn(positions + dt * k3_r)

    sixth = dt / 6.0
    new_positions = positions + sixth * (k1_r + 2.0 * k2_r + 2.0 * k3_r + k4_r)
    new_velocities = velocities + sixth * (k1_v + 2.0 * k2_v + 2.0 * k3_v + k4_v)
    return new_positions, new_velocities, None
