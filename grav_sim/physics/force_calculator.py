"""Gravitational acceleration on every body.

The direct O(N^2) sum is the reference. The Barnes-Hut octree is an
approximation behind the same contract; with ``theta=0`` it opens every node
and reproduces the direct sum up to summation order.
"""

import logging
from typing import Literal

import numpy as np

from grav_sim.physics.barnes_hut import BARNES_HUT_N_THRESHOLD, compute_accelerations_barnes_hut
from grav_sim.physics.vector import magnitude_squared
from grav_sim.utils.logging_setup import TRACE

logger = logging.getLogger(__name__)

# Largest pairwise block (rows * n) evaluated at once by the direct sum
_DIRECT_BLOCK_PAIRS = 4_000_000


def pair_acceleration(
    position_i: np.ndarray,
    position_j: np.ndarray,
    mass_j: float,
    G: float,
    softening: float,
) -> np.ndarray:
    """Acceleration of body i due to body j alone.

    a_ij = G * m_j * r / (|r|^2 + eps^2)^(3/2) with r = x_j - x_i. With zero
    softening and zero separation the contribution is defined as zero.
    """
    eps = max(0.0, softening)
    r = np.asarray(position_j, dtype=np.float64) - np.asarray(position_i, dtype=np.float64)
    d_sq = float(np.dot(r, r)) + eps * eps
    if d_sq == 0.0:
        return np.zeros(3)
    return (G * mass_j / d_sq ** 1.5) * r


def compute_accelerations_direct(
    positions: np.ndarray,
    masses: np.ndarray,
    G: float,
    softening: float,
) -> np.ndarray:
    """Reference O(N^2) accelerations, shape ``(n, 3)``.

    Softening is added to the squared separation before any division, so the
    result is finite for coincident bodies whenever ``softening > 0``.
    Coincident pairs with zero softening contribute nothing.
    """
    positions = np.asarray(positions, dtype=np.float64)
    masses = np.asarray(masses, dtype=np.float64).reshape(-1)
    n = positions.shape[0]
    accelerations = np.zeros((n, 3))
    if n < 2:
        return accelerations

    eps_sq = max(0.0, softening) ** 2
    rows = max(1, _DIRECT_BLOCK_PAIRS // n)
    for start in range(0, n, rows):
        stop = min(n, start + rows)
        # r_diff[i, j] = x_j - x_i
        r_diff = positions[np.newaxis, :, :] - positions[start:stop, np.newaxis, :]
        d_sq = magnitude_squared(r_diff) + eps_sq
        with np.errstate(divide="ignore", invalid="ignore"):
            inv_d3 = np.where(d_sq > 0.0, d_sq ** -1.5, 0.0)
        # No self-interaction
        inv_d3[np.arange(stop - start), np.arange(start, stop)] = 0.0
        accelerations[start:stop] = G * np.einsum("ij,j,ijk->ik", inv_d3, masses, r_diff)
    return accelerations


class ForceCalculator:
    """Selects the force algorithm; every method returns ``(n, 3)`` accelerations."""

    def __init__(
        self,
        method: Literal["direct", "barnes_hut", "auto"] = "direct",
        theta: float = 0.5,
        barnes_hut_threshold: int = BARNES_HUT_N_THRESHOLD,
    ):
        """Initialize force calculator.

        Args:
            method: ``"direct"``, ``"barnes_hut"``, or ``"auto"`` (octree above
                ``barnes_hut_threshold`` bodies)
            theta: Opening angle for the octree; 0 is exact
            barnes_hut_threshold: Body count above which ``"auto"`` uses the octree
        """
        if method not in ("direct", "barnes_hut", "auto"):
            raise ValueError(f"Unknown force method: {method}")
        if theta < 0.0:
            raise ValueError(f"theta must be non-negative, got {theta}")
        self.method = method
        self.theta = theta
        self.barnes_hut_threshold = barnes_hut_threshold

    def uses_barnes_hut(self, n_bodies: int) -> bool:
        if self.method == "barnes_hut":
            return True
        return self.method == "auto" and n_bodies > self.barnes_hut_threshold

    def compute_accelerations(
        self,
        positions: np.ndarray,
        masses: np.ndarray,
        G: float,
        softening: float,
    ) -> np.ndarray:
        """Compute gravitational accelerations on all bodies.

        Args:
            positions: (n, 3) array
            masses: (n,) array
            G: Gravitational constant
            softening: Softening length, clamped to >= 0

        Returns:
            (n, 3) accelerations; all zero for zero or one body
        """
        n = positions.shape[0]
        if self.uses_barnes_hut(n):
            logger.log(TRACE, "barnes-hut forces for %d bodies (theta=%s)", n, self.theta)
            return compute_accelerations_barnes_hut(positions, masses, G, softening, self.theta)
        return compute_accelerations_direct(positions, masses, G, softening)

    def for_state(self, state) -> np.ndarray:
        """Accelerations at the current positions of a ``SimulationState``."""
        return self.compute_accelerations(state.positions, state.masses, state.G, state.softening)
