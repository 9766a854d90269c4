"""Diagnostics for N-body simulations."""

from typing import Dict, Tuple

import numpy as np

from grav_sim.physics.state import SimulationState
from grav_sim.physics.vector import magnitude_squared


class Diagnostics:
    """Conserved quantities, computed consistently with the force law."""

    def __init__(self, G: float = 1.0, softening: float = 0.0):
        """Initialize diagnostics.

        Args:
            G: Gravitational constant
            softening: Softening length (must match the force calculation)
        """
        self.G = G
        self.softening = max(0.0, softening)

    @classmethod
    def for_state(cls, state: SimulationState) -> "Diagnostics":
        return cls(G=state.G, softening=state.softening)

    def compute_energies(self, positions, velocities, masses) -> Tuple[float, float, float]:
        """Compute kinetic, potential, and total energy.

        Potential uses the same Plummer softening as the force law:
        U = -G * sum_{i<j} m_i * m_j / sqrt(r_ij^2 + eps^2)

        Coincident pairs with zero softening are skipped, mirroring the
        zero force they receive.

        Returns:
            Tuple of (kinetic_energy, potential_energy, total_energy)
        """
        positions = np.asarray(positions, dtype=np.float64)
        velocities = np.asarray(velocities, dtype=np.float64)
        masses = np.asarray(masses, dtype=np.float64).reshape(-1)

        K = 0.5 * float(np.sum(masses * magnitude_squared(velocities)))

        n = masses.shape[0]
        U = 0.0
        if n > 1:
            i, j = np.triu_indices(n, k=1)
            d_sq = magnitude_squared(positions[j] - positions[i]) + self.softening ** 2
            valid = d_sq > 0.0
            U = -self.G * float(np.sum(masses[i][valid] * masses[j][valid] / np.sqrt(d_sq[valid])))
        return K, U, K + U

    def compute_momentum(self, velocities, masses) -> np.ndarray:
        """Total linear momentum, shape (3,)."""
        masses = np.asarray(masses, dtype=np.float64).reshape(-1)
        return np.sum(masses[:, np.newaxis] * np.asarray(velocities, dtype=np.float64), axis=0)

    def compute_angular_momentum(self, positions, velocities, masses) -> np.ndarray:
        """Total angular momentum about the origin, shape (3,)."""
        masses = np.asarray(masses, dtype=np.float64).reshape(-1)
        return np.sum(masses[:, np.newaxis] * np.cross(positions, velocities), axis=0)

    def compute_center_of_mass(self, positions, masses) -> np.ndarray:
        masses = np.asarray(masses, dtype=np.float64).reshape(-1)
        total = np.sum(masses)
        if total == 0.0:
            return np.zeros(3)
        return np.sum(masses[:, np.newaxis] * np.asarray(positions, dtype=np.float64), axis=0) / total

    def summary(self, state: SimulationState) -> Dict[str, float]:
        """Scalar diagnostics for status lines and logs."""
        K, U, E = self.compute_energies(state.positions, state.velocities, state.masses)
        P = self.compute_momentum(state.velocities, state.masses)
        L = self.compute_angular_momentum(state.positions, state.velocities, state.masses)
        return {
            "kinetic": K,
            "potential": U,
            "energy": E,
            "momentum": float(np.linalg.norm(P)),
            "angular_momentum": float(np.linalg.norm(L)),
        }
