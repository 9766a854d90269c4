"""Physics engine for N-body simulations."""

from grav_sim.physics.state import Body, IntegratorKind, SimulationState
from grav_sim.physics.vector import Vector3

__all__ = ["Body", "IntegratorKind", "SimulationState", "Vector3"]
