"""
Gravity Simulator - an interactive N-body gravitational simulation.

Features:
- Direct-sum and Barnes-Hut force calculation with Plummer softening
- Leapfrog, RK4 and semi-implicit Euler integrators
- Background stepping loop with pause, resume, single-step and save
- Versioned JSON/NPZ snapshots and YAML trajectory recording
- Preset scenarios (figure-eight, binary, solar system, cluster)
"""

__version__ = "0.1.0"

from grav_sim.errors import GravSimError
from grav_sim.physics.builder import build_state
from grav_sim.physics.simulator import Frame, RunMode, Simulator
from grav_sim.physics.state import Body, IntegratorKind, SimulationState

__all__ = [
    "GravSimError",
    "build_state",
    "Frame",
    "RunMode",
    "Simulator",
    "Body",
    "IntegratorKind",
    "SimulationState",
]
