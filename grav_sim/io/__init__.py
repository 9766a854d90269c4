"""I/O utilities for snapshots and trajectory output."""

from grav_sim.io.state_io import decode_state, encode_state, load_state, save_state
from grav_sim.io.trajectory import TrajectoryRecorder

__all__ = ["decode_state", "encode_state", "load_state", "save_state", "TrajectoryRecorder"]
