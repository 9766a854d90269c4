"""Trajectory output as a stream of YAML documents.

Each recorded step is appended as one document::

    ---
    step: 120
    time: 1.2
    bodies:
    - name: alpha
      mass: 1.0
      position: [...]
      velocity: [...]
      acceleration: [...]
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from grav_sim.errors import StorageIOFailure
from grav_sim.physics.force_calculator import compute_accelerations_direct
from grav_sim.physics.state import SimulationState

logger = logging.getLogger(__name__)

DEFAULT_TRAJECTORY_FILE = "output.yaml"


def trajectory_entry(state: SimulationState) -> Dict[str, Any]:
    """One trajectory document for a state."""
    accelerations = state.accelerations
    if accelerations is None:
        accelerations = compute_accelerations_direct(state.positions, state.masses, state.G, state.softening)
    return {
        "step": int(state.step_count),
        "time": float(state.time),
        "bodies": [
            {
                "name": state.names[i],
                "mass": float(state.masses[i]),
                "position": [float(c) for c in state.positions[i]],
                "velocity": [float(c) for c in state.velocities[i]],
                "acceleration": [float(c) for c in accelerations[i]],
            }
            for i in range(state.n_bodies)
        ],
    }


class TrajectoryRecorder:
    """Frame subscriber that appends every Nth step to a YAML file.

    Usage::

        recorder = TrajectoryRecorder("run.yaml", every=10)
        simulator.subscribe(recorder)
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_TRAJECTORY_FILE, every: int = 1, overwrite: bool = True):
        """Initialize recorder.

        Args:
            path: Output YAML file
            every: Record steps whose step count is a multiple of this
            overwrite: Truncate an existing file before the first record
        """
        if every < 1:
            raise ValueError(f"every must be >= 1, got {every}")
        self.path = Path(path)
        self.every = every
        self.records_written = 0
        self._last_step: Optional[int] = None
        if overwrite:
            self._open("w").close()

    def _open(self, mode: str):
        try:
            return open(self.path, mode, encoding="utf-8")
        except OSError as e:
            raise StorageIOFailure(self.path, f"cannot open trajectory file: {e}") from e

    def record(self, state: SimulationState) -> bool:
        """Append ``state`` if its step is due. Returns True if written."""
        step = state.step_count
        if step % self.every or step == self._last_step:
            return False
        entry = trajectory_entry(state)
        with self._open("a") as f:
            try:
                yaml.safe_dump(entry, f, explicit_start=True, default_flow_style=None, sort_keys=False)
            except OSError as e:
                raise StorageIOFailure(self.path, f"cannot write trajectory: {e}") from e
        self._last_step = step
        self.records_written += 1
        return True

    def __call__(self, frame):
        self.record(frame.state)


def read_trajectory(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """Load every document of a trajectory file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return [doc for doc in yaml.safe_load_all(f) if doc is not None]
    except OSError as e:
        raise StorageIOFailure(path, f"cannot read trajectory: {e}") from e
