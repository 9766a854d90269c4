"""Main simulator controller.

The ``Simulator`` owns the single live ``SimulationState`` and is the only
thing that ever advances it. Consumers receive frozen copies (``Frame``s);
other threads talk to it through an ordered command queue.

Mode machine::

    STOPPED (initial) -> RUNNING <-> PAUSED -> STOPPED (terminal)

Quit or divergence makes the stop terminal; a halted simulator can still
be snapshotted and saved.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from grav_sim.errors import GravSimError, SimulationDiverged, SimulationHalted
from grav_sim.io.state_io import save_state
from grav_sim.physics.diagnostics import Diagnostics
from grav_sim.physics.force_calculator import ForceCalculator
from grav_sim.physics.integrators import integrate
from grav_sim.physics.state import SimulationState
from grav_sim.utils.logging_setup import TRACE

logger = logging.getLogger(__name__)


class RunMode(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class CommandKind(Enum):
    PAUSE = "pause"
    RESUME = "resume"
    STEP = "step"
    SAVE = "save"
    QUIT = "quit"


@dataclass(frozen=True)
class Command:
    """A control request delivered to the stepping loop."""
    kind: CommandKind
    path: Optional[str] = None
    fmt: Optional[str] = None


@dataclass(frozen=True)
class Frame:
    """What a consumer sees: a frozen state plus the run mode.

    ``error`` carries a pending failure notice (divergence, failed save).
    """
    state: SimulationState
    mode: RunMode
    error: Optional[GravSimError] = None

    @property
    def diverged(self) -> bool:
        return isinstance(self.error, SimulationDiverged)


class Simulator:
    """Step loop and controller for one simulation run."""

    # How long an idle (paused) loop waits for a command before re-checking
    IDLE_POLL_S = 0.05

    def __init__(
        self,
        state: SimulationState,
        force_calculator: Optional[ForceCalculator] = None,
        publish_every: int = 1,
        step_interval: float = 0.0,
    ):
        """Initialize simulator.

        Args:
            state: Initial state; validated, then copied so the simulator
                owns it exclusively
            force_calculator: Force algorithm (default: direct sum)
            publish_every: Publish a frame every N automatic steps
            step_interval: Seconds to sleep between automatic steps
        """
        state.validate()
        if publish_every < 1:
            raise ValueError(f"publish_every must be >= 1, got {publish_every}")
        self._state = state.copy()
        self.force_calculator = force_calculator or ForceCalculator()
        self.publish_every = publish_every
        self.step_interval = step_interval

        self._mode = RunMode.STOPPED
        self._halted = False
        self._commands: "queue.Queue[Command]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._subscribers: List[Callable[[Frame], None]] = []
        self._latest: Optional[Frame] = None
        self._pending_error: Optional[GravSimError] = None
        self.last_error: Optional[GravSimError] = None

        self._publish()

    # ------------------------------------------------------------------
    # Read-only accessors

    @property
    def mode(self) -> RunMode:
        return self._mode

    @property
    def halted(self) -> bool:
        return self._halted

    @property
    def time(self) -> float:
        return self._state.time

    @property
    def step_count(self) -> int:
        return self._state.step_count

    def snapshot(self) -> SimulationState:
        """Frozen, independently-owned copy of the current state.

        The live state object is replaced, never modified, when a step
        commits, so copying it from any thread yields a consistent state.
        """
        return self._state.copy(frozen=True)

    def latest_frame(self) -> Optional[Frame]:
        return self._latest

    def get_energy(self) -> float:
        """Current total energy (kinetic + softened potential)."""
        state = self._state
        return Diagnostics.for_state(state).compute_energies(state.positions, state.velocities, state.masses)[2]

    def subscribe(self, callback: Callable[[Frame], None]):
        """Register a frame consumer. Callbacks run on the stepping thread."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Frame], None]):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    # ------------------------------------------------------------------
    # Control surface

    def send(self, command: Command):
        """Enqueue a command for the stepping loop (FIFO)."""
        logger.debug("Queued command %s", command.kind.value)
        self._commands.put(command)

    def start(self):
        """Begin automatic stepping on a background thread."""
        if self._halted:
            raise SimulationHalted("simulation has stopped; load or build a new one")
        if self._loop_alive():
            self.send(Command(CommandKind.RESUME))
            return
        self._mode = RunMode.RUNNING
        logger.info("Starting stepping loop at step %d", self._state.step_count)
        self._thread = threading.Thread(target=self._run_loop, name="grav-sim-stepper", daemon=True)
        self._thread.start()

    def pause(self):
        """Stop automatic stepping; the state stays as of the last whole step."""
        if self._is_foreign_thread():
            self.send(Command(CommandKind.PAUSE))
            return
        self._do_pause()

    def resume(self):
        """Resume automatic stepping."""
        if self._is_foreign_thread():
            self.send(Command(CommandKind.RESUME))
            return
        if not self._loop_alive() and threading.current_thread() is not self._thread:
            self.start()
            return
        self._do_resume()

    def step(self) -> Optional[SimulationState]:
        """Advance exactly one timestep.

        Valid while STOPPED (before the first start) or PAUSED. Has no
        effect while RUNNING.

        Returns:
            Frozen copy of the new state, or ``None`` when the step was
            ignored or handed to the stepping thread

        Raises:
            SimulationDiverged: the step produced non-finite values; the
                pre-step state is kept and the simulator halts
            SimulationHalted: the simulator already stopped for good
        """
        if self._is_foreign_thread():
            self.send(Command(CommandKind.STEP))
            return None
        return self._do_step()

    def run_steps(self, k: int) -> SimulationState:
        """Run k steps synchronously on the calling thread.

        Frames are published every ``publish_every`` steps and after the
        last one.
        """
        if self._is_foreign_thread():
            raise RuntimeError("run_steps() cannot be used while the stepping loop is alive")
        self._ensure_not_halted()
        if self._mode is RunMode.RUNNING:
            raise RuntimeError("run_steps() requires a stopped or paused simulator")
        for i in range(k):
            self._advance()
            if (i + 1) % self.publish_every == 0:
                self._publish()
        if k % self.publish_every:
            self._publish()
        return self.snapshot()

    def save(self, path: str, fmt: Optional[str] = None):
        """Persist a snapshot of the current (or last good) state.

        From a foreign thread while the loop is alive the request is queued
        and failures are reported through ``last_error`` and the next frame.

        Raises:
            StorageIOFailure: when saving synchronously and the write fails
        """
        if self._is_foreign_thread():
            self.send(Command(CommandKind.SAVE, path=str(path), fmt=fmt))
            return None
        return save_state(self.snapshot(), path, fmt)

    def quit(self):
        """Stop for good. Observed at the top of the next loop iteration."""
        if self._is_foreign_thread():
            self.send(Command(CommandKind.QUIT))
            return
        self._do_quit()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the stepping thread; True if it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    # ------------------------------------------------------------------
    # Internals

    def _loop_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _is_foreign_thread(self) -> bool:
        return self._loop_alive() and threading.current_thread() is not self._thread

    def _ensure_not_halted(self):
        if self._halted:
            raise SimulationHalted("simulation has stopped; load or build a new one")

    def _accelerations(self, positions: np.ndarray) -> np.ndarray:
        state = self._state
        return self.force_calculator.compute_accelerations(positions, state.masses, state.G, state.softening)

    def _advance(self):
        """One integrator step. Commits only if every component is finite."""
        state = self._state
        if state.accelerations is None:
            state.accelerations = self._accelerations(state.positions)

        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            new_positions, new_velocities, new_accelerations = integrate(
                state.integrator,
                state.positions,
                state.velocities,
                state.accelerations,
                state.dt,
                self._accelerations,
            )

        if not (np.all(np.isfinite(new_positions)) and np.all(np.isfinite(new_velocities))):
            error = SimulationDiverged(state.step_count, state.copy(frozen=True))
            logger.error("Diverged advancing from step %d (t=%g); halting", state.step_count, state.time)
            self._halt(error)
            raise error

        next_state = SimulationState(
            positions=new_positions,
            velocities=new_velocities,
            masses=state.masses,
            names=state.names,
            dt=state.dt,
            G=state.G,
            softening=state.softening,
            integrator=state.integrator,
            time=state.time + state.dt,
            step_count=state.step_count + 1,
        )
        next_state.accelerations = new_accelerations
        self._state = next_state
        logger.log(TRACE, "step %d t=%g", next_state.step_count, next_state.time)

    def _halt(self, error: Optional[GravSimError] = None):
        self._mode = RunMode.STOPPED
        self._halted = True
        if error is not None:
            self.last_error = error
            self._pending_error = error
        self._publish()

    def _publish(self):
        error = self._pending_error
        frame = Frame(state=self.snapshot(), mode=self._mode, error=error)
        # Divergence stays pending; other notices are delivered once
        if not isinstance(error, SimulationDiverged):
            self._pending_error = None
        self._latest = frame
        for callback in list(self._subscribers):
            try:
                callback(frame)
            except Exception as e:
                logger.exception("Frame subscriber %r failed", callback)
                if not isinstance(self._pending_error, SimulationDiverged):
                    self.last_error = e if isinstance(e, GravSimError) else GravSimError(f"frame subscriber failed: {e}")
                    self._pending_error = self.last_error

    def _do_pause(self):
        if self._halted:
            logger.warning("pause ignored: simulation has stopped")
            return
        if self._mode is not RunMode.PAUSED:
            self._mode = RunMode.PAUSED
            logger.info("Paused at step %d", self._state.step_count)
            self._publish()

    def _do_resume(self):
        if self._halted:
            logger.warning("resume ignored: simulation has stopped")
            return
        if self._mode is not RunMode.RUNNING:
            self._mode = RunMode.RUNNING
            logger.info("Resumed at step %d", self._state.step_count)
            self._publish()

    def _do_step(self) -> Optional[SimulationState]:
        self._ensure_not_halted()
        if self._mode is RunMode.RUNNING:
            logger.debug("step ignored while running")
            return None
        self._advance()
        self._publish()
        return self._latest.state

    def _do_save(self, command: Command):
        try:
            save_state(self.snapshot(), command.path, command.fmt)
        except (GravSimError, ValueError) as e:
            logger.error("Save to %s failed: %s", command.path, e)
            self.last_error = e if isinstance(e, GravSimError) else GravSimError(str(e))
            self._pending_error = self.last_error
            self._publish()

    def _do_quit(self):
        if not self._halted:
            logger.info("Quit at step %d (t=%g)", self._state.step_count, self._state.time)
            self._halt()

    def _apply(self, command: Command):
        if self._halted and command.kind is not CommandKind.SAVE:
            logger.warning("%s ignored: simulation has stopped", command.kind.value)
            return
        if command.kind is CommandKind.PAUSE:
            self._do_pause()
        elif command.kind is CommandKind.RESUME:
            self._do_resume()
        elif command.kind is CommandKind.STEP:
            self._do_step()
        elif command.kind is CommandKind.SAVE:
            self._do_save(command)
        elif command.kind is CommandKind.QUIT:
            self._do_quit()

    def _drain_commands(self, block: bool):
        try:
            command = self._commands.get(timeout=self.IDLE_POLL_S) if block else self._commands.get_nowait()
        except queue.Empty:
            return
        while True:
            self._apply(command)
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return

    def _run_loop(self):
        """Stepping thread: apply queued commands, then advance if running."""
        steps = 0
        try:
            while not self._halted:
                self._drain_commands(block=self._mode is not RunMode.RUNNING)
                if self._halted or self._mode is not RunMode.RUNNING:
                    continue
                self._advance()
                steps += 1
                if steps % self.publish_every == 0:
                    self._publish()
                if self.step_interval > 0:
                    time.sleep(self.step_interval)
        except SimulationDiverged:
            pass
        except Exception as e:
            logger.exception("Stepping loop crashed at step %d", self._state.step_count)
            self._halt(e if isinstance(e, GravSimError) else GravSimError(f"stepping loop crashed: {e}"))
        logger.info("Stepping loop finished at step %d", self._state.step_count)
