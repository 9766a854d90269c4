"""CLI main entry point."""

import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from grav_sim.errors import GravSimError, SimulationDiverged
from grav_sim.io.state_io import load_state, save_state
from grav_sim.io.trajectory import DEFAULT_TRAJECTORY_FILE, TrajectoryRecorder
from grav_sim.physics.builder import build_force_calculator, build_state
from grav_sim.physics.diagnostics import Diagnostics
from grav_sim.physics.force_calculator import ForceCalculator
from grav_sim.physics.simulator import Simulator
from grav_sim.physics.state import SimulationState
from grav_sim.presets import PRESETS, get_preset
from grav_sim.utils.config import load_config
from grav_sim.utils.logging_setup import LOG_LEVELS, LOG_MODES, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_DIVERGED = 3


def print_header():
    print(f"{'Step':<8} {'Time':<12} {'K':<14} {'U':<14} {'E':<14} {'|P|':<12} {'|L|':<12} {'dE/E0':<10}")
    print("-" * 102)


def print_row(state: SimulationState, diagnostics: Diagnostics, initial_energy: float):
    d = diagnostics.summary(state)
    dE = (d["energy"] - initial_energy) / abs(initial_energy) * 100 if abs(initial_energy) > 0 else 0.0
    print(
        f"{state.step_count:<8} {state.time:<12.4f} {d['kinetic']:<14.6g} {d['potential']:<14.6g} "
        f"{d['energy']:<14.6g} {d['momentum']:<12.4g} {d['angular_momentum']:<12.4g} {dE:<10.2e}%"
    )


def create_state(args):
    """Initial state and force calculator for the chosen subcommand."""
    if args.command == "load":
        state = load_state(args.file)
        if args.force_method is None:
            return state, ForceCalculator()
        return state, ForceCalculator(method=args.force_method, theta=args.theta)

    if args.config:
        config = load_config(args.config)
    elif args.preset:
        config = get_preset(args.preset).generate()
    else:
        config = None
    state = build_state(config)
    force_calculator = build_force_calculator(config)
    if args.force_method is not None:
        force_calculator = ForceCalculator(method=args.force_method, theta=args.theta)
    return state, force_calculator


def run_headless(sim: Simulator, args, diagnostics: Diagnostics, initial_energy: float):
    remaining = args.steps
    while remaining > 0:
        chunk = min(args.print_every, remaining)
        state = sim.run_steps(chunk)
        remaining -= chunk
        print_row(state, diagnostics, initial_energy)


def run_rendered(sim: Simulator, args, diagnostics: Diagnostics, initial_energy: float):
    from grav_sim.render.renderer_2d import Renderer2D

    renderer = Renderer2D(show_trails=args.trails)
    target = sim.step_count + args.steps
    last_printed = sim.step_count
    sim.start()
    try:
        while not sim.halted:
            frame = sim.latest_frame()
            renderer.render(frame)
            if frame.state.step_count - last_printed >= args.print_every:
                print_row(frame.state, diagnostics, initial_energy)
                last_printed = frame.state.step_count
            if frame.state.step_count >= target:
                break
            time.sleep(0.001)
    finally:
        sim.quit()
        sim.join(timeout=5.0)
        renderer.close()
    if sim.last_error is not None:
        raise sim.last_error


def run_simulation(args) -> int:
    """Run a simulation from a configuration, preset or snapshot."""
    state, force_calculator = create_state(args)
    sim = Simulator(state, force_calculator=force_calculator)

    recorder = None
    if args.output:
        recorder = TrajectoryRecorder(args.output, every=args.output_every)
        sim.subscribe(recorder)
        recorder.record(sim.snapshot())

    print(f"Running simulation: {state.n_bodies} bodies, {args.steps} steps")
    print(
        f"Integrator: {state.integrator.value}, dt: {state.dt}, G: {state.G:g}, "
        f"eps: {state.softening:g}, force: {force_calculator.method}"
    )

    diagnostics = Diagnostics.for_state(state)
    initial_energy = diagnostics.summary(state)["energy"]
    print_header()
    print_row(state, diagnostics, initial_energy)

    try:
        if args.render:
            run_rendered(sim, args, diagnostics, initial_energy)
        else:
            run_headless(sim, args, diagnostics, initial_energy)
    except SimulationDiverged as e:
        print(f"Simulation diverged at step {e.step_count}", file=sys.stderr)
        if args.save:
            save_state(e.last_good, args.save)
            print(f"Last good state saved to {args.save}")
        return EXIT_DIVERGED

    if args.save:
        save_state(sim.snapshot(), args.save)
        print(f"State saved to {args.save}")
    if recorder is not None:
        print(f"Trajectory written to {recorder.path} ({recorder.records_written} records)")

    print("Simulation complete!")
    return EXIT_OK


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="grav-sim", description="Gravity Simulator - N-body gravitational simulation")

    # Logging
    parser.add_argument("--log-file", type=str, default=os.environ.get("GRAV_LOG_FILE", "grav.log"),
                        help="Log file (env GRAV_LOG_FILE, default: grav.log)")
    parser.add_argument("--log-level", type=str, default=os.environ.get("GRAV_LOG_LEVEL", "info"),
                        choices=list(LOG_LEVELS), help="Log level (env GRAV_LOG_LEVEL, default: info)")
    parser.add_argument("--log-mode", type=str, default=os.environ.get("GRAV_LOG_MODE", "append"),
                        choices=list(LOG_MODES), help="Log file mode (env GRAV_LOG_MODE, default: append)")

    run_options = argparse.ArgumentParser(add_help=False)
    run_options.add_argument("--steps", type=int, default=1000,
                             help="Number of simulation steps")
    run_options.add_argument("--print-every", type=positive_int, default=100,
                             help="Print diagnostics every N steps")
    run_options.add_argument("--force-method", type=str, default=None,
                             choices=["direct", "barnes_hut", "auto"],
                             help="Force algorithm (default: from config, or direct)")
    run_options.add_argument("--theta", type=float, default=0.5,
                             help="Barnes-Hut opening angle when --force-method is given")
    run_options.add_argument("--save", type=str, default=None,
                             help="Save final state to file (.json or .npz)")
    run_options.add_argument("--output", type=str, default=None, nargs="?", const=DEFAULT_TRAJECTORY_FILE,
                             help=f"Write a YAML trajectory (default file: {DEFAULT_TRAJECTORY_FILE})")
    run_options.add_argument("--output-every", type=positive_int, default=1,
                             help="Record the trajectory every N steps")
    run_options.add_argument("--render", action="store_true",
                             help="Show a live 2D view while stepping in the background")
    run_options.add_argument("--trails", action="store_true",
                             help="Show body trails")

    subparsers = parser.add_subparsers(dest="command", required=True)
    new_parser = subparsers.add_parser("new", parents=[run_options], help="Start a new simulation")
    source = new_parser.add_mutually_exclusive_group()
    source.add_argument("--config", type=str, default=None,
                        help="Initial conditions (.yaml, .yml or .json)")
    source.add_argument("--preset", type=str, default=None, choices=list(PRESETS),
                        help="Preset scenario (default: figure_eight)")

    load_parser = subparsers.add_parser("load", parents=[run_options], help="Resume a saved snapshot")
    load_parser.add_argument("file", type=str, help="Snapshot file (.json or .npz)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    # Environment defaults bypass argparse choices
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid log level {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")
    if args.log_mode not in LOG_MODES:
        parser.error(f"invalid log mode {args.log_mode!r} (choose from {', '.join(LOG_MODES)})")
    setup_logging(args.log_file, args.log_level, args.log_mode)
    logger.info("Starting grav-sim %s", args.command)

    try:
        return run_simulation(args)
    except GravSimError as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except ValueError as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
