"""Initial-condition builder: parsed configuration -> validated state."""

import logging
import math
from typing import Optional

from grav_sim.errors import InvalidConfiguration
from grav_sim.physics.force_calculator import ForceCalculator
from grav_sim.physics.state import IntegratorKind, SimulationState
from grav_sim.presets import DEFAULT_PRESET, get_preset
from grav_sim.utils.config import SimulationConfig

logger = logging.getLogger(__name__)

FORCE_METHODS = ("direct", "barnes_hut", "auto")


def default_config() -> SimulationConfig:
    """The scenario used when no configuration is supplied (figure-eight)."""
    return get_preset(DEFAULT_PRESET).generate()


def validate_config(config: SimulationConfig):
    """Reject configurations that cannot produce a valid state.

    Raises:
        InvalidConfiguration: naming the first violated field
    """
    if not config.bodies:
        raise InvalidConfiguration("bodies", "at least one body is required")
    for i, body in enumerate(config.bodies):
        if not math.isfinite(body.mass) or body.mass <= 0.0:
            raise InvalidConfiguration(f"bodies[{i}].mass", f"must be positive, got {body.mass}")
        if len(body.position) != 3 or not all(math.isfinite(c) for c in body.position):
            raise InvalidConfiguration(f"bodies[{i}].position", "must be 3 finite numbers")
        if len(body.velocity) != 3 or not all(math.isfinite(c) for c in body.velocity):
            raise InvalidConfiguration(f"bodies[{i}].velocity", "must be 3 finite numbers")
    if not math.isfinite(config.dt) or config.dt <= 0.0:
        raise InvalidConfiguration("dt", f"must be positive, got {config.dt}")
    if not math.isfinite(config.softening) or config.softening < 0.0:
        raise InvalidConfiguration("softening", f"must be non-negative, got {config.softening}")
    if not math.isfinite(config.G) or config.G <= 0.0:
        raise InvalidConfiguration("G", f"must be positive, got {config.G}")
    if not math.isfinite(config.theta) or config.theta < 0.0:
        raise InvalidConfiguration("theta", f"must be non-negative, got {config.theta}")
    if config.force_method not in FORCE_METHODS:
        raise InvalidConfiguration("force_method", f"unknown method {config.force_method!r}, expected one of {list(FORCE_METHODS)}")
    IntegratorKind.parse(config.integrator)


def build_state(config: Optional[SimulationConfig] = None) -> SimulationState:
    """Construct a fresh state (time 0, step 0) from a parsed configuration.

    Args:
        config: Parsed configuration; ``None`` builds the default scenario

    Returns:
        A state satisfying every model invariant
    """
    if config is None:
        logger.info("No configuration supplied, using the default %s scenario", DEFAULT_PRESET)
        config = default_config()
    validate_config(config)

    names = [body.name or f"body-{i}" for i, body in enumerate(config.bodies)]
    if len(set(names)) != len(names):
        raise InvalidConfiguration("bodies", "body names must be unique")

    state = SimulationState(
        positions=[body.position for body in config.bodies],
        velocities=[body.velocity for body in config.bodies],
        masses=[body.mass for body in config.bodies],
        names=names,
        dt=config.dt,
        G=config.G,
        softening=config.softening,
        integrator=IntegratorKind.parse(config.integrator),
    )
    state.validate()
    logger.info(
        "Built state: %d bodies, dt=%g, G=%g, softening=%g, integrator=%s",
        state.n_bodies, state.dt, state.G, state.softening, state.integrator.value,
    )
    return state


def build_force_calculator(config: Optional[SimulationConfig] = None) -> ForceCalculator:
    """Force calculator matching the configuration's force settings."""
    if config is None:
        return ForceCalculator()
    return ForceCalculator(method=config.force_method, theta=config.theta)
