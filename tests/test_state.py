"""Tests for the body and state model."""

import numpy as np
import pytest

from grav_sim.errors import InvalidConfiguration
from grav_sim.physics.state import Body, IntegratorKind, SimulationState
from grav_sim.physics.vector import Vector3


def make_state(**params):
    bodies = [
        Body("a", 1.0, Vector3(0.0, 0.0, 0.0), Vector3(0.0, 0.0, 0.0)),
        Body("b", 2.0, Vector3(1.0, 0.0, 0.0), Vector3(0.0, 1.0, 0.0)),
    ]
    return SimulationState.from_bodies(bodies, **params)


def test_from_bodies_and_back():
    """Body records map onto array rows in order."""
    state = make_state(dt=0.1, G=1.0)

    assert state.n_bodies == 2
    assert state.total_mass == 3.0
    assert state.bodies[1] == Body("b", 2.0, Vector3(1.0, 0.0, 0.0), Vector3(0.0, 1.0, 0.0))
    assert state.positions.dtype == np.float64


def test_integrator_names():
    """Integrators parse from names and aliases."""
    assert IntegratorKind.parse("Leapfrog") is IntegratorKind.LEAPFROG
    assert IntegratorKind.parse("velocity_verlet") is IntegratorKind.LEAPFROG
    assert IntegratorKind.parse("runge_kutta") is IntegratorKind.RK4
    assert IntegratorKind.parse(IntegratorKind.EULER) is IntegratorKind.EULER
    with pytest.raises(InvalidConfiguration):
        IntegratorKind.parse("midpoint")


def test_negative_softening_clamped():
    """Negative softening is stored as zero."""
    assert make_state(softening=-0.3).softening == 0.0


def test_copy_is_independent():
    """Copies do not share arrays with the original."""
    state = make_state()
    clone = state.copy()
    clone.positions[0, 0] = 99.0

    assert state.positions[0, 0] == 0.0
    assert not clone.frozen


def test_frozen_copy_is_read_only():
    """Frozen copies reject writes."""
    frozen = make_state().copy(frozen=True)

    assert frozen.frozen
    with pytest.raises(ValueError):
        frozen.velocities[1, 1] = 0.0
    with pytest.raises(ValueError):
        frozen.masses[0] = 5.0


def test_is_finite():
    """Any non-finite component makes the state non-finite."""
    state = make_state()
    assert state.is_finite()
    state.velocities[0, 2] = np.nan
    assert not state.is_finite()


@pytest.mark.parametrize(
    "mutate, field",
    [
        (lambda s: s.masses.__setitem__(0, 0.0), "bodies[0].mass"),
        (lambda s: s.positions.__setitem__((1, 0), np.inf), "bodies[1].position"),
        (lambda s: setattr(s, "dt", 0.0), "dt"),
        (lambda s: setattr(s, "G", np.nan), "G"),
        (lambda s: setattr(s, "time", -1.0), "time"),
        (lambda s: setattr(s, "step_count", -1), "step_count"),
    ],
)
def test_validate(mutate, field):
    """Validation names the first violated field."""
    state = make_state()
    mutate(state)

    with pytest.raises(InvalidConfiguration) as excinfo:
        state.validate()
    assert excinfo.value.field == field


def test_empty_state_invalid():
    """A state needs at least one body."""
    with pytest.raises(InvalidConfiguration):
        SimulationState.from_bodies([]).validate()
