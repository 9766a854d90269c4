"""Tests for preset scenarios."""

import numpy as np
import pytest

from grav_sim.physics.builder import build_state
from grav_sim.physics.diagnostics import Diagnostics
from grav_sim.presets import (
    DEFAULT_PRESET,
    PRESETS,
    CircularBinary,
    FigureEight,
    SolarSystem,
    StarCluster,
    get_preset,
)


@pytest.mark.parametrize("name", sorted(PRESETS))
def test_every_preset_builds(name):
    """Each preset yields a configuration the builder accepts."""
    preset = get_preset(name)
    state = build_state(preset.generate())

    assert preset.name == name
    assert state.n_bodies >= 2
    assert state.step_count == 0
    assert state.time == 0.0


def test_unknown_preset():
    """Unknown names are rejected with the available list."""
    with pytest.raises(ValueError, match="figure_eight"):
        get_preset("galaxy")


def test_figure_eight_is_default_and_balanced():
    """The default scenario has zero total momentum and centre of mass at the origin."""
    assert DEFAULT_PRESET == "figure_eight"
    state = build_state(FigureEight().generate())
    diagnostics = Diagnostics.for_state(state)

    assert state.names == ["alpha", "beta", "gamma"]
    assert np.allclose(diagnostics.compute_momentum(state.velocities, state.masses), 0.0)
    assert np.allclose(diagnostics.compute_center_of_mass(state.positions, state.masses), 0.0)


def test_circular_binary_geometry():
    """Equal masses at +/-0.5 moving at the circular speed."""
    preset = CircularBinary()
    state = build_state(preset.generate())

    assert np.allclose(state.positions, [[-0.5, 0.0, 0.0], [0.5, 0.0, 0.0]])
    speed = np.linalg.norm(state.velocities, axis=1)
    assert np.allclose(speed, np.sqrt(0.5))
    assert preset.angular_frequency == pytest.approx(np.sqrt(2.0))
    assert preset.period == pytest.approx(2.0 * np.pi / np.sqrt(2.0))


def test_unequal_binary_shares_centre_of_mass():
    """Bodies sit on opposite sides of the barycentre."""
    preset = CircularBinary(mass_1=3.0, mass_2=1.0, separation=2.0)
    state = build_state(preset.generate())
    diagnostics = Diagnostics.for_state(state)

    assert np.allclose(diagnostics.compute_center_of_mass(state.positions, state.masses), 0.0)
    assert np.allclose(diagnostics.compute_momentum(state.velocities, state.masses), 0.0)
    assert np.isclose(np.linalg.norm(state.positions[1] - state.positions[0]), 2.0)


def test_solar_system_momentum():
    """The Sun's velocity cancels the planets' momentum."""
    state = build_state(SolarSystem().generate())
    diagnostics = Diagnostics.for_state(state)

    assert state.names[0] == "sun"
    assert state.n_bodies == 9
    assert np.allclose(diagnostics.compute_momentum(state.velocities, state.masses), 0.0, atol=1e-15)


def test_cluster_is_reproducible():
    """Same seed, same cluster; different seed, different cluster."""
    a = build_state(StarCluster(n_bodies=30, seed=1).generate())
    b = build_state(StarCluster(n_bodies=30, seed=1).generate())
    c = build_state(StarCluster(n_bodies=30, seed=2).generate())

    assert np.array_equal(a.positions, b.positions)
    assert np.array_equal(a.velocities, b.velocities)
    assert not np.allclose(a.positions, c.positions)
    assert a.n_bodies == 30
    assert np.isclose(a.total_mass, 1.0)
