"""Tests for configuration loading."""

import json

import pytest
import yaml

from grav_sim.errors import InvalidConfiguration, StorageIOFailure
from grav_sim.physics.builder import build_state
from grav_sim.physics.state import G_SI
from grav_sim.utils.config import BodyConfig, SimulationConfig, load_config, save_config

YAML_DOCUMENT = """
dt: 0.005
G: 1.0
softening: 0.01
integrator: rk4
bodies:
  - name: sun
    mass: 1.0
    position: [0.0, 0.0, 0.0]
    velocity: [0.0, 0.0, 0.0]
  - name: planet
    mass: 0.001
    position: [1.0, 0.0, 0.0]
    velocity: [0.0, 1.0, 0.0]
"""


def test_defaults():
    """Unspecified parameters take the documented defaults."""
    config = SimulationConfig()

    assert config.dt == 0.01
    assert config.G == G_SI
    assert config.softening == 1e-3
    assert config.integrator == "leapfrog"
    assert config.force_method == "direct"
    assert config.theta == 0.0


def test_load_yaml(tmp_path):
    """YAML documents parse into a configuration the builder accepts."""
    path = tmp_path / "system.yaml"
    path.write_text(YAML_DOCUMENT)

    config = load_config(path)
    state = build_state(config)

    assert config.dt == 0.005
    assert config.bodies[1] == BodyConfig(mass=0.001, position=(1.0, 0.0, 0.0), velocity=(0.0, 1.0, 0.0), name="planet")
    assert state.names == ["sun", "planet"]
    assert state.integrator.value == "rk4"


def test_load_json(tmp_path):
    """JSON documents use the same structure."""
    path = tmp_path / "system.json"
    path.write_text(json.dumps(yaml.safe_load(YAML_DOCUMENT)))

    assert load_config(path).bodies[0].name == "sun"


@pytest.mark.parametrize("suffix", [".yaml", ".json"])
def test_save_and_reload(tmp_path, suffix):
    """save_config writes what load_config reads."""
    config = SimulationConfig(
        bodies=[BodyConfig(mass=2.0, position=(1.0, 2.0, 3.0)), BodyConfig(mass=1.0, name="x")],
        dt=0.02,
        G=1.0,
    )
    path = tmp_path / f"config{suffix}"
    save_config(config, path)

    assert load_config(path) == config


@pytest.mark.parametrize(
    "document, field",
    [
        ({"bodies": [{"mass": 1.0, "position": [0.0, 0.0]}]}, "bodies[0].position"),
        ({"bodies": [{"position": [0.0, 0.0, 0.0]}]}, "bodies[0].mass"),
        ({"bodies": [{"mass": "heavy"}]}, "bodies[0].mass"),
        ({"bodies": [{"mass": 1.0, "charge": 2.0}]}, "bodies[0].charge"),
        ({"bodies": {"mass": 1.0}}, "bodies"),
        ({"timestep": 0.1}, "timestep"),
        ({"dt": True}, "dt"),
        ({"G": 10 ** 400}, "G"),
        ({"bodies": [{"mass": 10 ** 400}]}, "bodies[0].mass"),
        ({"integrator": 4}, "integrator"),
        ([1, 2, 3], "config"),
    ],
)
def test_structural_errors(document, field):
    """Malformed documents name the offending field."""
    with pytest.raises(InvalidConfiguration) as excinfo:
        SimulationConfig.from_dict(document)
    assert excinfo.value.field == field


def test_unparseable_file(tmp_path):
    """Syntax errors are configuration errors."""
    path = tmp_path / "broken.yaml"
    path.write_text("bodies: [unclosed\n")

    with pytest.raises(InvalidConfiguration):
        load_config(path)


def test_missing_file(tmp_path):
    """A missing file is a storage failure."""
    with pytest.raises(StorageIOFailure):
        load_config(tmp_path / "absent.yaml")
