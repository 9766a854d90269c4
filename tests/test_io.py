"""Tests for snapshot I/O."""

import json

import numpy as np
import pytest

from grav_sim.errors import CorruptSnapshot, FormatVersionUnsupported, StorageIOFailure
from grav_sim.io.state_io import (
    FORMAT_VERSION,
    decode_state,
    encode_state,
    format_for_path,
    load_state,
    save_state,
)
from grav_sim.physics.builder import build_state
from grav_sim.physics.simulator import Simulator
from grav_sim.physics.state import IntegratorKind
from grav_sim.presets import SolarSystem


def assert_same_state(a, b):
    assert a.names == b.names
    assert np.array_equal(a.masses, b.masses)
    assert np.array_equal(a.positions, b.positions)
    assert np.array_equal(a.velocities, b.velocities)
    assert a.time == b.time
    assert a.step_count == b.step_count
    assert a.dt == b.dt
    assert a.G == b.G
    assert a.softening == b.softening
    assert a.integrator is b.integrator


@pytest.fixture
def stepped_state():
    """Solar system after a few steps, so time and step count are non-trivial."""
    sim = Simulator(build_state(SolarSystem().generate()))
    return sim.run_steps(7)


def test_json_round_trip_is_exact(stepped_state):
    """JSON floats are written with full precision."""
    assert_same_state(decode_state(encode_state(stepped_state, "json")), stepped_state)


def test_npz_round_trip_is_exact(stepped_state):
    """NPZ keeps float64 arrays unchanged."""
    assert_same_state(decode_state(encode_state(stepped_state, "npz")), stepped_state)


def test_json_layout(stepped_state):
    """Header then ordered bodies."""
    document = json.loads(encode_state(stepped_state, "json"))

    assert document["version"] == FORMAT_VERSION
    header = document["header"]
    assert header["step_count"] == 7
    assert header["body_count"] == stepped_state.n_bodies
    assert header["integrator"] == "leapfrog"
    assert [b["name"] for b in document["bodies"]] == stepped_state.names


def test_save_load_files(stepped_state, tmp_path):
    """Format follows the file suffix."""
    for suffix in (".json", ".npz"):
        path = save_state(stepped_state, tmp_path / f"snap{suffix}")
        assert_same_state(load_state(path), stepped_state)

    assert not [p for p in tmp_path.iterdir() if p.name.startswith(".")]


def test_format_for_path():
    """Suffix inference and explicit overrides."""
    assert format_for_path("a.json") == "json"
    assert format_for_path("a.NPZ") == "npz"
    assert format_for_path("a.bin", "npz") == "npz"
    with pytest.raises(ValueError):
        format_for_path("a.txt")
    with pytest.raises(ValueError):
        format_for_path("a.json", "xml")


def test_unknown_version_rejected(stepped_state):
    """A future format version is reported as unsupported."""
    document = json.loads(encode_state(stepped_state, "json"))
    document["version"] = FORMAT_VERSION + 1

    with pytest.raises(FormatVersionUnsupported) as excinfo:
        decode_state(json.dumps(document).encode())
    assert excinfo.value.version == FORMAT_VERSION + 1


@pytest.mark.parametrize("fmt", ["json", "npz"])
def test_truncated_snapshot_is_corrupt(stepped_state, fmt):
    """Cutting a snapshot short never yields a partial state."""
    data = encode_state(stepped_state, fmt)

    with pytest.raises(CorruptSnapshot):
        decode_state(data[: len(data) // 2])


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("header"),
        lambda d: d["header"].update(body_count=99),
        lambda d: d["header"].update(integrator="verlet-9000"),
        lambda d: d["bodies"][0].update(mass=-1.0),
        lambda d: d["bodies"][0].update(mass=10 ** 400),
        lambda d: d["bodies"][1].update(position=[0.0, 10 ** 400, 0.0]),
        lambda d: d["header"].update(softening=-0.1),
        lambda d: d["bodies"][0].update(position=[1.0, 2.0]),
        lambda d: d["bodies"][1].pop("velocity"),
        lambda d: d.update(format="something-else"),
        lambda d: d.update(version="one"),
    ],
)
def test_invalid_content_is_corrupt(stepped_state, mutate):
    """Structurally invalid documents are rejected."""
    document = json.loads(encode_state(stepped_state, "json"))
    mutate(document)

    with pytest.raises(CorruptSnapshot):
        decode_state(json.dumps(document).encode())


def test_garbage_is_corrupt():
    """Unrecognized bytes are rejected."""
    with pytest.raises(CorruptSnapshot):
        decode_state(b"\x00\x01not a snapshot")
    with pytest.raises(CorruptSnapshot):
        decode_state(b"")


def test_storage_failures(stepped_state, tmp_path):
    """OS-level errors surface as StorageIOFailure."""
    with pytest.raises(StorageIOFailure):
        load_state(tmp_path / "does-not-exist.json")
    with pytest.raises(StorageIOFailure):
        save_state(stepped_state, tmp_path / "no" / "such" / "dir.json")


def test_loaded_state_keeps_integrator(tmp_path):
    """The integrator choice travels with the snapshot."""
    state = build_state(SolarSystem(dt=0.002).generate())
    state.integrator = IntegratorKind.RK4
    path = save_state(state, tmp_path / "rk4.json")

    loaded = load_state(path)
    assert loaded.integrator is IntegratorKind.RK4
    assert loaded.dt == 0.002


@pytest.mark.parametrize("suffix", [".json", ".npz"])
def test_resumed_run_is_bit_identical(tmp_path, suffix):
    """Save at step k, load, continue: same result as an uninterrupted run."""
    initial = build_state(SolarSystem().generate())

    straight = Simulator(initial).run_steps(60)

    first_half = Simulator(initial)
    first_half.run_steps(30)
    path = first_half.save(tmp_path / f"half{suffix}")
    resumed = Simulator(load_state(path)).run_steps(30)

    assert_same_state(resumed, straight)
