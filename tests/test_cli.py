"""Smoke tests for the command-line interface."""

import pytest

from grav_sim.cli.main import EXIT_DIVERGED, EXIT_ERROR, EXIT_OK, build_parser, main
from grav_sim.io.state_io import load_state
from grav_sim.io.trajectory import read_trajectory


@pytest.fixture
def log_args(tmp_path):
    return ["--log-file", str(tmp_path / "grav.log"), "--log-level", "debug", "--log-mode", "overwrite"]


def test_new_then_load(tmp_path, log_args, capsys):
    """Run a preset, save it, then resume it from the snapshot."""
    first = tmp_path / "first.json"
    trajectory = tmp_path / "run.yaml"
    code = main(log_args + [
        "new", "--preset", "binary", "--steps", "20", "--print-every", "10",
        "--save", str(first), "--output", str(trajectory), "--output-every", "5",
    ])

    assert code == EXIT_OK
    out = capsys.readouterr().out
    assert "Simulation complete!" in out
    assert "dE/E0" in out
    assert load_state(first).step_count == 20
    assert [d["step"] for d in read_trajectory(trajectory)] == [0, 5, 10, 15, 20]

    second = tmp_path / "second.npz"
    code = main(log_args + ["load", str(first), "--steps", "10", "--save", str(second)])

    assert code == EXIT_OK
    assert load_state(second).step_count == 30
    assert "Loaded snapshot" in (tmp_path / "grav.log").read_text()


def test_new_from_config(tmp_path, log_args):
    """Initial conditions from a YAML document."""
    config = tmp_path / "pair.yaml"
    config.write_text(
        "dt: 0.01\n"
        "G: 1.0\n"
        "softening: 0.0\n"
        "integrator: rk4\n"
        "bodies:\n"
        "  - {name: a, mass: 1.0, position: [-0.5, 0, 0], velocity: [0, -0.7071067811865476, 0]}\n"
        "  - {name: b, mass: 1.0, position: [0.5, 0, 0], velocity: [0, 0.7071067811865476, 0]}\n"
    )
    saved = tmp_path / "pair.json"

    assert main(log_args + ["new", "--config", str(config), "--steps", "5", "--save", str(saved)]) == EXIT_OK

    state = load_state(saved)
    assert state.names == ["a", "b"]
    assert state.integrator.value == "rk4"
    assert state.step_count == 5


def test_invalid_config_reports_field(tmp_path, log_args, capsys):
    """Configuration errors become an error exit with the field named."""
    config = tmp_path / "bad.yaml"
    config.write_text("dt: -1.0\nG: 1.0\nbodies:\n  - {mass: 1.0}\n")

    assert main(log_args + ["new", "--config", str(config), "--steps", "1"]) == EXIT_ERROR
    assert "dt" in capsys.readouterr().err


def test_missing_snapshot(tmp_path, log_args, capsys):
    """Loading a missing file fails cleanly."""
    assert main(log_args + ["load", str(tmp_path / "nope.json")]) == EXIT_ERROR
    assert "Error" in capsys.readouterr().err


@pytest.mark.filterwarnings("ignore::RuntimeWarning")
def test_divergence_saves_last_good_state(tmp_path, log_args):
    """An overflowing run exits with the divergence code and keeps the last good state."""
    config = tmp_path / "overflow.yaml"
    config.write_text(
        "dt: 0.1\n"
        "G: 1.0\n"
        "softening: 0.0\n"
        "bodies:\n"
        "  - {name: a, mass: 1.0e+300, position: [-1.0e-100, 0, 0]}\n"
        "  - {name: b, mass: 1.0e+300, position: [1.0e-100, 0, 0]}\n"
    )
    saved = tmp_path / "last_good.json"

    code = main(log_args + ["new", "--config", str(config), "--steps", "5", "--save", str(saved)])

    assert code == EXIT_DIVERGED
    state = load_state(saved)
    assert state.step_count == 0
    assert state.is_finite()
    assert "Diverged" in (tmp_path / "grav.log").read_text()


def test_rendered_run(tmp_path, log_args):
    """The live view drives the background loop (off-screen backend)."""
    saved = tmp_path / "rendered.json"

    code = main(log_args + ["new", "--preset", "binary", "--steps", "20", "--render", "--save", str(saved)])

    assert code == EXIT_OK
    assert load_state(saved).step_count >= 20


def test_log_defaults_from_environment(monkeypatch):
    """GRAV_LOG_* variables provide the logging defaults."""
    monkeypatch.setenv("GRAV_LOG_FILE", "custom.log")
    monkeypatch.setenv("GRAV_LOG_LEVEL", "trace")
    monkeypatch.setenv("GRAV_LOG_MODE", "overwrite")

    args = build_parser().parse_args(["new"])

    assert args.log_file == "custom.log"
    assert args.log_level == "trace"
    assert args.log_mode == "overwrite"
    assert args.preset is None
    assert args.steps == 1000


def test_load_uses_direct_forces_by_default(tmp_path, log_args, capsys):
    """A plain load resumes with the direct sum; --force-method overrides it."""
    snapshot = tmp_path / "start.json"
    assert main(log_args + ["new", "--preset", "binary", "--steps", "2", "--save", str(snapshot)]) == EXIT_OK
    capsys.readouterr()

    assert main(log_args + ["load", str(snapshot), "--steps", "2"]) == EXIT_OK
    assert "force: direct" in capsys.readouterr().out

    assert main(log_args + ["load", str(snapshot), "--steps", "2", "--force-method", "barnes_hut", "--theta", "0.3"]) == EXIT_OK
    assert "force: barnes_hut" in capsys.readouterr().out


@pytest.mark.parametrize("variable", ["GRAV_LOG_LEVEL", "GRAV_LOG_MODE"])
def test_bad_log_environment_is_a_usage_error(tmp_path, monkeypatch, capsys, variable):
    """Unknown values from the environment are rejected like bad flags."""
    monkeypatch.setenv(variable, "verbose")

    with pytest.raises(SystemExit) as excinfo:
        main(["--log-file", str(tmp_path / "grav.log"), "new", "--steps", "1"])

    assert excinfo.value.code == 2
    assert "verbose" in capsys.readouterr().err
