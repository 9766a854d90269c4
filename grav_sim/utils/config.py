"""Configuration management.

A configuration document (YAML or JSON) describes the bodies and run
parameters of a new simulation::

    dt: 0.01
    G: 1.0
    softening: 0.0
    integrator: leapfrog
    bodies:
      - name: a
        mass: 1.0
        position: [-0.5, 0.0, 0.0]
        velocity: [0.0, -0.7071067811865476, 0.0]
      - name: b
        mass: 1.0
        position: [0.5, 0.0, 0.0]
        velocity: [0.0, 0.7071067811865476, 0.0]

Parsing here is structural only (shapes and types). Physical validity is
checked by ``grav_sim.physics.builder.build_state``.
"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from grav_sim.errors import InvalidConfiguration, StorageIOFailure
from grav_sim.physics.state import DEFAULT_DT, DEFAULT_SOFTENING, G_SI

Vec = Tuple[float, float, float]


@dataclass
class BodyConfig:
    """One body as written in a configuration document."""
    mass: float = 1.0
    position: Vec = (0.0, 0.0, 0.0)
    velocity: Vec = (0.0, 0.0, 0.0)
    name: Optional[str] = None


@dataclass
class SimulationConfig:
    """Simulation configuration."""
    bodies: List[BodyConfig] = field(default_factory=list)

    # Integration parameters
    dt: float = DEFAULT_DT
    G: float = G_SI
    softening: float = DEFAULT_SOFTENING
    integrator: str = "leapfrog"

    # Force algorithm
    force_method: str = "direct"
    theta: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> "SimulationConfig":
        """Structural parse of a decoded document.

        Raises:
            InvalidConfiguration: on unknown keys or malformed values
        """
        if not isinstance(data, dict):
            raise InvalidConfiguration("config", "document must be a mapping")
        known = {f.name for f in fields(cls)}
        for key in data:
            if key not in known:
                raise InvalidConfiguration(str(key), "unknown configuration key")

        params: Dict[str, Any] = {}
        for key in ("dt", "G", "softening", "theta"):
            if key in data:
                params[key] = _number(data[key], key)
        for key in ("integrator", "force_method"):
            if key in data:
                if not isinstance(data[key], str):
                    raise InvalidConfiguration(key, "must be a string")
                params[key] = data[key]

        raw_bodies = data.get("bodies", [])
        if raw_bodies is None:
            raw_bodies = []
        if not isinstance(raw_bodies, list):
            raise InvalidConfiguration("bodies", "must be a list")
        params["bodies"] = [_body(raw, i) for i, raw in enumerate(raw_bodies)]
        return cls(**params)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for body in data["bodies"]:
            body["position"] = list(body["position"])
            body["velocity"] = list(body["velocity"])
            if body["name"] is None:
                del body["name"]
        return data


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfiguration(name, f"must be a number, got {value!r}")
    try:
        return float(value)
    except OverflowError as e:
        raise InvalidConfiguration(name, "is out of range") from e


def _vector(value: Any, name: str) -> Vec:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise InvalidConfiguration(name, f"must be a list of 3 numbers, got {value!r}")
    x, y, z = (_number(v, name) for v in value)
    return (x, y, z)


def _body(raw: Any, index: int) -> BodyConfig:
    prefix = f"bodies[{index}]"
    if not isinstance(raw, dict):
        raise InvalidConfiguration(prefix, "must be a mapping")
    known = {f.name for f in fields(BodyConfig)}
    for key in raw:
        if key not in known:
            raise InvalidConfiguration(f"{prefix}.{key}", "unknown body key")
    if "mass" not in raw:
        raise InvalidConfiguration(f"{prefix}.mass", "is required")
    name = raw.get("name")
    if name is not None and not isinstance(name, str):
        name = str(name)
    return BodyConfig(
        mass=_number(raw["mass"], f"{prefix}.mass"),
        position=_vector(raw.get("position", (0.0, 0.0, 0.0)), f"{prefix}.position"),
        velocity=_vector(raw.get("velocity", (0.0, 0.0, 0.0)), f"{prefix}.velocity"),
        name=name,
    )


def load_config(config_path: str) -> SimulationConfig:
    """Load configuration from file.

    Args:
        config_path: Path to config file (.json, .yaml or .yml)

    Returns:
        SimulationConfig object
    """
    config_path = Path(config_path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            if config_path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise StorageIOFailure(config_path, str(e)) from e
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise InvalidConfiguration("config", f"cannot parse {config_path}: {e}") from e
    return SimulationConfig.from_dict(data)


def save_config(config: SimulationConfig, output_path: str):
    """Save configuration to file.

    Args:
        config: SimulationConfig object
        output_path: Output file path (.json, .yaml or .yml)
    """
    output_path = Path(output_path)
    data = config.to_dict()
    try:
        with open(output_path, "w", encoding="utf-8") as f:
            if output_path.suffix in (".yaml", ".yml"):
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(data, f, indent=2)
    except OSError as e:
        raise StorageIOFailure(output_path, str(e)) from e
