"""Preset scenarios producing initial-condition configurations."""

from grav_sim.presets.base import Preset
from grav_sim.presets.binary import CircularBinary
from grav_sim.presets.cluster import StarCluster
from grav_sim.presets.figure_eight import FigureEight
from grav_sim.presets.solar_system import SolarSystem

PRESETS = {
    "figure_eight": FigureEight,
    "binary": CircularBinary,
    "solar_system": SolarSystem,
    "cluster": StarCluster,
}

DEFAULT_PRESET = "figure_eight"


def get_preset(name: str, **kwargs) -> Preset:
    """Get preset by name."""
    preset_class = PRESETS.get(name.lower())
    if preset_class is None:
        raise ValueError(f"Unknown preset: {name}. Available: {list(PRESETS.keys())}")
    return preset_class(**kwargs)


__all__ = [
    "Preset",
    "CircularBinary",
    "StarCluster",
    "FigureEight",
    "SolarSystem",
    "PRESETS",
    "DEFAULT_PRESET",
    "get_preset",
]
