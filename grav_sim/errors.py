"""Exception taxonomy for the simulation core.

Every failure the core can report derives from ``GravSimError`` so callers
(the CLI, the controller loop) can catch the whole family in one place.
"""

from typing import Optional


class GravSimError(Exception):
    """Base class for all simulation errors."""


class InvalidConfiguration(GravSimError, ValueError):
    """Initial parameters were rejected before any step occurred.

    Attributes:
        field: Name of the offending field (e.g. ``"dt"``, ``"bodies[2].mass"``)
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class SimulationDiverged(GravSimError):
    """A step produced a non-finite position or velocity component.

    The live state is left exactly as it was before the failed step;
    ``last_good`` is a frozen copy of it that can be saved or inspected.
    """

    def __init__(self, step_count: int, last_good=None, message: Optional[str] = None):
        self.step_count = step_count
        self.last_good = last_good
        super().__init__(message or f"simulation diverged while advancing from step {step_count}")


class SimulationHalted(GravSimError):
    """The controller reached its terminal Stopped state (quit or divergence)."""


class FormatVersionUnsupported(GravSimError):
    """A snapshot declares a format version this build cannot read."""

    def __init__(self, version):
        self.version = version
        super().__init__(f"unsupported snapshot format version: {version!r}")


class CorruptSnapshot(GravSimError):
    """A snapshot stream is truncated or structurally invalid."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"corrupt snapshot: {reason}")


class StorageIOFailure(GravSimError):
    """Reading or writing a snapshot file failed at the OS level."""

    def __init__(self, path, message: str):
        self.path = str(path)
        super().__init__(f"{self.path}: {message}")
