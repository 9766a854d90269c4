"""3D vector math.

``Vector3`` is the value type used at the edges of the engine (bodies,
configuration, tests). The hot paths work on ``(n, 3)`` numpy arrays and use
the array helpers at the bottom of this module.
"""

import math
from typing import Iterable, NamedTuple

import numpy as np


class Vector3(NamedTuple):
    """Immutable 3D real vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_iterable(cls, values: Iterable[float]) -> "Vector3":
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Vector3":
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: "Vector3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def magnitude_squared(self) -> float:
        return self.dot(self)

    def magnitude(self) -> float:
        return math.sqrt(self.magnitude_squared())

    def direction(self) -> "Vector3":
        """Unit vector along this one; the zero vector maps to itself."""
        mag = self.magnitude()
        if mag == 0.0:
            return Vector3()
        return self / mag

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)


def magnitude_squared(vectors: np.ndarray) -> np.ndarray:
    """Row-wise |v|^2 of an ``(..., 3)`` array."""
    return np.einsum("...i,...i->...", vectors, vectors)


def magnitudes(vectors: np.ndarray) -> np.ndarray:
    """Row-wise |v| of an ``(..., 3)`` array."""
    return np.sqrt(magnitude_squared(vectors))
