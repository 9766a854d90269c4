"""Barnes-Hut octree approximation for O(N log N) accelerations.

Nodes live in flat arrays (an arena) and are addressed by integer index; a
node's bodies occupy the contiguous slice ``order[start:start + count]``.
A node whose size over distance is below ``theta`` is treated as a single
mass at its centre of mass. ``theta=0`` never approximates, so the result
matches the direct sum up to floating-point summation order.
"""

from typing import List

import numpy as np

# Default body count above which ``ForceCalculator(method="auto")`` switches here
BARNES_HUT_N_THRESHOLD = 2_000

# Subdivision stops at this depth; deeper bodies share a leaf
MAX_DEPTH = 48

_NO_CHILD = -1
_OCTANT_SIGNS = np.array(
    [[(1 if (k >> axis) & 1 else -1) for axis in range(3)] for k in range(8)],
    dtype=np.float64,
)


class Octree:
    """Arena octree over a fixed set of bodies."""

    __slots__ = ("center", "half_size", "mass", "com", "children", "start", "count", "is_leaf", "order", "rank")

    def __init__(self, positions: np.ndarray, masses: np.ndarray, leaf_size: int = 1):
        positions = np.asarray(positions, dtype=np.float64)
        masses = np.asarray(masses, dtype=np.float64).reshape(-1)
        n = positions.shape[0]

        centers: List[np.ndarray] = []
        halves: List[float] = []
        node_mass: List[float] = []
        coms: List[np.ndarray] = []
        children: List[List[int]] = []
        starts: List[int] = []
        counts: List[int] = []
        leaves: List[bool] = []

        order = np.arange(n)

        def new_node(center, half, start, count):
            centers.append(center)
            halves.append(half)
            starts.append(start)
            counts.append(count)
            children.append([_NO_CHILD] * 8)
            leaves.append(True)
            idx = order[start:start + count]
            m = float(np.sum(masses[idx]))
            node_mass.append(m)
            if m > 0.0:
                coms.append(np.sum(masses[idx, np.newaxis] * positions[idx], axis=0) / m)
            else:
                coms.append(center.copy())
            return len(centers) - 1

        if n > 0:
            lo = positions.min(axis=0)
            hi = positions.max(axis=0)
            half = float(np.max(hi - lo)) / 2.0 * 1.0001
            if half == 0.0:
                half = 1.0
            new_node((lo + hi) / 2.0, half, 0, n)

            stack = [(0, 0)]
            while stack:
                node, depth = stack.pop()
                start, count = starts[node], counts[node]
                if count <= leaf_size or depth >= MAX_DEPTH:
                    continue
                idx = order[start:start + count]
                pts = positions[idx]
                if np.all(pts == pts[0]):
                    # Coincident bodies cannot be separated by subdivision
                    continue
                center = centers[node]
                codes = (
                    (pts[:, 0] >= center[0]).astype(np.int64)
                    | ((pts[:, 1] >= center[1]).astype(np.int64) << 1)
                    | ((pts[:, 2] >= center[2]).astype(np.int64) << 2)
                )
                sort = np.argsort(codes, kind="stable")
                order[start:start + count] = idx[sort]
                codes = codes[sort]
                leaves[node] = False
                child_half = halves[node] / 2.0
                bounds = np.searchsorted(codes, np.arange(9))
                for octant in range(8):
                    c_start, c_stop = int(bounds[octant]), int(bounds[octant + 1])
                    if c_stop == c_start:
                        continue
                    child = new_node(
                        center + _OCTANT_SIGNS[octant] * child_half,
                        child_half,
                        start + c_start,
                        c_stop - c_start,
                    )
                    children[node][octant] = child
                    stack.append((child, depth + 1))

        self.center = np.array(centers, dtype=np.float64).reshape(-1, 3)
        self.half_size = np.array(halves, dtype=np.float64)
        self.mass = np.array(node_mass, dtype=np.float64)
        self.com = np.array(coms, dtype=np.float64).reshape(-1, 3)
        self.children = np.array(children, dtype=np.int64).reshape(-1, 8)
        self.start = np.array(starts, dtype=np.int64)
        self.count = np.array(counts, dtype=np.int64)
        self.is_leaf = np.array(leaves, dtype=bool)
        self.order = order
        self.rank = np.empty(n, dtype=np.int64)
        self.rank[order] = np.arange(n)

    @property
    def n_nodes(self) -> int:
        return self.mass.shape[0]

    def acceleration_on(
        self,
        i: int,
        positions: np.ndarray,
        masses: np.ndarray,
        G: float,
        softening: float,
        theta: float,
    ) -> np.ndarray:
        """Acceleration on body ``i`` from every other body in the tree."""
        eps_sq = max(0.0, softening) ** 2
        pos_i = positions[i]
        rank_i = self.rank[i]
        acc = np.zeros(3)
        if self.n_nodes == 0:
            return acc

        stack = [0]
        while stack:
            node = stack.pop()
            start = self.start[node]
            count = self.count[node]
            contains_i = start <= rank_i < start + count

            if self.is_leaf[node]:
                for j in self.order[start:start + count]:
                    if j == i:
                        continue
                    r = positions[j] - pos_i
                    d_sq = r @ r + eps_sq
                    if d_sq > 0.0:
                        acc += (G * masses[j] / d_sq ** 1.5) * r
                continue

            if not contains_i and theta > 0.0:
                r = self.com[node] - pos_i
                dist_sq = r @ r
                width = 2.0 * self.half_size[node]
                if dist_sq > 0.0 and width * width < theta * theta * dist_sq:
                    d_sq = dist_sq + eps_sq
                    acc += (G * self.mass[node] / d_sq ** 1.5) * r
                    continue

            for child in self.children[node]:
                if child != _NO_CHILD:
                    stack.append(child)
        return acc


def compute_accelerations_barnes_hut(
    positions: np.ndarray,
    masses: np.ndarray,
    G: float = 1.0,
    softening: float = 1e-3,
    theta: float = 0.5,
) -> np.ndarray:
    """Accelerations ``(n, 3)`` via a freshly built octree."""
    positions = np.asarray(positions, dtype=np.float64)
    masses = np.asarray(masses, dtype=np.float64).reshape(-1)
    n = positions.shape[0]
    accelerations = np.zeros((n, 3))
    if n < 2:
        return accelerations
    tree = Octree(positions, masses)
    for i in range(n):
        accelerations[i] = tree.acceleration_on(i, positions, masses, G, softening, theta)
    return accelerations
