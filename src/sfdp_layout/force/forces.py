"""
Spring-electrical force model and adaptive step control.

Forces follow Yifan Hu's spring-electrical model:

    f_attr(i, j) = ‖xi - xj‖² / K          (i and j adjacent)
    f_repl(i, j) = -C·K² / ‖xi - xj‖       (i and j not adjacent)

Magnitudes are direction-agnostic; callers scale the unit vector pointing from
node i toward node j. All functions accept single points or broadcastable
arrays of points whose last axis holds the coordinates.
"""

from __future__ import annotations

from typing import Union

import numpy as np

# Step cooling/heating ratio t
STEP_RATIO = 0.9

# Consecutive energy improvements required before the step grows
PROGRESS_THRESHOLD = 5

ScalarOrArray = Union[float, np.ndarray]


def _distance(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.linalg.norm(np.asarray(a) - np.asarray(b), axis=-1)


def _as_result(value: np.ndarray) -> ScalarOrArray:
    return float(value) if np.ndim(value) == 0 else value


def attractive_force(a: np.ndarray, b: np.ndarray, k: float) -> ScalarOrArray:
    """Attraction between adjacent nodes: squared distance over ``k``."""
    dist = _distance(a, b)
    return _as_result(dist * dist / k)


def repulsive_force(a: np.ndarray, b: np.ndarray, c: float, k: float) -> ScalarOrArray:
    """
    Repulsion between non-adjacent nodes: ``-c * k² / distance``.

    The magnitude is negative, pushing node ``a`` away from ``b``. Coincident
    points have no defined direction and yield 0.0 instead of infinity.
    """
    dist = _distance(a, b)
    apart = dist > 0
    force = np.where(apart, -c * k * k / np.where(apart, dist, 1.0), 0.0)
    return _as_result(force)


def net_forces(
    positions: np.ndarray,
    adjacency: np.ndarray,
    c: float,
    k: float,
) -> tuple[np.ndarray, int]:
    """
    Compute the net force on every node from one position snapshot.

    Every node interacts with every other node: attractively where
    ``adjacency[i, j] == 1``, repulsively otherwise. All forces are computed
    from ``positions`` alone (synchronous relaxation).

    Args:
        positions: (N, dim) array of node positions
        adjacency: (N, N) 0/1 matrix
        c: Relative repulsion strength C
        k: Natural edge length K

    Returns:
        Tuple of ((N, dim) force array, number of coincident node pairs).
        Non-adjacent coincident pairs repel with the magnitude they would
        have at distance ``k``, the lower index toward negative first axis.
    """
    n = positions.shape[0]
    here = positions[:, np.newaxis, :]
    there = positions[np.newaxis, :, :]

    # diff[i, j] points from node i toward node j
    diff = there - here
    dist = np.linalg.norm(diff, axis=-1)
    unit = diff / np.where(dist > 0, dist, 1.0)[..., np.newaxis]

    magnitude = np.where(
        adjacency == 1,
        attractive_force(here, there, k),
        repulsive_force(here, there, c, k),
    )

    stacked = (dist == 0) & ~np.eye(n, dtype=bool)
    if stacked.any():
        # No direction between stacked nodes: split them by index order
        index = np.arange(n)
        order = np.sign(index - index[:, np.newaxis])
        unit[..., 0] = np.where(stacked, order, unit[..., 0])
        magnitude = np.where(stacked & (adjacency != 1), -c * k, magnitude)

    forces = np.einsum("ij,ijd->id", magnitude, unit)

    coincident = (int(np.count_nonzero(dist == 0)) - n) // 2
    return forces.astype(positions.dtype, copy=False), coincident


def update_step(
    step: float,
    energy: float,
    energy0: float,
    progress: int,
    ratio: float = STEP_RATIO,
) -> tuple[float, int]:
    """
    Adapt the step length from the change in system energy.

    Five consecutive improving steps grow the step by ``1 / ratio``; any step
    that does not lower the energy resets progress and shrinks it by ``ratio``.

    Returns:
        Tuple of (new step, new progress counter)
    """
    if energy < energy0:
        progress += 1
        if progress >= PROGRESS_THRESHOLD:
            progress = 0
            step = step / ratio
    else:
        progress = 0
        step = ratio * step
    return step, progress


def dist_tolerance(
    locs: np.ndarray,
    locs0: np.ndarray,
    k: float,
    tol: float,
) -> bool:
    """Return True if every node moved strictly less than ``k * tol``."""
    moved = np.linalg.norm(np.asarray(locs) - np.asarray(locs0), axis=-1)
    return bool(np.all(moved < k * tol))


__all__ = [
    "STEP_RATIO",
    "PROGRESS_THRESHOLD",
    "attractive_force",
    "repulsive_force",
    "net_forces",
    "update_step",
    "dist_tolerance",
]
