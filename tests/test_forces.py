"""
Tests for the spring-electrical force model and step controller.
"""

import math

import numpy as np
import pytest

from sfdp_layout.force import (
    attractive_force,
    dist_tolerance,
    net_forces,
    repulsive_force,
    update_step,
)
from sfdp_layout.force.forces import PROGRESS_THRESHOLD, STEP_RATIO

# =============================================================================
# Force Magnitudes
# =============================================================================


class TestAttractiveForce:
    """Tests for the d² / K attraction."""

    def test_squared_distance_over_k(self):
        """Attraction is the squared distance divided by K."""
        assert attractive_force((0.0, 0.0), (3.0, 4.0), 1.0) == pytest.approx(25.0)
        assert attractive_force((0.0, 0.0), (3.0, 4.0), 2.0) == pytest.approx(12.5)

    def test_symmetric(self):
        """Attraction does not depend on argument order."""
        a, b = (1.0, -2.0, 0.5), (4.0, 2.0, 0.5)
        assert attractive_force(a, b, 1.5) == attractive_force(b, a, 1.5)

    def test_coincident_points(self):
        """Coincident points attract with zero force."""
        assert attractive_force((1.0, 1.0), (1.0, 1.0), 1.0) == 0.0

    def test_returns_float_for_points(self):
        """Single points produce a plain float."""
        assert isinstance(attractive_force((0.0, 0.0), (1.0, 0.0), 1.0), float)

    def test_broadcasts_over_arrays(self):
        """Arrays of points give one magnitude per pair."""
        a = np.zeros((3, 2))
        b = np.array([[1.0, 0.0], [0.0, 2.0], [3.0, 4.0]])
        np.testing.assert_allclose(attractive_force(a, b, 1.0), [1.0, 4.0, 25.0])


class TestRepulsiveForce:
    """Tests for the -C·K² / d repulsion."""

    def test_magnitude(self):
        """Repulsion is -C·K² over the distance."""
        assert repulsive_force((0.0, 0.0), (3.0, 4.0), 0.2, 1.0) == pytest.approx(-0.04)
        assert repulsive_force((0.0, 0.0), (3.0, 4.0), 0.2, 2.0) == pytest.approx(-0.16)

    def test_negative(self):
        """Repulsion is a push (negative magnitude)."""
        assert repulsive_force((0.0, 0.0), (0.1, 0.0), 0.2, 1.0) < 0

    def test_grows_as_nodes_approach(self):
        """Closer nodes repel more strongly."""
        far = repulsive_force((0.0, 0.0), (10.0, 0.0), 0.2, 1.0)
        near = repulsive_force((0.0, 0.0), (0.5, 0.0), 0.2, 1.0)
        assert abs(near) > abs(far)

    def test_coincident_points_yield_zero(self):
        """Coincident points have no defined direction and yield 0.0."""
        force = repulsive_force((2.0, 3.0), (2.0, 3.0), 0.2, 1.0)
        assert force == 0.0
        assert math.isfinite(force)

    def test_broadcast_with_coincident_entry(self):
        """Only the coincident entry of an array is zeroed."""
        a = np.zeros((2, 2))
        b = np.array([[0.0, 0.0], [0.0, 2.0]])
        np.testing.assert_allclose(repulsive_force(a, b, 0.2, 1.0), [0.0, -0.1])


# =============================================================================
# Net Forces
# =============================================================================


class TestNetForces:
    """Tests for force accumulation over all node pairs."""

    def test_adjacent_pair_attracts(self):
        """Adjacent nodes pull toward each other."""
        positions = np.array([[0.0, 0.0], [2.0, 0.0]])
        adjacency = np.array([[0, 1], [1, 0]])

        forces, coincident = net_forces(positions, adjacency, 0.2, 1.0)

        np.testing.assert_allclose(forces, [[4.0, 0.0], [-4.0, 0.0]])
        assert coincident == 0

    def test_non_adjacent_pair_repels(self):
        """Non-adjacent nodes push each other apart."""
        positions = np.array([[0.0, 0.0], [2.0, 0.0]])
        adjacency = np.zeros((2, 2), dtype=int)

        forces, _ = net_forces(positions, adjacency, 0.2, 1.0)

        np.testing.assert_allclose(forces, [[-0.1, 0.0], [0.1, 0.0]])

    def test_directed_adjacency(self):
        """An edge i -> j only makes i attracted toward j."""
        positions = np.array([[0.0, 0.0], [2.0, 0.0]])
        adjacency = np.array([[0, 1], [0, 0]])

        forces, _ = net_forces(positions, adjacency, 0.2, 1.0)

        np.testing.assert_allclose(forces, [[4.0, 0.0], [0.1, 0.0]])

    def test_coincident_pair_split_by_index(self):
        """Coincident nodes push apart along the first axis, lower index first."""
        positions = np.array([[1.0, 1.0], [1.0, 1.0], [0.0, 0.0]])
        adjacency = np.zeros((3, 3), dtype=int)

        forces, coincident = net_forces(positions, adjacency, 0.2, 1.0)

        assert coincident == 1
        assert np.all(np.isfinite(forces))
        # Node 2 pushes both along the diagonal; the pair adds -C*K and +C*K in x
        np.testing.assert_allclose(forces[0], [-0.1, 0.1])
        np.testing.assert_allclose(forces[1], [0.3, 0.1])

    def test_adjacent_coincident_pair_exerts_no_force(self):
        """Stacked neighbours have no attraction and are not split."""
        positions = np.array([[0.0, 0.0], [0.0, 0.0]])
        adjacency = np.array([[0, 1], [1, 0]])

        forces, coincident = net_forces(positions, adjacency, 0.2, 1.0)

        assert coincident == 1
        np.testing.assert_array_equal(forces, np.zeros((2, 2)))

    def test_preserves_dtype(self):
        """Forces share the dtype of the positions."""
        positions = np.array([[0.0, 0.0], [1.0, 1.0]], dtype=np.float32)
        forces, _ = net_forces(positions, np.array([[0, 1], [1, 0]]), 0.2, 1.0)
        assert forces.dtype == np.float32

    def test_three_dimensions(self):
        """Forces work for any point dimension."""
        positions = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 3.0]])
        forces, _ = net_forces(positions, np.array([[0, 1], [1, 0]]), 0.2, 1.0)
        np.testing.assert_allclose(forces, [[0.0, 0.0, 9.0], [0.0, 0.0, -9.0]])


# =============================================================================
# Step Controller
# =============================================================================


class TestUpdateStep:
    """Tests for adaptive step control."""

    def test_improvement_counts_progress(self):
        """A lower energy increments progress and keeps the step."""
        assert update_step(1.0, 5.0, 10.0, 0) == (1.0, 1)

    def test_fifth_improvement_grows_step(self):
        """The fifth consecutive improvement divides the step by the ratio."""
        step, progress = update_step(1.0, 5.0, 10.0, PROGRESS_THRESHOLD - 1)
        assert step == pytest.approx(1.0 / STEP_RATIO)
        assert progress == 0

    def test_regression_shrinks_step(self):
        """A higher energy multiplies the step by the ratio and resets progress."""
        step, progress = update_step(2.0, 20.0, 10.0, 3)
        assert step == pytest.approx(1.8)
        assert progress == 0

    def test_equal_energy_is_regression(self):
        """An unchanged energy does not count as improvement."""
        step, progress = update_step(1.0, 10.0, 10.0, 4)
        assert step == pytest.approx(0.9)
        assert progress == 0

    def test_first_step_against_infinite_energy(self):
        """Any finite energy improves on the initial infinite energy."""
        assert update_step(1.0, 1e12, math.inf, 0) == (1.0, 1)

    def test_five_consecutive_improvements(self):
        """Exactly one growth after five consecutive improvements."""
        step, progress = 1.0, 0
        energies = [100.0, 90.0, 80.0, 70.0, 60.0, 50.0]
        for before, after in zip(energies, energies[1:]):
            step, progress = update_step(step, after, before, progress)
        assert step == pytest.approx(1.0 / 0.9)
        assert progress == 0

    def test_regression_interrupts_streak(self):
        """A regression in the middle of a streak resets progress."""
        step, progress = 1.0, 0
        for energy, energy0 in [(9, 10), (8, 9), (8.5, 8), (7, 8.5), (6, 7), (5, 6)]:
            step, progress = update_step(step, energy, energy0, progress)
        assert step == pytest.approx(0.9)
        assert progress == 3


# =============================================================================
# Convergence Test
# =============================================================================


class TestDistTolerance:
    """Tests for the per-node displacement convergence test."""

    def test_small_moves_converge(self):
        """All moves below K·tol converge."""
        locs0 = np.array([[0.0, 0.0], [1.0, 1.0]])
        locs = locs0 + 0.5
        assert dist_tolerance(locs, locs0, 1.0, 1.0) is True

    def test_threshold_is_strict(self):
        """A move of exactly K·tol does not converge."""
        locs0 = np.array([[0.0, 0.0], [1.0, 1.0]])
        locs = np.array([[1.0, 0.0], [1.0, 1.0]])
        assert dist_tolerance(locs, locs0, 1.0, 1.0) is False

    def test_single_node_fails_all(self):
        """One large move fails the whole step."""
        locs0 = np.zeros((4, 2))
        locs = locs0.copy()
        locs[3] = [5.0, 0.0]
        assert dist_tolerance(locs, locs0, 2.0, 1.0) is False

    def test_scales_with_k(self):
        """The threshold is K times tol."""
        locs0 = np.zeros((1, 2))
        locs = np.array([[1.5, 0.0]])
        assert dist_tolerance(locs, locs0, 2.0, 1.0) is True
        assert dist_tolerance(locs, locs0, 1.0, 1.0) is False

    def test_empty(self):
        """An empty layout is trivially converged."""
        assert dist_tolerance(np.zeros((0, 2)), np.zeros((0, 2)), 1.0, 1.0) is True
