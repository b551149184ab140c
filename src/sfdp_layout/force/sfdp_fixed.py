"""
Spring-electrical layout with fixed (anchored) nodes.

Based on the spring-electrical model of:
"Efficient and High Quality Force-Directed Graph Drawing" by Yifan Hu (2005)

Key features:
- Attraction ‖xi - xj‖² / K between adjacent nodes, repulsion -C·K² / ‖xi - xj‖
  between all other pairs
- Unit-length moves scaled by an adaptive step (5 improvements to heat up,
  one regression to cool down)
- Caller-supplied initial positions, optionally anchored for the whole run
- Deterministic random fill from a run-local seeded generator
"""

from __future__ import annotations

import math
import warnings
from typing import Any, Callable, Optional, Sequence

import numpy as np

from ..base import IterativeLayout, LayoutIterator, layout
from ..types import (
    AdjacencyLike,
    Event,
    EventType,
    LayoutState,
    LinkLike,
    NodeLike,
    PointLike,
)
from ..validation import (
    InvalidAdjacencyError,
    InvalidConfigurationError,
    NumericalInstabilityError,
    validate_adjacency,
    validate_finite,
    validate_initial_positions,
    validate_iterations,
    validate_node_positions,
)
from .forces import dist_tolerance, net_forces, update_step


class SFDPFixed:
    """
    Immutable configuration and engine of the spring-electrical layout.

    The engine follows the two-phase protocol of ``LayoutAlgorithm``:
    ``initialize`` once, then ``step`` until it returns None. Positions are
    numpy arrays of shape (N, dim), index-aligned with the adjacency matrix.

    If fewer initial positions than nodes are given, the remaining nodes are
    placed at ``(max - min) * (2u - 1) + min`` with ``u`` uniform in [0, 1),
    where ``min``/``max`` bound the given positions (the unit box when none
    are given). A box that collapses to a single point uses a width of 1
    in every dimension. Surplus initial positions are ignored.

    With ``fixed=True`` the first ``len(initialpos)`` nodes never move:
    anchoring is by position in the matrix, not by node identity.

    Example:
        algo = SFDPFixed(initialpos=[(0.0, 0.0)], fixed=True, seed=7)
        for positions in LayoutIterator(algo, [[0, 1], [1, 0]]):
            print(positions)
    """

    def __init__(
        self,
        *,
        dim: Optional[int] = None,
        dtype: Any = np.float64,
        tol: float = 1.0,
        C: float = 0.2,
        K: float = 1.0,
        iterations: int = 100,
        initialpos: Sequence[PointLike] = (),
        seed: int = 1,
        fixed: bool = False,
    ) -> None:
        """
        Initialize the layout configuration.

        Args:
            dim: Point dimension. Inferred from initialpos when omitted,
                otherwise 2.
            dtype: Floating element type of the positions.
            tol: Stop once every node moved less than ``K * tol`` in a step.
            C: Relative strength of the repulsive force.
            K: Natural edge length.
            iterations: Maximum number of snapshots, including the initial one.
            initialpos: Initial positions for the leading nodes.
            seed: Seed for the random initial positions.
            fixed: Anchor the nodes covered by initialpos.

        Raises:
            InvalidConfigurationError: If any option is invalid.
        """
        try:
            self._dtype = np.dtype(dtype)
        except TypeError as exc:
            raise InvalidConfigurationError(f"Unknown dtype {dtype!r}") from exc
        if not np.issubdtype(self._dtype, np.floating):
            raise InvalidConfigurationError(f"dtype must be floating, got {self._dtype}")

        if dim is not None:
            if isinstance(dim, bool) or not isinstance(dim, (int, np.integer)) or dim < 1:
                raise InvalidConfigurationError(f"dim must be a positive integer, got {dim!r}")
            dim = int(dim)

        self._initialpos = validate_initial_positions(initialpos, dim, self._dtype)
        self._dim: int = int(self._initialpos.shape[1])

        self._tol = validate_finite("tol", tol, non_negative=True)
        self._C = validate_finite("C", C)
        self._K = validate_finite("K", K, positive=True)
        self._iterations = validate_iterations(iterations)

        if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) or seed < 0:
            raise InvalidConfigurationError(f"seed must be a non-negative integer, got {seed!r}")
        self._seed = int(seed)
        self._fixed = bool(fixed)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def tol(self) -> float:
        """Convergence tolerance relative to K."""
        return self._tol

    @property
    def C(self) -> float:
        """Relative strength of the repulsive force."""
        return self._C

    @property
    def K(self) -> float:
        """Natural edge length."""
        return self._K

    @property
    def iterations(self) -> int:
        return self._iterations

    @property
    def initialpos(self) -> np.ndarray:
        """Read-only (M, dim) array of initial positions."""
        return self._initialpos

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def fixed(self) -> bool:
        return self._fixed

    @property
    def anchored_count(self) -> int:
        """Number of leading nodes that never move."""
        return len(self._initialpos) if self._fixed else 0

    def __repr__(self) -> str:
        return (
            f"SFDPFixed(dim={self._dim}, dtype={self._dtype}, tol={self._tol}, "
            f"C={self._C}, K={self._K}, iterations={self._iterations}, "
            f"initialpos={len(self._initialpos)} points, seed={self._seed}, "
            f"fixed={self._fixed})"
        )

    # -------------------------------------------------------------------------
    # Layout Implementation
    # -------------------------------------------------------------------------

    def initialize(self, adjacency: AdjacencyLike) -> tuple[np.ndarray, LayoutState]:
        """
        Produce the starting positions and the initial state.

        Returns:
            Tuple of (positions, state). An empty graph yields an already
            stopped state.

        Raises:
            InvalidAdjacencyError: If adjacency is not a square 0/1 matrix.
        """
        adjacency = validate_adjacency(adjacency)
        n = adjacency.shape[0]
        m = len(self._initialpos)
        if m > n:
            warnings.warn(
                f"{m} initial positions given for {n} nodes; extra positions are ignored",
                UserWarning,
                stacklevel=2,
            )

        positions = np.empty((n, self._dim), dtype=self._dtype)
        given = min(n, m)
        positions[:given] = self._initialpos[:given]

        if given > 0:
            lower = positions[:given].min(axis=0)
            upper = positions[:given].max(axis=0)
        else:
            lower = np.zeros(self._dim, dtype=self._dtype)
            upper = np.ones(self._dim, dtype=self._dtype)

        if n > given:
            extent = upper - lower
            if np.all(extent == 0):
                # A point-sized box would stack every random node on it
                extent = np.ones(self._dim, dtype=self._dtype)
            rng = np.random.default_rng(self._seed)
            uniform = rng.random((n - given, self._dim))
            positions[given:] = extent * (2 * uniform - 1) + lower

        positions.setflags(write=False)
        state = LayoutState(
            iteration=1,
            energy=math.inf,
            step=1.0,
            progress=0,
            positions=positions,
            stop=n == 0,
        )
        return positions.copy(), state

    def step(
        self, adjacency: AdjacencyLike, state: LayoutState
    ) -> Optional[tuple[np.ndarray, LayoutState]]:
        """
        Advance the layout by one snapshot.

        Returns:
            Tuple of (positions, next state), or None once the iteration cap
            is reached or the previous step converged.

        Raises:
            InvalidAdjacencyError: If adjacency does not match the state.
            NumericalInstabilityError: If the step yields non-finite values.
        """
        if state.iteration >= self._iterations or state.stop:
            return None

        locs0 = state.positions
        n = state.node_count
        adjacency = np.asarray(adjacency)
        if adjacency.shape != (n, n):
            raise InvalidAdjacencyError(
                f"Adjacency matrix of shape {adjacency.shape} does not match {n} nodes"
            )

        forces, coincident = net_forces(locs0, adjacency, self._C, self._K)
        if coincident:
            warnings.warn(
                "Coincident nodes detected; separating them along the first axis",
                UserWarning,
                stacklevel=2,
            )

        magnitudes = np.linalg.norm(forces, axis=1)
        energy = float(np.sum(magnitudes * magnitudes))

        # Anchored nodes and nodes in equilibrium stay put
        movable = (np.arange(n) >= self.anchored_count) & (magnitudes > 0)
        locs = locs0.copy()
        locs[movable] += state.step * (forces[movable] / magnitudes[movable, np.newaxis])

        if not (math.isfinite(energy) and np.all(np.isfinite(locs))):
            raise NumericalInstabilityError(
                f"Layout diverged at iteration {state.iteration}: "
                "positions or energy are no longer finite",
                iteration=state.iteration,
            )

        step, progress = update_step(state.step, energy, state.energy, state.progress)

        # Keep the converged snapshot; the next call terminates
        stop = dist_tolerance(locs, locs0, self._K, self._tol)

        locs.setflags(write=False)
        new_state = state.advance(
            energy=energy,
            step=step,
            progress=progress,
            positions=locs,
            stop=stop,
        )
        return locs.copy(), new_state


def sfdp_fixed(adjacency: AdjacencyLike, **options: Any) -> np.ndarray:
    """
    Lay out ``adjacency`` and return the final (N, dim) positions.

    Keyword arguments are passed to SFDPFixed.
    """
    return layout(SFDPFixed(**options), adjacency)


class SFDPFixedLayout(IterativeLayout):
    """
    Node/link front end of the spring-electrical layout (2-D).

    Nodes with ``fixed`` set are anchored at their (x, y). They are moved to
    the front of the adjacency matrix internally so exactly those nodes are
    covered by the anchored initial positions; free nodes start at random
    positions around them. Links are treated as undirected.

    Example:
        layout = SFDPFixedLayout(
            nodes=[{'x': 0, 'y': 0, 'fixed': 1}, {}, {}],
            links=[{'source': 0, 'target': 1}, {'source': 1, 'target': 2}],
        )
        layout.run()

        for node in layout.nodes:
            print(f"Node {node.index}: ({node.x}, {node.y})")
    """

    def __init__(
        self,
        *,
        nodes: Optional[Sequence[NodeLike]] = None,
        links: Optional[Sequence[LinkLike]] = None,
        random_seed: Optional[int] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
        iterations: int = 100,
        tol: float = 1.0,
        C: float = 0.2,
        K: float = 1.0,
    ) -> None:
        """
        Initialize the layout.

        Args:
            nodes: List of nodes
            links: List of links
            random_seed: Seed for random initial positions (default 1)
            on_start: Callback for start event
            on_tick: Callback for tick event, once per snapshot
            on_end: Callback for end event
            iterations: Maximum number of snapshots
            tol: Convergence tolerance relative to K
            C: Relative strength of the repulsive force
            K: Natural edge length
        """
        super().__init__(
            nodes=nodes,
            links=links,
            random_seed=random_seed,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
            iterations=iterations,
        )
        self._tol = validate_finite("tol", tol, non_negative=True)
        self._C = validate_finite("C", C)
        self._K = validate_finite("K", K, positive=True)

        self._iterator: Optional[LayoutIterator] = None
        self._order: list[int] = []

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def tol(self) -> float:
        return self._tol

    @tol.setter
    def tol(self, value: float) -> None:
        self._tol = validate_finite("tol", value, non_negative=True)

    @property
    def C(self) -> float:
        return self._C

    @C.setter
    def C(self, value: float) -> None:
        self._C = validate_finite("C", value)

    @property
    def K(self) -> float:
        return self._K

    @K.setter
    def K(self, value: float) -> None:
        self._K = validate_finite("K", value, positive=True)

    @property
    def state(self) -> Optional[LayoutState]:
        """Engine state after the latest tick (None before run())."""
        return self._iterator.state if self._iterator is not None else None

    def validate(self) -> SFDPFixedLayout:
        """
        Validate links and the coordinates of anchored nodes.

        Raises:
            InvalidLinkError: If any link references an invalid node index.
            InvalidNodeError: If an anchored node has no finite position.
        """
        super().validate()
        validate_node_positions([node for node in self._nodes if node.fixed])
        return self

    # -------------------------------------------------------------------------
    # Layout Implementation
    # -------------------------------------------------------------------------

    def run(self, **kwargs: Any) -> SFDPFixedLayout:
        """
        Run the layout to termination (or until stop() is called).

        Returns:
            self for chaining
        """
        self._initialize_indices()
        self.validate()

        anchored = [i for i, node in enumerate(self._nodes) if node.fixed]
        free = [i for i, node in enumerate(self._nodes) if not node.fixed]
        self._order = anchored + free

        adjacency = self._build_adjacency_matrix()[np.ix_(self._order, self._order)]
        algorithm = SFDPFixed(
            dim=2,
            tol=self._tol,
            C=self._C,
            K=self._K,
            iterations=self._iterations,
            initialpos=[(float(self._nodes[i].x), float(self._nodes[i].y)) for i in anchored],
            seed=self._random_seed if self._random_seed is not None else 1,
            fixed=True,
        )
        self._iterator = LayoutIterator(algorithm, adjacency)

        self._running = True
        self.trigger({"type": EventType.start, "iteration": 0})
        self.kick()
        self._running = False

        state = self.state
        self.trigger(
            {
                "type": EventType.end,
                "iteration": state.iteration if state is not None else 0,
                "energy": state.energy if state is not None else math.inf,
            }
        )
        return self

    def tick(self) -> bool:
        """
        Consume one snapshot and copy it onto the nodes.

        Returns:
            True once the layout has terminated.
        """
        if self._iterator is None:
            return True
        try:
            positions = next(self._iterator)
        except StopIteration:
            return True

        for row, i in enumerate(self._order):
            node = self._nodes[i]
            node.x = float(positions[row, 0])
            node.y = float(positions[row, 1])

        state = self._iterator.state
        if state is None:
            return True
        self.trigger(
            {
                "type": EventType.tick,
                "iteration": state.iteration - 1,
                "energy": state.energy,
                "step": state.step,
            }
        )
        return False


__all__ = ["SFDPFixed", "SFDPFixedLayout", "sfdp_fixed"]
