"""
Base classes and drivers for iterative layout algorithms.

This module provides:

- LayoutAlgorithm: The two-method contract every iterative algorithm fulfils
  (``initialize`` once, then ``step`` until it returns None)
- LayoutIterator: Pull-based iterator yielding one position snapshot per call
- layout(): Drain a LayoutIterator and return the final positions
- BaseLayout / IterativeLayout: Node/link front end with an event system
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Protocol, Sequence

import numpy as np

if TYPE_CHECKING:
    from typing_extensions import Self

from .types import (
    AdjacencyLike,
    Event,
    EventType,
    LayoutState,
    Link,
    LinkLike,
    Node,
    NodeLike,
)
from .validation import validate_adjacency, validate_link_indices


class LayoutAlgorithm(Protocol):
    """
    Capability contract for iterative layout algorithms.

    ``initialize`` produces snapshot #0 and the initial state. ``step``
    turns the state of snapshot #k into snapshot #k+1, or returns None once
    the run has terminated.
    """

    def initialize(self, adjacency: AdjacencyLike) -> tuple[np.ndarray, LayoutState]: ...

    def step(
        self, adjacency: AdjacencyLike, state: LayoutState
    ) -> Optional[tuple[np.ndarray, LayoutState]]: ...


class LayoutIterator:
    """
    Finite, non-restartable sequence of position snapshots.

    The first ``next()`` initializes the layout; every later call performs
    one step. Once the algorithm signals termination the iterator stays
    exhausted.

    Example:
        for positions in LayoutIterator(SFDPFixed(), adjacency):
            draw(positions)
    """

    def __init__(self, algorithm: LayoutAlgorithm, adjacency: AdjacencyLike) -> None:
        self._algorithm = algorithm
        self._adjacency = validate_adjacency(adjacency)
        self._state: Optional[LayoutState] = None
        self._done = False

    @property
    def algorithm(self) -> LayoutAlgorithm:
        return self._algorithm

    @property
    def adjacency(self) -> np.ndarray:
        """Read-only adjacency matrix the layout runs on."""
        return self._adjacency

    @property
    def state(self) -> Optional[LayoutState]:
        """State after the latest snapshot (None before the first one)."""
        return self._state

    @property
    def done(self) -> bool:
        return self._done

    def __iter__(self) -> Iterator[np.ndarray]:
        return self

    def __next__(self) -> np.ndarray:
        if self._done:
            raise StopIteration

        if self._state is None:
            positions, state = self._algorithm.initialize(self._adjacency)
        else:
            result = self._algorithm.step(self._adjacency, self._state)
            if result is None:
                self._done = True
                raise StopIteration
            positions, state = result

        self._state = state
        return positions


def layout(algorithm: LayoutAlgorithm, adjacency: AdjacencyLike) -> np.ndarray:
    """
    Run ``algorithm`` on ``adjacency`` to termination.

    Returns:
        (N, dim) array of the last snapshot
    """
    iterator = LayoutIterator(algorithm, adjacency)
    positions = next(iterator)
    for positions in iterator:
        pass
    return positions


class BaseLayout(ABC):
    """
    Abstract base class for node/link driven layouts.

    Provides shared infrastructure:
    - Event system (start/tick/end events)
    - Node/link management via properties
    - Adjacency matrix construction from links

    Example:
        layout = SomeLayout(nodes=nodes, links=links)
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
    ) -> None:
        """
        Initialize layout with configuration.

        Args:
            nodes: List of nodes (Node objects, dicts, or objects with attributes)
            links: List of links (Link objects or dicts with source/target)
            random_seed: Random seed for reproducible layouts
            on_start: Callback for start event
            on_tick: Callback for tick event
            on_end: Callback for end event
        """
        self._nodes: list[Node] = []
        self._links: list[Link] = []
        self._events: dict[EventType, Callable[[Optional[Event]], None]] = {}
        self._random_seed: Optional[int] = random_seed

        if nodes is not None:
            self.nodes = nodes
        if links is not None:
            self.links = links

        if on_start:
            self._events[EventType.start] = on_start
        if on_tick:
            self._events[EventType.tick] = on_tick
        if on_end:
            self._events[EventType.end] = on_end

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def nodes(self) -> list[Node]:
        """Get the list of nodes."""
        return self._nodes

    @nodes.setter
    def nodes(self, value: Sequence[NodeLike]) -> None:
        """Set nodes from a sequence of Node objects, dicts, or objects."""
        self._nodes = []
        for node_data in value:
            if isinstance(node_data, Node):
                self._nodes.append(node_data)
            elif isinstance(node_data, dict):
                self._nodes.append(Node(**node_data))
            else:
                node = Node()
                for attr in ["index", "x", "y", "fixed"]:
                    if hasattr(node_data, attr):
                        setattr(node, attr, getattr(node_data, attr))
                self._nodes.append(node)

    @property
    def links(self) -> list[Link]:
        """Get the list of links."""
        return self._links

    @links.setter
    def links(self, value: Sequence[LinkLike]) -> None:
        """Set links from a sequence of Link objects, dicts, or objects."""
        self._links = []
        for link_data in value:
            if isinstance(link_data, Link):
                self._links.append(link_data)
            elif isinstance(link_data, dict):
                self._links.append(Link(**link_data))
            else:
                source = getattr(link_data, "source", 0)
                target = getattr(link_data, "target", 0)
                self._links.append(Link(source, target))

    @property
    def random_seed(self) -> Optional[int]:
        """Get random seed for reproducible layouts."""
        return self._random_seed

    @random_seed.setter
    def random_seed(self, value: Optional[int]) -> None:
        self._random_seed = value

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callable[[Optional[Event]], None]) -> Self:
        """
        Subscribe to a layout event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            event = EventType[event]
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """Trigger an event, calling the registered callback."""
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> Self:
        """
        Validate current configuration.

        Checks that all links point to valid node indices. Called
        automatically by run() but can be called early for fail-fast
        behavior.

        Raises:
            InvalidLinkError: If any link references an invalid node index.
        """
        if self._links:
            validate_link_indices(self._links, len(self._nodes), strict=True)
        return self

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    @abstractmethod
    def run(self, **kwargs: Any) -> Self:
        """Run the layout algorithm and return self."""
        pass

    def stop(self) -> Self:
        return self

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _initialize_indices(self) -> None:
        """Assign indices to nodes that don't have them."""
        for i, node in enumerate(self._nodes):
            if node.index is None:
                node.index = i

    def _get_source_index(self, link: Link) -> int:
        if isinstance(link.source, int):
            return link.source
        return link.source.index if link.source.index is not None else 0

    def _get_target_index(self, link: Link) -> int:
        if isinstance(link.target, int):
            return link.target
        return link.target.index if link.target.index is not None else 0

    def _build_adjacency_matrix(self) -> np.ndarray:
        """
        Build a symmetric 0/1 adjacency matrix from links.

        Self-loops are dropped. Call validate() first; out-of-range links
        are skipped here.
        """
        n = len(self._nodes)
        adjacency = np.zeros((n, n), dtype=np.int8)
        for link in self._links:
            src = self._get_source_index(link)
            tgt = self._get_target_index(link)
            if 0 <= src < n and 0 <= tgt < n and src != tgt:
                adjacency[src, tgt] = 1
                adjacency[tgt, src] = 1
        return adjacency


class IterativeLayout(BaseLayout):
    """
    Base class for node/link layouts driven snapshot by snapshot.

    Subclasses implement tick(), which consumes one snapshot and returns
    True once no further snapshot is available.
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
    ) -> None:
        super().__init__(
            nodes=nodes,
            links=links,
            random_seed=random_seed,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )
        self._running: bool = False
        self._iterations: int = max(0, int(iterations))

    @property
    def iterations(self) -> int:
        """Get maximum iterations."""
        return self._iterations

    @iterations.setter
    def iterations(self, value: int) -> None:
        """Set maximum iterations (minimum 0)."""
        self._iterations = max(0, int(value))

    @property
    def running(self) -> bool:
        return self._running

    @abstractmethod
    def tick(self) -> bool:
        """
        Consume one snapshot of the layout.

        Returns:
            True if the layout has terminated, False if more snapshots follow.
        """
        pass

    def kick(self) -> None:
        """Run tick() repeatedly until termination or stop()."""
        while self._running:
            if self.tick():
                break

    def stop(self) -> Self:
        """Stop the layout after the current tick."""
        self._running = False
        return self


__all__ = [
    "LayoutAlgorithm",
    "LayoutIterator",
    "layout",
    "BaseLayout",
    "IterativeLayout",
]
