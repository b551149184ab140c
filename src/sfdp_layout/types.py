"""
Common types for the spring-electrical layout engine.

This module provides the fundamental types used across the package:
- Node: Graph vertex with position and anchoring flag
- Link: Unweighted edge connecting two nodes
- EventType: Layout lifecycle events
- Event: Event payload for callbacks
- LayoutState: Loop-carried state of one layout run
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Optional, Sequence, TypedDict, Union

import numpy as np


class EventType(IntEnum):
    """
    Layout lifecycle events.

    - start: Layout iterations have begun
    - tick: Fired once per position snapshot
    - end: Layout has converged, hit the iteration cap, or was stopped
    """

    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    iteration: int
    energy: float
    step: float


class Node:
    """
    Graph node with position and properties.

    Attributes:
        index: Index in nodes array (set by layout)
        x: X coordinate
        y: Y coordinate
        fixed: Nonzero anchors the node at (x, y) for the whole run
    """

    def __init__(self, **kwargs: Any) -> None:
        self.index: Optional[int] = kwargs.get("index")
        self.x: float = kwargs.get("x", 0.0)
        self.y: float = kwargs.get("y", 0.0)
        self.fixed: int = kwargs.get("fixed", 0)

        # Copy any additional custom properties
        for key, value in kwargs.items():
            if not hasattr(self, key):
                setattr(self, key, value)

    def __repr__(self) -> str:
        return f"Node(index={self.index}, x={self.x:.2f}, y={self.y:.2f})"


class Link:
    """
    Unweighted edge connecting two nodes.

    Attributes:
        source: Source node or node index
        target: Target node or node index
    """

    def __init__(
        self,
        source: Union[Node, int],
        target: Union[Node, int],
        **kwargs: Any,
    ) -> None:
        """
        Initialize link between two nodes.

        Args:
            source: Source node or node index (required)
            target: Target node or node index (required)

        Raises:
            ValueError: If source or target is None
        """
        if source is None:
            raise ValueError("Link source cannot be None")
        if target is None:
            raise ValueError("Link target cannot be None")
        self.source = source
        self.target = target

        for key, value in kwargs.items():
            if not hasattr(self, key):
                setattr(self, key, value)

    def __repr__(self) -> str:
        if isinstance(self.source, int):
            src: Any = self.source
        else:
            src = getattr(self.source, "index", None)
        if isinstance(self.target, int):
            tgt: Any = self.target
        else:
            tgt = getattr(self.target, "index", None)
        return f"Link({src} -> {tgt})"


@dataclass(frozen=True)
class LayoutState:
    """
    State threaded between two successive snapshots of a layout run.

    A new state is produced by every step; instances are never mutated.

    Attributes:
        iteration: Index of the next step (1 after initialization)
        energy: Sum of squared net forces of the previous step
        step: Current adaptive step length
        progress: Number of consecutive energy-improving steps
        positions: (N, dim) array of the latest snapshot
        stop: Set once the convergence test has succeeded
    """

    iteration: int
    energy: float
    step: float
    progress: int
    positions: np.ndarray
    stop: bool = False

    @property
    def node_count(self) -> int:
        return int(self.positions.shape[0])

    def advance(self, **changes: Any) -> LayoutState:
        """Return a copy with ``changes`` applied and the iteration incremented."""
        return replace(self, iteration=self.iteration + 1, **changes)


# Type aliases for Pythonic API
NodeLike = Union[Node, dict[str, Any], Any]
"""Input type for nodes: Node objects, dicts, or objects with node attributes."""

LinkLike = Union[Link, dict[str, Any], Any]
"""Input type for links: Link objects, dicts, or objects with source/target."""

PointLike = Sequence[float]
"""A single point: any sequence of coordinates."""

AdjacencyLike = Union[np.ndarray, Sequence[Sequence[Any]]]
"""Square 0/1 matrix: numpy array or nested sequences."""


__all__ = [
    "EventType",
    "Event",
    "Node",
    "Link",
    "LayoutState",
    "NodeLike",
    "LinkLike",
    "PointLike",
    "AdjacencyLike",
]
