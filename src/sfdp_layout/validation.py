"""
Input validation utilities for the layout engine.

Provides centralized validation functions for adjacency matrices, layout
options, initial positions, and links. Raises descriptive exceptions on
invalid input.
"""

from __future__ import annotations

import math
from typing import Any, Optional, Sequence

import numpy as np


class ValidationError(ValueError):
    """Base exception for layout validation errors."""

    pass


class InvalidConfigurationError(ValidationError):
    """Raised when layout options are out of range or inconsistent."""

    pass


class InvalidAdjacencyError(ValidationError):
    """Raised when an adjacency matrix is not a square 0/1 matrix."""

    pass


class InvalidNodeError(ValidationError):
    """Raised when a node is malformed."""

    pass


class InvalidLinkError(ValidationError):
    """Raised when a link references invalid nodes."""

    pass


class NumericalInstabilityError(ArithmeticError):
    """Raised when a layout step produces non-finite positions or energy."""

    def __init__(self, message: str, iteration: Optional[int] = None) -> None:
        super().__init__(message)
        self.iteration = iteration


def validate_adjacency(adjacency: Any) -> np.ndarray:
    """
    Validate and normalize an adjacency matrix.

    Args:
        adjacency: Square matrix as numpy array or nested sequences. Entries
            must be 0 or 1 (booleans are accepted).

    Returns:
        Read-only (N, N) integer array

    Raises:
        InvalidAdjacencyError: If the matrix is not square or has entries
            other than 0 and 1
    """
    try:
        matrix = np.asarray(adjacency)
    except ValueError as exc:
        raise InvalidAdjacencyError(f"Adjacency matrix is ragged: {exc}") from exc

    if matrix.size == 0 and (matrix.ndim <= 1 or matrix.shape in ((0, 0), (1, 0))):
        # [], [[]] and a (0, 0) array describe the empty graph
        return _read_only(np.zeros((0, 0), dtype=np.int8))

    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise InvalidAdjacencyError(
            f"Adjacency matrix must be square, got shape {matrix.shape}"
        )
    if matrix.dtype == object or not (
        np.issubdtype(matrix.dtype, np.number) or matrix.dtype == np.bool_
    ):
        raise InvalidAdjacencyError(
            f"Adjacency matrix must be numeric, got dtype {matrix.dtype}"
        )

    bad = ~np.isin(matrix, (0, 1))
    if bad.any():
        i, j = (int(v) for v in np.argwhere(bad)[0])
        raise InvalidAdjacencyError(
            f"Adjacency entries must be 0 or 1, got {matrix[i, j]!r} at ({i}, {j})"
        )

    return _read_only(matrix.astype(np.int8))


def validate_initial_positions(
    initialpos: Any,
    dim: Optional[int],
    dtype: Any,
) -> np.ndarray:
    """
    Validate caller-supplied initial positions.

    Args:
        initialpos: Sequence of points (possibly empty)
        dim: Explicitly requested dimension, or None to infer
        dtype: Floating element type of the result

    Returns:
        Read-only (M, dim) array

    Raises:
        InvalidConfigurationError: If points have mixed dimensions, are not
            finite, or disagree with an explicit ``dim``
    """
    if initialpos is None or len(initialpos) == 0:
        return _read_only(np.zeros((0, dim if dim is not None else 2), dtype=dtype))

    try:
        lengths = {len(p) for p in initialpos}
    except TypeError as exc:
        raise InvalidConfigurationError(
            "Initial positions must be a sequence of points"
        ) from exc
    if len(lengths) != 1:
        raise InvalidConfigurationError(
            f"All initial positions must have the same dimension, got {sorted(lengths)}"
        )

    try:
        points = np.array(initialpos, dtype=dtype)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(
            f"Initial positions must be numeric points: {exc}"
        ) from exc

    if points.ndim != 2 or points.shape[1] < 1:
        raise InvalidConfigurationError(
            f"Initial positions must form an (M, dim) array, got shape {points.shape}"
        )
    if dim is not None and points.shape[1] != dim:
        raise InvalidConfigurationError(
            f"Initial positions have dimension {points.shape[1]}, expected {dim}"
        )
    if not np.all(np.isfinite(points)):
        raise InvalidConfigurationError("Initial positions must be finite")

    return _read_only(points)


def validate_iterations(iterations: int) -> int:
    """
    Validate iteration cap is a non-negative integer.

    Raises:
        InvalidConfigurationError: If iterations is negative or not integral
    """
    if isinstance(iterations, bool) or not isinstance(iterations, (int, np.integer)):
        raise InvalidConfigurationError(
            f"iterations must be an integer, got {type(iterations).__name__}"
        )
    if iterations < 0:
        raise InvalidConfigurationError(f"iterations must be >= 0, got {iterations}")
    return int(iterations)


def validate_finite(
    name: str,
    value: float,
    *,
    positive: bool = False,
    non_negative: bool = False,
) -> float:
    """
    Validate a scalar option is finite (and optionally positive / non-negative).

    Raises:
        InvalidConfigurationError: If the value is not a finite number or
            violates the requested bound
    """
    try:
        value = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(f"{name} must be a number, got {value!r}") from exc

    if not math.isfinite(value):
        raise InvalidConfigurationError(f"{name} must be finite, got {value}")
    if positive and value <= 0:
        raise InvalidConfigurationError(f"{name} must be positive, got {value}")
    if non_negative and value < 0:
        raise InvalidConfigurationError(f"{name} must be >= 0, got {value}")
    return value


def validate_node_positions(nodes: Sequence[Any]) -> None:
    """
    Validate that every node has finite numeric x/y coordinates.

    Raises:
        InvalidNodeError: If a coordinate is missing, non-numeric, or not finite
    """
    for i, node in enumerate(nodes):
        if getattr(node, "index", None) is not None:
            i = node.index
        for attr in ("x", "y"):
            value = getattr(node, attr, None)
            try:
                coord = float(value)  # type: ignore[arg-type]
            except (TypeError, ValueError) as exc:
                raise InvalidNodeError(
                    f"Node {i}: {attr} must be a number, got {value!r}"
                ) from exc
            if not math.isfinite(coord):
                raise InvalidNodeError(f"Node {i}: {attr} must be finite, got {coord}")


def validate_link_indices(
    links: Sequence[Any],
    node_count: int,
    strict: bool = True,
) -> list[tuple[int, str]]:
    """
    Validate that all link source/target indices are within bounds.

    Args:
        links: Sequence of Link objects or dicts with source/target
        node_count: Number of nodes in the graph
        strict: If True, raises on invalid. If False, returns list of issues.

    Returns:
        List of (link_index, issue_description) tuples

    Raises:
        InvalidLinkError: If strict=True and invalid links found
    """
    issues: list[tuple[int, str]] = []

    for i, link in enumerate(links):
        src = _get_index(link, "source")
        tgt = _get_index(link, "target")

        if src is None:
            issues.append((i, f"Link {i}: source is None"))
        elif src < 0 or src >= node_count:
            issues.append((i, f"Link {i}: source index {src} out of bounds [0, {node_count})"))

        if tgt is None:
            issues.append((i, f"Link {i}: target is None"))
        elif tgt < 0 or tgt >= node_count:
            issues.append((i, f"Link {i}: target index {tgt} out of bounds [0, {node_count})"))

    if strict and issues:
        msg = "Invalid link indices:\n" + "\n".join(issue[1] for issue in issues)
        raise InvalidLinkError(msg)

    return issues


def _get_index(obj: Any, attr: str) -> Optional[int]:
    """Extract index from int, Node, or object with index attribute."""
    if hasattr(obj, attr):
        val = getattr(obj, attr, None)
    elif isinstance(obj, dict):
        val = obj.get(attr)
    else:
        val = None

    if val is None:
        return None
    if isinstance(val, int):
        return val
    if getattr(val, "index", None) is not None:
        return int(val.index)
    return None


def _read_only(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


__all__ = [
    "ValidationError",
    "InvalidConfigurationError",
    "InvalidAdjacencyError",
    "InvalidNodeError",
    "InvalidLinkError",
    "NumericalInstabilityError",
    "validate_adjacency",
    "validate_initial_positions",
    "validate_iterations",
    "validate_finite",
    "validate_link_indices",
    "validate_node_positions",
]
