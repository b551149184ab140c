"""
sfdp-layout: Spring-electrical graph layout with fixed nodes.

Computes 2-D/3-D node coordinates from an adjacency matrix with a variant of
Yifan Hu's spring-electrical model. A subset of nodes can be anchored at
caller-supplied positions while the rest relax around them.

Available entry points:
- SFDPFixed + LayoutIterator: snapshot-by-snapshot layout of a 0/1 matrix
- sfdp_fixed: final positions in one call
- SFDPFixedLayout: node/link front end with event callbacks
"""

__version__ = "0.1.0"

# Drivers and base classes
from .base import (
    BaseLayout,
    IterativeLayout,
    LayoutAlgorithm,
    LayoutIterator,
    layout,
)

# Spring-electrical layout
from .force import (
    SFDPFixed,
    SFDPFixedLayout,
    attractive_force,
    dist_tolerance,
    repulsive_force,
    sfdp_fixed,
    update_step,
)
from .types import (
    AdjacencyLike,
    Event,
    EventType,
    LayoutState,
    Link,
    LinkLike,
    Node,
    NodeLike,
    PointLike,
)

# Validation utilities
from .validation import (
    InvalidAdjacencyError,
    InvalidConfigurationError,
    InvalidLinkError,
    InvalidNodeError,
    NumericalInstabilityError,
    ValidationError,
    validate_adjacency,
)

__all__ = [
    # Version
    "__version__",
    # Shared types
    "Node",
    "Link",
    "EventType",
    "Event",
    "LayoutState",
    # Type aliases for API
    "NodeLike",
    "LinkLike",
    "PointLike",
    "AdjacencyLike",
    # Drivers and base classes
    "LayoutAlgorithm",
    "LayoutIterator",
    "layout",
    "BaseLayout",
    "IterativeLayout",
    # Spring-electrical layout
    "SFDPFixed",
    "SFDPFixedLayout",
    "sfdp_fixed",
    "attractive_force",
    "repulsive_force",
    "update_step",
    "dist_tolerance",
    # Validation
    "ValidationError",
    "InvalidConfigurationError",
    "InvalidAdjacencyError",
    "InvalidNodeError",
    "InvalidLinkError",
    "NumericalInstabilityError",
    "validate_adjacency",
]
