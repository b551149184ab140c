"""
Spring-electrical force-directed layout.

This module provides:
- SFDPFixed: Yifan Hu spring-electrical engine with anchored nodes
- SFDPFixedLayout: Node/link front end with start/tick/end events
- sfdp_fixed: One-call layout of an adjacency matrix
- The force model and step controller the engine is built from
"""

from .forces import (
    attractive_force,
    dist_tolerance,
    net_forces,
    repulsive_force,
    update_step,
)
from .sfdp_fixed import SFDPFixed, SFDPFixedLayout, sfdp_fixed

__all__ = [
    "SFDPFixed",
    "SFDPFixedLayout",
    "sfdp_fixed",
    "attractive_force",
    "repulsive_force",
    "net_forces",
    "update_step",
    "dist_tolerance",
]
