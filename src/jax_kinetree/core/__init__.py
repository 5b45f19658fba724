"""Core data structures for jax_kinetree.

This module provides the building blocks of a mechanism: joints, links, the
index-based node arena that wires links into a tree, and the frozen
`RobotModel` snapshot used by the functional API.
"""

from .interfaces import ChainLike, JointContainer, LinkContainer
from .joint import Joint, JointType, Range
from .link import Link
from .node import NodeArena
from .robot_model import RobotModel

__all__ = [
    "ChainLike",
    "Joint",
    "JointContainer",
    "JointType",
    "Link",
    "LinkContainer",
    "NodeArena",
    "Range",
    "RobotModel",
]
