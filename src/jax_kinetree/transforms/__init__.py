"""
JAX-based rigid transform helpers used by the kinematics core.

This module provides pure, JIT-compilable implementations of:
- SO(3) rotations (so3 module)
- SE(3) rigid body transforms (se3 module)

Transforms are plain (4, 4) homogeneous jax arrays; there is no wrapper type.
"""

from . import so3
from . import se3

__all__ = [
    "so3",
    "se3",
]
