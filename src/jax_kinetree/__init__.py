"""
jax_kinetree: forward and inverse kinematics of link trees on JAX.

A mechanism is a tree of links joined by single degree-of-freedom joints.
This library computes link and end-effector poses from joint values, and
joint values reaching a target pose through a damped Jacobian iteration.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from . import io
from .chain import KinematicChain
from .core import Joint, JointType, Link, NodeArena, Range, RobotModel
from .errors import (
    IKError,
    JointError,
    KinematicsError,
    NotConvergedError,
    NotFoundError,
    OutOfLimitError,
    SizeMismatchError,
    SolverError,
    TransformCacheError,
    TreeStructureError,
    UnsupportedJointOperationError,
)
from .functional import forward_kinematics, forward_kinematics_world, jacobian
from .ik import IKSolverConfig, JacobianIKSolver
from .tree import LinkTree

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "IKError",
    "IKSolverConfig",
    "JacobianIKSolver",
    "Joint",
    "JointError",
    "JointType",
    "KinematicChain",
    "KinematicsError",
    "Link",
    "LinkTree",
    "NodeArena",
    "NotConvergedError",
    "NotFoundError",
    "OutOfLimitError",
    "Range",
    "RobotModel",
    "SizeMismatchError",
    "SolverError",
    "TransformCacheError",
    "TreeStructureError",
    "UnsupportedJointOperationError",
    "forward_kinematics",
    "forward_kinematics_world",
    "jacobian",
]
